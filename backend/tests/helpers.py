"""
Request builders shared by the API tests.
"""
from httpx import AsyncClient

from mosman.core.security import create_access_token

MISSING_ID = "9b1deb4d-3b7d-4bad-9bdd-2b0d7b3dcb6d"


def donation_payload(pocket_id: str, items: list, **overrides) -> dict:
    payload = {
        "pocket_id": pocket_id,
        "donor_name": "Hamba Allah",
        "is_anonymous": False,
        "payment_method": "cash",
        "donation_date": "2026-10-01",
        "items": items,
    }
    payload.update(overrides)
    return payload


def expense_payload(pocket_id: str, items: list, **overrides) -> dict:
    payload = {
        "pocket_id": pocket_id,
        "description": "Bayar listrik dan perbaikan atap",
        "expense_date": "2026-10-02",
        "items": items,
    }
    payload.update(overrides)
    return payload


async def create_donation(client: AsyncClient, headers: dict, payload: dict) -> dict:
    response = await client.post("/api/v1/donations", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def create_expense(client: AsyncClient, headers: dict, payload: dict) -> dict:
    response = await client.post("/api/v1/expenses", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def bearer(profile) -> dict:
    """Authorization headers carrying a token for the given profile."""
    token = create_access_token(subject=profile.id, email=profile.email)
    return {"Authorization": f"Bearer {token}"}
