"""
Tests for pocket endpoints and the pocket ledger.

Tests cover:
- Balance = donations - approved expenses, recomputed after every write
- Summary totals, counts and pending expenses
- Pocket CRUD, name uniqueness, delete protection
- Per-pocket transaction listings
"""
import pytest
from decimal import Decimal
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

import mosman.api.v1.pockets as pockets_api
from mosman.models.pocket import Pocket
from tests.helpers import MISSING_ID, create_donation, create_expense, donation_payload, expense_payload


async def get_summary(client: AsyncClient, headers: dict, pocket_id: str) -> dict:
    response = await client.get(f"/api/v1/pockets/{pocket_id}/summary", headers=headers)
    assert response.status_code == 200, response.text
    return response.json()["data"]


class TestPocketLedger:
    """Balances derived from transactions."""

    @pytest.mark.asyncio
    async def test_new_pocket_summary_is_zero(
        self, client: AsyncClient, viewer_headers: dict, test_pocket
    ):
        summary = await get_summary(client, viewer_headers, test_pocket.id)
        assert summary["name"] == "Kas Umum"
        assert Decimal(summary["total_donations"]) == 0
        assert Decimal(summary["total_expenses"]) == 0
        assert Decimal(summary["pending_expenses"]) == 0
        assert Decimal(summary["balance"]) == 0
        assert summary["donation_count"] == 0
        assert summary["expense_count"] == 0

    @pytest.mark.asyncio
    async def test_balance_follows_every_write(
        self, client: AsyncClient, admin_headers: dict, treasurer_headers: dict,
        test_pocket, zakat_category, infaq_category, utilities_category
    ):
        first = await create_donation(client, treasurer_headers, donation_payload(test_pocket.id, [
            {"category_id": zakat_category.id, "amount": 700000},
            {"category_id": infaq_category.id, "amount": 300000},
        ]))
        second = await create_donation(client, treasurer_headers, donation_payload(
            test_pocket.id, [{"category_id": infaq_category.id, "amount": 500000}]
        ))

        approved = await create_expense(client, treasurer_headers, expense_payload(
            test_pocket.id, [{"category_id": utilities_category.id, "amount": 400000}]
        ))
        await create_expense(client, treasurer_headers, expense_payload(
            test_pocket.id, [{"category_id": utilities_category.id, "amount": 100000}]
        ))
        rejected = await create_expense(client, treasurer_headers, expense_payload(
            test_pocket.id, [{"category_id": utilities_category.id, "amount": 50000}]
        ))
        await client.put(f"/api/v1/expenses/{approved['id']}/approve", json={"status": "approved"}, headers=admin_headers)
        await client.put(f"/api/v1/expenses/{rejected['id']}/approve", json={"status": "rejected"}, headers=admin_headers)

        summary = await get_summary(client, treasurer_headers, test_pocket.id)
        assert Decimal(summary["total_donations"]) == Decimal("1500000")
        assert Decimal(summary["total_expenses"]) == Decimal("400000")
        assert Decimal(summary["pending_expenses"]) == Decimal("100000")
        assert Decimal(summary["balance"]) == Decimal("1100000")
        assert summary["donation_count"] == 2
        assert summary["expense_count"] == 1

        # Replacing items changes the donation total
        await client.put(
            f"/api/v1/donations/{second['id']}",
            json={"items": [{"category_id": infaq_category.id, "amount": 200000}]},
            headers=treasurer_headers,
        )
        summary = await get_summary(client, treasurer_headers, test_pocket.id)
        assert Decimal(summary["total_donations"]) == Decimal("1200000")
        assert Decimal(summary["balance"]) == Decimal("800000")

        # Deleting an approved expense gives the money back
        await client.delete(f"/api/v1/expenses/{approved['id']}", headers=admin_headers)
        summary = await get_summary(client, treasurer_headers, test_pocket.id)
        assert Decimal(summary["balance"]) == Decimal("1200000")

        await client.delete(f"/api/v1/donations/{first['id']}", headers=admin_headers)
        summary = await get_summary(client, treasurer_headers, test_pocket.id)
        assert Decimal(summary["balance"]) == Decimal("200000")
        assert summary["donation_count"] == 1

    @pytest.mark.asyncio
    async def test_moving_donation_moves_balance(
        self, client: AsyncClient, treasurer_headers: dict, test_pocket, other_pocket, zakat_category
    ):
        created = await create_donation(client, treasurer_headers, donation_payload(
            test_pocket.id, [{"category_id": zakat_category.id, "amount": 1000}]
        ))
        await client.put(
            f"/api/v1/donations/{created['id']}",
            json={"pocket_id": other_pocket.id},
            headers=treasurer_headers,
        )
        assert Decimal((await get_summary(client, treasurer_headers, test_pocket.id))["balance"]) == 0
        assert Decimal((await get_summary(client, treasurer_headers, other_pocket.id))["balance"]) == Decimal("1000")

    @pytest.mark.asyncio
    async def test_list_pockets_with_balances(
        self, client: AsyncClient, treasurer_headers: dict, viewer_headers: dict,
        test_pocket, other_pocket, inactive_pocket, zakat_category
    ):
        await create_donation(client, treasurer_headers, donation_payload(
            test_pocket.id, [{"category_id": zakat_category.id, "amount": 2500}]
        ))

        response = await client.get("/api/v1/pockets", headers=viewer_headers)
        assert response.status_code == 200
        pockets = response.json()["data"]
        # Active pockets only, ordered by name
        assert [p["name"] for p in pockets] == ["Kas Pembangunan", "Kas Umum"]
        balances = {p["name"]: Decimal(p["current_balance"]) for p in pockets}
        assert balances == {"Kas Pembangunan": Decimal("0"), "Kas Umum": Decimal("2500")}

        response = await client.get("/api/v1/pockets?include_inactive=true", headers=viewer_headers)
        assert len(response.json()["data"]) == 3

    @pytest.mark.asyncio
    async def test_summary_unknown_pocket(self, client: AsyncClient, viewer_headers: dict):
        response = await client.get(
            f"/api/v1/pockets/{MISSING_ID}/summary", headers=viewer_headers
        )
        assert response.status_code == 404
        assert response.json()["error"]["message"] == "Pocket not found"


class TestPocketCRUD:
    """Pocket management."""

    @pytest.mark.asyncio
    async def test_get_pocket(self, client: AsyncClient, viewer_headers: dict, test_pocket):
        response = await client.get(f"/api/v1/pockets/{test_pocket.id}", headers=viewer_headers)
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["id"] == test_pocket.id
        assert Decimal(data["current_balance"]) == 0

    @pytest.mark.asyncio
    async def test_get_pocket_invalid_id(self, client: AsyncClient, viewer_headers: dict):
        response = await client.get("/api/v1/pockets/not-a-uuid", headers=viewer_headers)
        assert response.status_code == 400
        assert "pocket_id" in response.json()["error"]["details"]

    @pytest.mark.asyncio
    async def test_admin_creates_pocket(self, client: AsyncClient, admin_headers: dict):
        response = await client.post(
            "/api/v1/pockets",
            json={"name": "Kas Sawah", "description": "Hasil sawah"},
            headers=admin_headers,
        )
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["name"] == "Kas Sawah"
        assert data["is_active"] is True
        assert Decimal(data["current_balance"]) == 0

    @pytest.mark.asyncio
    async def test_duplicate_pocket_name(self, client: AsyncClient, admin_headers: dict, test_pocket):
        response = await client.post("/api/v1/pockets", json={"name": "Kas Umum"}, headers=admin_headers)
        assert response.status_code == 400
        assert "name" in response.json()["error"]["details"]

    @pytest.mark.asyncio
    async def test_name_taken_between_check_and_insert(
        self, client: AsyncClient, admin_headers: dict, db_session: AsyncSession, monkeypatch
    ):
        first = await client.post("/api/v1/pockets", json={"name": "Kas Ramadhan"}, headers=admin_headers)
        assert first.status_code == 201

        async def name_looks_free(*args, **kwargs):
            return None

        # Another request inserts the same name after this one has checked it
        monkeypatch.setattr(pockets_api, "_check_unique_name", name_looks_free)
        response = await client.post("/api/v1/pockets", json={"name": "Kas Ramadhan"}, headers=admin_headers)

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["details"] == {"name": "A pocket with this name already exists"}

        count = await db_session.execute(
            select(func.count()).select_from(Pocket).where(Pocket.name == "Kas Ramadhan")
        )
        assert count.scalar() == 1

    @pytest.mark.asyncio
    async def test_treasurer_cannot_manage_pockets(
        self, client: AsyncClient, treasurer_headers: dict, test_pocket
    ):
        response = await client.post("/api/v1/pockets", json={"name": "Kas Baru"}, headers=treasurer_headers)
        assert response.status_code == 403
        response = await client.put(
            f"/api/v1/pockets/{test_pocket.id}", json={"name": "Kas Lain"}, headers=treasurer_headers
        )
        assert response.status_code == 403
        response = await client.delete(f"/api/v1/pockets/{test_pocket.id}", headers=treasurer_headers)
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_update_pocket(self, client: AsyncClient, admin_headers: dict, test_pocket, other_pocket):
        response = await client.put(
            f"/api/v1/pockets/{test_pocket.id}",
            json={"description": "Operasional", "is_active": False},
            headers=admin_headers,
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["description"] == "Operasional"
        assert data["is_active"] is False

        response = await client.put(
            f"/api/v1/pockets/{test_pocket.id}", json={"name": "Kas Pembangunan"}, headers=admin_headers
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_delete_unused_pocket(self, client: AsyncClient, admin_headers: dict, test_pocket):
        response = await client.delete(f"/api/v1/pockets/{test_pocket.id}", headers=admin_headers)
        assert response.status_code == 200
        response = await client.get(f"/api/v1/pockets/{test_pocket.id}", headers=admin_headers)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_pocket_with_transactions_refused(
        self, client: AsyncClient, admin_headers: dict, test_pocket, utilities_category
    ):
        await create_expense(client, admin_headers, expense_payload(
            test_pocket.id, [{"category_id": utilities_category.id, "amount": 1000}]
        ))
        response = await client.delete(f"/api/v1/pockets/{test_pocket.id}", headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Pocket has transactions and cannot be deleted"


class TestPocketTransactions:
    """Per-pocket donation and expense listings."""

    @pytest.mark.asyncio
    async def test_pocket_donations_and_expenses(
        self, client: AsyncClient, treasurer_headers: dict, viewer_headers: dict,
        test_pocket, other_pocket, zakat_category, utilities_category
    ):
        mine = await create_donation(client, treasurer_headers, donation_payload(
            test_pocket.id, [{"category_id": zakat_category.id, "amount": 1000}]
        ))
        await create_donation(client, treasurer_headers, donation_payload(
            other_pocket.id, [{"category_id": zakat_category.id, "amount": 1000}]
        ))
        expense = await create_expense(client, treasurer_headers, expense_payload(
            test_pocket.id, [{"category_id": utilities_category.id, "amount": 500}]
        ))

        response = await client.get(f"/api/v1/pockets/{test_pocket.id}/donations", headers=viewer_headers)
        assert response.status_code == 200
        body = response.json()
        assert [d["id"] for d in body["data"]] == [mine["id"]]
        assert body["pagination"]["total"] == 1

        response = await client.get(f"/api/v1/pockets/{test_pocket.id}/expenses", headers=viewer_headers)
        assert [e["id"] for e in response.json()["data"]] == [expense["id"]]

        response = await client.get(
            f"/api/v1/pockets/{test_pocket.id}/expenses?status=approved", headers=viewer_headers
        )
        assert response.json()["data"] == []

    @pytest.mark.asyncio
    async def test_unknown_pocket_transactions(self, client: AsyncClient, viewer_headers: dict):
        response = await client.get(
            f"/api/v1/pockets/{MISSING_ID}/donations", headers=viewer_headers
        )
        assert response.status_code == 404
