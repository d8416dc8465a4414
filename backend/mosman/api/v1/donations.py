"""
Donation endpoints.

Access: reads for any authenticated user; create/update for admin and
treasurer; delete for admin only.
"""
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from mosman.api.responses import paginated, success
from mosman.core.config import settings
from mosman.core.deps import require_permission
from mosman.core.permissions import Action, Resource
from mosman.db.base import get_db
from mosman.models.donation import Donation, DonationItem, PaymentMethod
from mosman.models.user_profile import UserProfile
from mosman.schemas.common import ApiResponse, CalendarDate, PaginatedResponse
from mosman.schemas.donation import (
    DonationCreate, DonationUpdate, DonationResponse, DonationItemResponse
)
from mosman.services.transactions import (
    DONATION, LineItemTransactionService, TransactionFilters
)

router = APIRouter()


def donation_item_to_response(item: DonationItem) -> DonationItemResponse:
    """Convert DonationItem model to DonationItemResponse schema."""
    return DonationItemResponse(
        id=item.id,
        donation_id=item.donation_id,
        category_id=item.category_id,
        category_name=item.category.name if item.category else "Unknown",
        amount=item.amount,
        description=item.description,
        created_at=item.created_at,
        updated_at=item.updated_at,
    )


def donation_to_response(donation: Donation) -> DonationResponse:
    """Convert Donation model (with pocket and items loaded) to DonationResponse schema."""
    return DonationResponse(
        id=donation.id,
        pocket_id=donation.pocket_id,
        pocket_name=donation.pocket.name if donation.pocket else "Unknown",
        donor_name=donation.donor_name,
        is_anonymous=donation.is_anonymous,
        payment_method=donation.payment_method.value if isinstance(donation.payment_method, PaymentMethod) else donation.payment_method,
        receipt_url=donation.receipt_url,
        notes=donation.notes,
        donation_date=donation.donation_date,
        total_amount=donation.total_amount,
        items=[donation_item_to_response(item) for item in donation.items],
        recorded_by=donation.recorded_by,
        created_at=donation.created_at,
        updated_at=donation.updated_at,
    )


async def list_donations_page(
    db: AsyncSession,
    filters: TransactionFilters,
    page: int,
    page_size: int,
) -> PaginatedResponse[DonationResponse]:
    result = await LineItemTransactionService(db, DONATION).list_transactions(filters, page, page_size)
    return paginated([donation_to_response(d) for d in result.items], result)


@router.get("", response_model=PaginatedResponse[DonationResponse])
async def list_donations(
    pocket_id: Optional[UUID] = None,
    category_id: Optional[UUID] = None,
    start_date: Optional[CalendarDate] = None,
    end_date: Optional[CalendarDate] = None,
    payment_method: Optional[PaymentMethod] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_db),
    current_user: UserProfile = Depends(require_permission(Action.READ, Resource.DONATION)),
):
    """
    List donations, newest first.
    A donation matches ``category_id`` when any of its items uses that category.
    """
    filters = TransactionFilters(
        pocket_id=str(pocket_id) if pocket_id else None,
        category_id=str(category_id) if category_id else None,
        start_date=start_date,
        end_date=end_date,
        extra={"payment_method": payment_method},
    )
    return await list_donations_page(db, filters, page, page_size)


@router.get("/{donation_id}", response_model=ApiResponse[DonationResponse])
async def get_donation(
    donation_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: UserProfile = Depends(require_permission(Action.READ, Resource.DONATION)),
):
    """Get a donation with its items."""
    donation = await LineItemTransactionService(db, DONATION).get(str(donation_id))
    return success(donation_to_response(donation))


@router.post("", response_model=ApiResponse[DonationResponse], status_code=status.HTTP_201_CREATED)
async def create_donation(
    donation_data: DonationCreate,
    db: AsyncSession = Depends(get_db),
    current_user: UserProfile = Depends(require_permission(Action.CREATE, Resource.DONATION)),
):
    """
    Record a donation split across one or more categories.
    The total is the sum of the items.
    """
    donation = await LineItemTransactionService(db, DONATION).create(donation_data, current_user.id)
    await db.commit()
    return success(donation_to_response(donation), "Donation created successfully")


@router.put("/{donation_id}", response_model=ApiResponse[DonationResponse])
async def update_donation(
    donation_id: UUID,
    donation_data: DonationUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: UserProfile = Depends(require_permission(Action.UPDATE, Resource.DONATION)),
):
    """
    Update a donation.
    Supplying ``items`` replaces all existing items; omitting it keeps them.
    """
    donation = await LineItemTransactionService(db, DONATION).update(str(donation_id), donation_data)
    await db.commit()
    return success(donation_to_response(donation), "Donation updated successfully")


@router.delete("/{donation_id}", response_model=ApiResponse[None])
async def delete_donation(
    donation_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: UserProfile = Depends(require_permission(Action.DELETE, Resource.DONATION)),
):
    """Delete a donation together with its items."""
    await LineItemTransactionService(db, DONATION).delete(str(donation_id))
    await db.commit()
    return success(message="Donation deleted successfully")
