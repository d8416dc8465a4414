"""
Pocket endpoints.

Balances are aggregated from transaction items on every read, using the
elevated database session; nothing is stored on the pocket itself.
"""
import logging
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from mosman.api.responses import success
from mosman.api.v1.donations import list_donations_page
from mosman.api.v1.expenses import list_expenses_page
from mosman.core.config import settings
from mosman.core.deps import require_permission
from mosman.core.errors import NotFoundError, ValidationError
from mosman.core.permissions import Action, Resource
from mosman.db.base import get_admin_db, get_db
from mosman.models.donation import PaymentMethod
from mosman.models.expense import ExpenseStatus
from mosman.models.pocket import Pocket
from mosman.models.user_profile import UserProfile
from mosman.schemas.common import ApiResponse, CalendarDate, PaginatedResponse
from mosman.schemas.donation import DonationResponse
from mosman.schemas.expense import ExpenseResponse
from mosman.schemas.pocket import PocketCreate, PocketUpdate, PocketResponse, PocketSummary
from mosman.services.ledger import (
    PocketTotals, compute_pocket_totals, get_pocket_summary, pocket_is_referenced
)
from mosman.services.transactions import TransactionFilters

logger = logging.getLogger(__name__)

router = APIRouter()


def pocket_to_response(pocket: Pocket, totals: Optional[PocketTotals] = None) -> PocketResponse:
    """Convert Pocket model to PocketResponse schema."""
    totals = totals or PocketTotals()
    return PocketResponse(
        id=pocket.id,
        name=pocket.name,
        description=pocket.description,
        is_active=pocket.is_active,
        current_balance=totals.balance,
        created_at=pocket.created_at,
        updated_at=pocket.updated_at,
    )


async def _get_pocket(db: AsyncSession, pocket_id: str) -> Pocket:
    result = await db.execute(select(Pocket).where(Pocket.id == pocket_id))
    pocket = result.scalar_one_or_none()
    if not pocket:
        raise NotFoundError("Pocket not found")
    return pocket


async def _check_unique_name(db: AsyncSession, name: str, exclude_id: Optional[str] = None) -> None:
    query = select(func.count()).select_from(Pocket).where(Pocket.name == name)
    if exclude_id:
        query = query.where(Pocket.id != exclude_id)
    if (await db.execute(query)).scalar():
        raise ValidationError(details={"name": "A pocket with this name already exists"})


async def _commit_named(db: AsyncSession) -> None:
    """Commit; a concurrent insert of the same name surfaces as the usual name error."""
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ValidationError(details={"name": "A pocket with this name already exists"})


async def _balance_of(admin_db: AsyncSession, pocket_id: str) -> PocketTotals:
    totals = await compute_pocket_totals(admin_db, [pocket_id])
    return totals.get(pocket_id, PocketTotals())


@router.get("", response_model=ApiResponse[list[PocketResponse]])
async def list_pockets(
    include_inactive: bool = False,
    db: AsyncSession = Depends(get_db),
    admin_db: AsyncSession = Depends(get_admin_db),
    current_user: UserProfile = Depends(require_permission(Action.READ, Resource.POCKET)),
):
    """List pockets by name with their current balance. Active pockets only by default."""
    query = select(Pocket).order_by(Pocket.name)
    if not include_inactive:
        query = query.where(Pocket.is_active == True)

    result = await db.execute(query)
    pockets = result.scalars().all()

    totals = await compute_pocket_totals(admin_db, [p.id for p in pockets])
    return success([pocket_to_response(p, totals.get(p.id)) for p in pockets])


@router.get("/{pocket_id}", response_model=ApiResponse[PocketResponse])
async def get_pocket(
    pocket_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin_db: AsyncSession = Depends(get_admin_db),
    current_user: UserProfile = Depends(require_permission(Action.READ, Resource.POCKET)),
):
    """Get a pocket with its current balance."""
    pocket = await _get_pocket(db, str(pocket_id))
    return success(pocket_to_response(pocket, await _balance_of(admin_db, pocket.id)))


@router.post("", response_model=ApiResponse[PocketResponse], status_code=status.HTTP_201_CREATED)
async def create_pocket(
    pocket_data: PocketCreate,
    db: AsyncSession = Depends(get_db),
    current_user: UserProfile = Depends(require_permission(Action.CREATE, Resource.POCKET)),
):
    """Create a pocket. Requires admin."""
    await _check_unique_name(db, pocket_data.name)

    pocket = Pocket(**pocket_data.model_dump())
    db.add(pocket)
    await _commit_named(db)
    await db.refresh(pocket)

    logger.info(f"Pocket created: id={pocket.id}, name={pocket.name}, by={current_user.id}")
    return success(pocket_to_response(pocket), "Pocket created successfully")


@router.put("/{pocket_id}", response_model=ApiResponse[PocketResponse])
async def update_pocket(
    pocket_id: UUID,
    pocket_data: PocketUpdate,
    db: AsyncSession = Depends(get_db),
    admin_db: AsyncSession = Depends(get_admin_db),
    current_user: UserProfile = Depends(require_permission(Action.UPDATE, Resource.POCKET)),
):
    """Update a pocket. Requires admin."""
    pocket = await _get_pocket(db, str(pocket_id))

    update_data = pocket_data.model_dump(exclude_unset=True)
    for name in ("name", "is_active"):
        if name in update_data and update_data[name] is None:
            raise ValidationError(details={name: "Field cannot be null"})
    if "name" in update_data and update_data["name"] != pocket.name:
        await _check_unique_name(db, update_data["name"], exclude_id=pocket.id)

    for field, value in update_data.items():
        setattr(pocket, field, value)
    pocket.updated_at = datetime.now(timezone.utc)

    await _commit_named(db)
    await db.refresh(pocket)

    logger.info(f"Pocket updated: id={pocket.id}, fields={sorted(update_data)}")
    return success(
        pocket_to_response(pocket, await _balance_of(admin_db, pocket.id)),
        "Pocket updated successfully",
    )


@router.delete("/{pocket_id}", response_model=ApiResponse[None])
async def delete_pocket(
    pocket_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: UserProfile = Depends(require_permission(Action.DELETE, Resource.POCKET)),
):
    """
    Delete a pocket. Requires admin.
    Pockets that donations or expenses are attributed to cannot be deleted;
    deactivate them instead.
    """
    pocket = await _get_pocket(db, str(pocket_id))

    if await pocket_is_referenced(db, pocket.id):
        raise ValidationError(
            "Pocket has transactions and cannot be deleted",
            details={"pocket_id": "Deactivate the pocket instead"},
        )

    await db.delete(pocket)
    await db.commit()

    logger.info(f"Pocket deleted: id={pocket_id}, by={current_user.id}")
    return success(message="Pocket deleted successfully")


@router.get("/{pocket_id}/summary", response_model=ApiResponse[PocketSummary])
async def get_summary(
    pocket_id: UUID,
    admin_db: AsyncSession = Depends(get_admin_db),
    current_user: UserProfile = Depends(require_permission(Action.READ, Resource.POCKET)),
):
    """
    Pocket totals: all donations, approved expenses, pending expenses and
    the resulting balance (donations minus approved expenses).
    """
    pocket, totals = await get_pocket_summary(admin_db, str(pocket_id))
    return success(PocketSummary(
        id=pocket.id,
        name=pocket.name,
        description=pocket.description,
        is_active=pocket.is_active,
        total_donations=totals.total_donations,
        total_expenses=totals.total_expenses,
        pending_expenses=totals.pending_expenses,
        balance=totals.balance,
        donation_count=totals.donation_count,
        expense_count=totals.expense_count,
    ))


@router.get("/{pocket_id}/donations", response_model=PaginatedResponse[DonationResponse])
async def list_pocket_donations(
    pocket_id: UUID,
    category_id: Optional[UUID] = None,
    start_date: Optional[CalendarDate] = None,
    end_date: Optional[CalendarDate] = None,
    payment_method: Optional[PaymentMethod] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_db),
    current_user: UserProfile = Depends(require_permission(Action.READ, Resource.DONATION)),
):
    """Donations attributed to a pocket, newest first."""
    pocket = await _get_pocket(db, str(pocket_id))
    filters = TransactionFilters(
        pocket_id=pocket.id,
        category_id=str(category_id) if category_id else None,
        start_date=start_date,
        end_date=end_date,
        extra={"payment_method": payment_method},
    )
    return await list_donations_page(db, filters, page, page_size)


@router.get("/{pocket_id}/expenses", response_model=PaginatedResponse[ExpenseResponse])
async def list_pocket_expenses(
    pocket_id: UUID,
    category_id: Optional[UUID] = None,
    status_filter: Optional[ExpenseStatus] = Query(None, alias="status"),
    start_date: Optional[CalendarDate] = None,
    end_date: Optional[CalendarDate] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_db),
    current_user: UserProfile = Depends(require_permission(Action.READ, Resource.EXPENSE)),
):
    """Expenses attributed to a pocket, newest first."""
    pocket = await _get_pocket(db, str(pocket_id))
    filters = TransactionFilters(
        pocket_id=pocket.id,
        category_id=str(category_id) if category_id else None,
        start_date=start_date,
        end_date=end_date,
        extra={"status": status_filter},
    )
    return await list_expenses_page(db, filters, page, page_size)
