"""
Expense endpoints.

Access: reads for any authenticated user; create/update for admin and
treasurer; delete and approval for admin only. Approval is its own
endpoint; the generic update never touches the status.
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
from mosman.models.expense import Expense, ExpenseItem, ExpenseStatus
from mosman.models.user_profile import UserProfile
from mosman.schemas.common import ApiResponse, CalendarDate, PaginatedResponse
from mosman.schemas.expense import (
    ExpenseCreate, ExpenseUpdate, ExpenseApproval, ExpenseResponse, ExpenseItemResponse
)
from mosman.services.transactions import (
    EXPENSE, LineItemTransactionService, TransactionFilters
)

router = APIRouter()


def expense_item_to_response(item: ExpenseItem) -> ExpenseItemResponse:
    """Convert ExpenseItem model to ExpenseItemResponse schema."""
    return ExpenseItemResponse(
        id=item.id,
        expense_id=item.expense_id,
        category_id=item.category_id,
        category_name=item.category.name if item.category else "Unknown",
        amount=item.amount,
        description=item.description,
        created_at=item.created_at,
        updated_at=item.updated_at,
    )


def expense_to_response(expense: Expense) -> ExpenseResponse:
    """Convert Expense model (with pocket and items loaded) to ExpenseResponse schema."""
    return ExpenseResponse(
        id=expense.id,
        pocket_id=expense.pocket_id,
        pocket_name=expense.pocket.name if expense.pocket else "Unknown",
        description=expense.description,
        receipt_url=expense.receipt_url,
        expense_date=expense.expense_date,
        status=expense.status.value if isinstance(expense.status, ExpenseStatus) else expense.status,
        approved_by=expense.approved_by,
        notes=expense.notes,
        total_amount=expense.total_amount,
        items=[expense_item_to_response(item) for item in expense.items],
        recorded_by=expense.recorded_by,
        created_at=expense.created_at,
        updated_at=expense.updated_at,
    )


async def list_expenses_page(
    db: AsyncSession,
    filters: TransactionFilters,
    page: int,
    page_size: int,
) -> PaginatedResponse[ExpenseResponse]:
    result = await LineItemTransactionService(db, EXPENSE).list_transactions(filters, page, page_size)
    return paginated([expense_to_response(e) for e in result.items], result)


@router.get("", response_model=PaginatedResponse[ExpenseResponse])
async def list_expenses(
    pocket_id: Optional[UUID] = None,
    category_id: Optional[UUID] = None,
    status_filter: Optional[ExpenseStatus] = Query(None, alias="status"),
    start_date: Optional[CalendarDate] = None,
    end_date: Optional[CalendarDate] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_db),
    current_user: UserProfile = Depends(require_permission(Action.READ, Resource.EXPENSE)),
):
    """List expenses, newest first, optionally filtered by status."""
    filters = TransactionFilters(
        pocket_id=str(pocket_id) if pocket_id else None,
        category_id=str(category_id) if category_id else None,
        start_date=start_date,
        end_date=end_date,
        extra={"status": status_filter},
    )
    return await list_expenses_page(db, filters, page, page_size)


@router.get("/{expense_id}", response_model=ApiResponse[ExpenseResponse])
async def get_expense(
    expense_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: UserProfile = Depends(require_permission(Action.READ, Resource.EXPENSE)),
):
    """Get an expense with its items."""
    expense = await LineItemTransactionService(db, EXPENSE).get(str(expense_id))
    return success(expense_to_response(expense))


@router.post("", response_model=ApiResponse[ExpenseResponse], status_code=status.HTTP_201_CREATED)
async def create_expense(
    expense_data: ExpenseCreate,
    db: AsyncSession = Depends(get_db),
    current_user: UserProfile = Depends(require_permission(Action.CREATE, Resource.EXPENSE)),
):
    """Record an expense. New expenses are pending until an admin resolves them."""
    expense = await LineItemTransactionService(db, EXPENSE).create(expense_data, current_user.id)
    await db.commit()
    return success(expense_to_response(expense), "Expense created successfully")


@router.put("/{expense_id}", response_model=ApiResponse[ExpenseResponse])
async def update_expense(
    expense_id: UUID,
    expense_data: ExpenseUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: UserProfile = Depends(require_permission(Action.UPDATE, Resource.EXPENSE)),
):
    """
    Update a pending expense.
    Supplying ``items`` replaces all existing items; omitting it keeps them.
    """
    expense = await LineItemTransactionService(db, EXPENSE).update(str(expense_id), expense_data)
    await db.commit()
    return success(expense_to_response(expense), "Expense updated successfully")


@router.put("/{expense_id}/approve", response_model=ApiResponse[ExpenseResponse])
async def approve_expense(
    expense_id: UUID,
    approval: ExpenseApproval,
    db: AsyncSession = Depends(get_db),
    current_user: UserProfile = Depends(require_permission(Action.APPROVE, Resource.EXPENSE)),
):
    """
    Approve or reject a pending expense.
    Requires admin. Approved and rejected are final.
    """
    expense = await LineItemTransactionService(db, EXPENSE).approve(
        str(expense_id), approval.status, current_user.id
    )
    await db.commit()
    return success(expense_to_response(expense), f"Expense {approval.status.value} successfully")


@router.delete("/{expense_id}", response_model=ApiResponse[None])
async def delete_expense(
    expense_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: UserProfile = Depends(require_permission(Action.DELETE, Resource.EXPENSE)),
):
    """Delete an expense together with its items."""
    await LineItemTransactionService(db, EXPENSE).delete(str(expense_id))
    await db.commit()
    return success(message="Expense deleted successfully")
