"""
Pocket ledger.

A pocket's balance is never kept as a running counter. It is aggregated
from the current donation and expense items every time it is asked for:

    balance = sum(donation items) - sum(items of approved expenses)

Pending and rejected expenses do not move the balance; pending ones are
reported separately so a treasurer can see what is about to be spent.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from mosman.core.errors import NotFoundError
from mosman.models.donation import Donation, DonationItem
from mosman.models.expense import Expense, ExpenseItem, ExpenseStatus
from mosman.models.pocket import Pocket

CENT = Decimal("0.01")


def _to_decimal(value) -> Decimal:
    # SQLite hands back floats for SUM over NUMERIC columns
    return Decimal(str(value or 0)).quantize(CENT)


@dataclass
class PocketTotals:
    """Aggregated figures for a single pocket."""
    total_donations: Decimal = Decimal("0.00")
    total_expenses: Decimal = Decimal("0.00")
    pending_expenses: Decimal = Decimal("0.00")
    donation_count: int = 0
    expense_count: int = 0

    @property
    def balance(self) -> Decimal:
        return self.total_donations - self.total_expenses


async def compute_pocket_totals(
    db: AsyncSession,
    pocket_ids: Optional[Iterable[str]] = None,
) -> dict[str, PocketTotals]:
    """Aggregate donations and expenses per pocket.

    Pockets without any transactions are absent from the result; callers
    should fall back to an empty ``PocketTotals``.
    """
    ids = list(pocket_ids) if pocket_ids is not None else None
    totals: dict[str, PocketTotals] = {}

    donation_query = (
        select(
            Donation.pocket_id,
            func.count(func.distinct(Donation.id)).label("count"),
            func.coalesce(func.sum(DonationItem.amount), 0).label("total"),
        )
        .join(DonationItem, DonationItem.donation_id == Donation.id)
        .group_by(Donation.pocket_id)
    )
    if ids is not None:
        donation_query = donation_query.where(Donation.pocket_id.in_(ids))

    for row in (await db.execute(donation_query)).all():
        entry = totals.setdefault(row.pocket_id, PocketTotals())
        entry.total_donations = _to_decimal(row.total)
        entry.donation_count = row.count

    expense_query = (
        select(
            Expense.pocket_id,
            Expense.status,
            func.count(func.distinct(Expense.id)).label("count"),
            func.coalesce(func.sum(ExpenseItem.amount), 0).label("total"),
        )
        .join(ExpenseItem, ExpenseItem.expense_id == Expense.id)
        .where(Expense.status.in_([ExpenseStatus.APPROVED, ExpenseStatus.PENDING]))
        .group_by(Expense.pocket_id, Expense.status)
    )
    if ids is not None:
        expense_query = expense_query.where(Expense.pocket_id.in_(ids))

    for row in (await db.execute(expense_query)).all():
        entry = totals.setdefault(row.pocket_id, PocketTotals())
        if row.status == ExpenseStatus.APPROVED:
            entry.total_expenses = _to_decimal(row.total)
            entry.expense_count = row.count
        else:
            entry.pending_expenses = _to_decimal(row.total)

    return totals


async def get_pocket_summary(db: AsyncSession, pocket_id: str) -> tuple[Pocket, PocketTotals]:
    """Return a pocket together with its freshly computed totals."""
    result = await db.execute(select(Pocket).where(Pocket.id == pocket_id))
    pocket = result.scalar_one_or_none()
    if pocket is None:
        raise NotFoundError("Pocket not found")

    totals = await compute_pocket_totals(db, [pocket_id])
    return pocket, totals.get(pocket_id, PocketTotals())


async def pocket_is_referenced(db: AsyncSession, pocket_id: str) -> bool:
    """True when any donation or expense is attributed to the pocket."""
    for model in (Donation, Expense):
        result = await db.execute(
            select(func.count()).select_from(model).where(model.pocket_id == pocket_id)
        )
        if result.scalar():
            return True
    return False
