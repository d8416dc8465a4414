"""
Line-item transaction service.

Donations and expenses share one shape: a parent record attributed to a
pocket, owning a non-empty ordered list of categorized items. The parent's
total is never stored; it is the sum of its items whenever it is read.

Both kinds are handled by ``LineItemTransactionService``, parameterised by a
``TransactionKind`` describing the models involved and the kind-specific
bits (date column, extra list filters, approval workflow).
"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from math import ceil
from typing import Any, Optional

from pydantic import BaseModel as Schema
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from mosman.core.errors import NotFoundError, ValidationError
from mosman.core.permissions import Resource
from mosman.models.category import DonationCategory, ExpenseCategory
from mosman.models.donation import Donation, DonationItem
from mosman.models.expense import Expense, ExpenseItem, ExpenseStatus
from mosman.models.pocket import Pocket

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransactionKind:
    """Describes one flavour of line-item transaction."""
    name: str
    label: str
    resource: Resource
    model: type
    item_model: type
    category_model: type
    item_parent_key: str
    date_field: str
    # Parent columns that may never be set to null through an update
    required_fields: frozenset[str]
    # Extra equality filters accepted by list_transactions()
    filter_fields: tuple[str, ...] = ()
    has_approval: bool = False

    @property
    def date_column(self):
        return getattr(self.model, self.date_field)

    @property
    def item_parent_column(self):
        return getattr(self.item_model, self.item_parent_key)


DONATION = TransactionKind(
    name="donation",
    label="Donation",
    resource=Resource.DONATION,
    model=Donation,
    item_model=DonationItem,
    category_model=DonationCategory,
    item_parent_key="donation_id",
    date_field="donation_date",
    required_fields=frozenset({"pocket_id", "is_anonymous", "payment_method", "donation_date"}),
    filter_fields=("payment_method",),
)

EXPENSE = TransactionKind(
    name="expense",
    label="Expense",
    resource=Resource.EXPENSE,
    model=Expense,
    item_model=ExpenseItem,
    category_model=ExpenseCategory,
    item_parent_key="expense_id",
    date_field="expense_date",
    required_fields=frozenset({"pocket_id", "description", "expense_date"}),
    filter_fields=("status",),
    has_approval=True,
)


@dataclass
class TransactionFilters:
    """List filters. ``extra`` holds kind-specific equality filters."""
    pocket_id: Optional[str] = None
    category_id: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass
class Page:
    """One page of results plus the numbers needed to render pagination."""
    items: list
    page: int
    page_size: int
    total: int

    @property
    def total_pages(self) -> int:
        return ceil(self.total / self.page_size) if self.total > 0 else 0


def _plain(value: Any) -> Any:
    """Convert validated schema values into column values."""
    # str covers the str-based enums, which the Enum columns accept as-is
    if value is None or isinstance(value, (str, bool, int, Decimal, date)):
        return value
    # URLs and similar wrapper types
    return str(value)


class LineItemTransactionService:
    """Create, update, approve, delete, fetch and list transactions of one kind."""

    def __init__(self, db: AsyncSession, kind: TransactionKind):
        self.db = db
        self.kind = kind

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _load_query(self):
        model = self.kind.model
        return select(model).options(
            selectinload(model.pocket),
            selectinload(model.items).selectinload(self.kind.item_model.category),
        )

    async def get(self, transaction_id: str):
        """Fetch a transaction with its pocket and categorized items."""
        result = await self.db.execute(
            self._load_query()
            .where(self.kind.model.id == transaction_id)
            .execution_options(populate_existing=True)
        )
        transaction = result.scalar_one_or_none()
        if transaction is None:
            raise NotFoundError(f"{self.kind.label} not found")
        return transaction

    async def list_transactions(
        self,
        filters: TransactionFilters,
        page: int = 1,
        page_size: int = 20,
    ) -> Page:
        """List transactions, newest first, with total count for pagination."""
        model = self.kind.model
        conditions = []

        if filters.pocket_id:
            conditions.append(model.pocket_id == filters.pocket_id)
        if filters.start_date:
            conditions.append(self.kind.date_column >= filters.start_date)
        if filters.end_date:
            conditions.append(self.kind.date_column <= filters.end_date)
        if filters.category_id:
            item_model = self.kind.item_model
            conditions.append(
                select(item_model.id)
                .where(
                    self.kind.item_parent_column == model.id,
                    item_model.category_id == filters.category_id,
                )
                .exists()
            )
        for name, value in filters.extra.items():
            if name not in self.kind.filter_fields:
                raise ValidationError(details={name: f"Unsupported filter for {self.kind.name}s"})
            if value is not None:
                conditions.append(getattr(model, name) == value)

        count_query = select(func.count()).select_from(model).where(*conditions)
        total = (await self.db.execute(count_query)).scalar() or 0

        query = (
            self._load_query()
            .where(*conditions)
            .order_by(self.kind.date_column.desc(), model.created_at.desc(), model.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        result = await self.db.execute(query)
        return Page(
            items=list(result.scalars().unique().all()),
            page=page,
            page_size=page_size,
            total=total,
        )

    # ------------------------------------------------------------------
    # Reference checks
    # ------------------------------------------------------------------

    async def _check_pocket(self, pocket_id: str) -> Pocket:
        result = await self.db.execute(select(Pocket).where(Pocket.id == pocket_id))
        pocket = result.scalar_one_or_none()
        if pocket is None:
            raise NotFoundError("Pocket not found", details={"pocket_id": pocket_id})
        if not pocket.is_active:
            raise ValidationError(details={"pocket_id": "Pocket is inactive"})
        return pocket

    async def _check_categories(self, items: list) -> None:
        category_model = self.kind.category_model
        category_ids = {item.category_id for item in items}
        result = await self.db.execute(
            select(category_model).where(category_model.id.in_(category_ids))
        )
        found = {c.id: c for c in result.scalars().all()}

        missing = [cid for cid in category_ids if cid not in found]
        if missing:
            raise NotFoundError(
                "One or more categories not found",
                details={"category_ids": sorted(missing)},
            )

        inactive = {
            f"items.{index}.category_id": "Category is inactive"
            for index, item in enumerate(items)
            if not found[item.category_id].is_active
        }
        if inactive:
            raise ValidationError(details=inactive)

    def _build_items(self, items: list) -> list:
        item_model = self.kind.item_model
        return [
            item_model(
                category_id=item.category_id,
                position=position,
                amount=item.amount,
                description=item.description,
            )
            for position, item in enumerate(items)
        ]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def create(self, data: Schema, actor_id: str):
        """Create a transaction and its items as one unit of work.

        All references are checked before anything is added to the session,
        so a failure never leaves a parent without items behind.
        """
        await self._check_pocket(data.pocket_id)
        await self._check_categories(data.items)

        values = {
            name: _plain(value)
            for name, value in data.model_dump(exclude={"items"}).items()
        }
        transaction = self.kind.model(**values, recorded_by=actor_id)
        if self.kind.has_approval:
            transaction.status = ExpenseStatus.PENDING
        transaction.items = self._build_items(data.items)

        self.db.add(transaction)
        await self.db.flush()

        logger.info(
            f"{self.kind.label} created: id={transaction.id}, pocket={data.pocket_id}, "
            f"items={len(data.items)}, by={actor_id}"
        )
        return await self.get(transaction.id)

    async def update(self, transaction_id: str, data: Schema):
        """Partially update a transaction.

        When ``items`` is supplied the existing items are discarded and the
        new list takes their place; when it is omitted the items are kept.
        """
        transaction = await self.get(transaction_id)

        if self.kind.has_approval and transaction.is_resolved:
            raise ValidationError(
                f"Only pending {self.kind.name}s can be updated",
                details={"status": transaction.status.value},
            )

        changes = data.model_dump(exclude_unset=True, exclude={"items"})
        nulls = sorted(name for name, value in changes.items()
                       if value is None and name in self.kind.required_fields)
        if nulls:
            raise ValidationError(details={name: "Field cannot be null" for name in nulls})

        if changes.get("pocket_id") and changes["pocket_id"] != transaction.pocket_id:
            await self._check_pocket(changes["pocket_id"])

        items = data.items if "items" in data.model_fields_set else None
        if items is not None:
            await self._check_categories(items)

        for name in changes:
            setattr(transaction, name, _plain(getattr(data, name)))

        if items is not None:
            # delete-orphan cascade removes the previous items on flush
            transaction.items = self._build_items(items)

        transaction.updated_at = datetime.now(timezone.utc)
        await self.db.flush()

        logger.info(
            f"{self.kind.label} updated: id={transaction_id}, fields={sorted(changes)}, "
            f"items_replaced={items is not None}"
        )
        return await self.get(transaction_id)

    async def approve(self, transaction_id: str, status: ExpenseStatus, actor_id: str):
        """Resolve a pending transaction as approved or rejected."""
        if not self.kind.has_approval:
            raise ValidationError(f"{self.kind.label}s do not have an approval workflow")
        if status == ExpenseStatus.PENDING:
            raise ValidationError(details={"status": "Status must be 'approved' or 'rejected'"})

        transaction = await self.get(transaction_id)
        if transaction.is_resolved:
            raise ValidationError(
                f"{self.kind.label} has already been {transaction.status.value}",
                details={"status": transaction.status.value},
            )

        transaction.status = status
        transaction.approved_by = actor_id
        transaction.updated_at = datetime.now(timezone.utc)
        await self.db.flush()

        logger.info(f"{self.kind.label} {status.value}: id={transaction_id}, by={actor_id}")
        return await self.get(transaction_id)

    async def delete(self, transaction_id: str) -> None:
        """Delete a transaction; its items go with it."""
        transaction = await self.get(transaction_id)
        await self.db.delete(transaction)
        await self.db.flush()
        logger.info(f"{self.kind.label} deleted: id={transaction_id}")
