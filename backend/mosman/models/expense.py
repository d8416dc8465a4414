"""
Expense and expense line item models.
"""
from typing import Optional, TYPE_CHECKING
from datetime import date
from decimal import Decimal
from enum import Enum
from sqlalchemy import String, Text, ForeignKey, Numeric, Date, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from mosman.models.base import BaseModel

if TYPE_CHECKING:
    from mosman.models.pocket import Pocket
    from mosman.models.category import ExpenseCategory


class ExpenseStatus(str, Enum):
    """Approval status of an expense. Approved and rejected are terminal."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Expense(BaseModel):
    """
    Expense model.

    Like donations, an expense owns one or more categorized items and its
    total is derived from them. Expenses additionally go through a one-shot
    approval: pending -> approved | rejected.
    """
    __tablename__ = "expenses"

    pocket_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("pockets.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )

    description: Mapped[str] = mapped_column(Text, nullable=False)
    receipt_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    expense_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Use values_callable to store lowercase values in DB
    status: Mapped[ExpenseStatus] = mapped_column(
        SQLEnum(
            ExpenseStatus,
            name="expensestatus",
            create_constraint=True,
            values_callable=lambda x: [e.value for e in x]
        ),
        default=ExpenseStatus.PENDING,
        nullable=False,
        index=True
    )

    # Set when an admin approves or rejects the expense
    approved_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    recorded_by: Mapped[str] = mapped_column(String(36), nullable=False)

    # Relationships
    pocket: Mapped["Pocket"] = relationship("Pocket", foreign_keys=[pocket_id])
    items: Mapped[list["ExpenseItem"]] = relationship(
        "ExpenseItem",
        back_populates="expense",
        cascade="all, delete-orphan",
        order_by="ExpenseItem.position"
    )

    def __repr__(self) -> str:
        return f"<Expense {self.id} ({self.status.value})>"

    @property
    def total_amount(self) -> Decimal:
        """Sum of all item amounts."""
        return sum((item.amount for item in self.items), Decimal(0))

    @property
    def is_resolved(self) -> bool:
        return self.status != ExpenseStatus.PENDING


class ExpenseItem(BaseModel):
    """A categorized allocation belonging to exactly one expense."""
    __tablename__ = "expense_items"

    expense_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("expenses.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    category_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("expense_categories.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )

    # Order of the item within its expense
    position: Mapped[int] = mapped_column(default=0, nullable=False)

    amount: Mapped[Decimal] = mapped_column(Numeric(precision=15, scale=2), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # Relationships
    expense: Mapped["Expense"] = relationship("Expense", back_populates="items")
    category: Mapped["ExpenseCategory"] = relationship("ExpenseCategory")

    def __repr__(self) -> str:
        return f"<ExpenseItem {self.category_id}: {self.amount}>"
