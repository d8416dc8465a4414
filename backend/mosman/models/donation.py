"""
Donation and donation line item models.
"""
from typing import Optional, TYPE_CHECKING
from datetime import date
from decimal import Decimal
from enum import Enum
from sqlalchemy import String, Text, ForeignKey, Boolean, Numeric, Date, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from mosman.models.base import BaseModel

if TYPE_CHECKING:
    from mosman.models.pocket import Pocket
    from mosman.models.category import DonationCategory


class PaymentMethod(str, Enum):
    """How a donation was received."""
    CASH = "cash"
    TRANSFER = "transfer"
    QRIS = "qris"


class Donation(BaseModel):
    """
    Donation model.

    A donation is split into one or more items, each allocated to a donation
    category. The donation's total is always the sum of its items.
    """
    __tablename__ = "donations"

    pocket_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("pockets.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )

    donor_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    is_anonymous: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Use values_callable to store lowercase values in DB
    payment_method: Mapped[PaymentMethod] = mapped_column(
        SQLEnum(
            PaymentMethod,
            name="paymentmethod",
            create_constraint=True,
            values_callable=lambda x: [e.value for e in x]
        ),
        nullable=False,
        index=True
    )
    receipt_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    donation_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    # Identity of the user who recorded the donation
    recorded_by: Mapped[str] = mapped_column(String(36), nullable=False)

    # Relationships
    pocket: Mapped["Pocket"] = relationship("Pocket", foreign_keys=[pocket_id])
    items: Mapped[list["DonationItem"]] = relationship(
        "DonationItem",
        back_populates="donation",
        cascade="all, delete-orphan",
        order_by="DonationItem.position"
    )

    def __repr__(self) -> str:
        return f"<Donation {self.id} ({self.payment_method.value})>"

    @property
    def total_amount(self) -> Decimal:
        """Sum of all item amounts."""
        return sum((item.amount for item in self.items), Decimal(0))


class DonationItem(BaseModel):
    """A categorized allocation belonging to exactly one donation."""
    __tablename__ = "donation_items"

    donation_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("donations.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    category_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("donation_categories.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )

    # Order of the item within its donation
    position: Mapped[int] = mapped_column(default=0, nullable=False)

    amount: Mapped[Decimal] = mapped_column(Numeric(precision=15, scale=2), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # Relationships
    donation: Mapped["Donation"] = relationship("Donation", back_populates="items")
    category: Mapped["DonationCategory"] = relationship("DonationCategory")

    def __repr__(self) -> str:
        return f"<DonationItem {self.category_id}: {self.amount}>"
