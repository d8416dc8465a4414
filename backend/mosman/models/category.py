"""
Category models for donation and expense line items.
"""
from typing import Optional
from sqlalchemy import String, Text, Boolean
from sqlalchemy.orm import Mapped, mapped_column
from mosman.models.base import BaseModel


class CategoryMixin:
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class DonationCategory(CategoryMixin, BaseModel):
    """Category for donation items (Infaq, Zakat, Sedekah, ...)."""
    __tablename__ = "donation_categories"


class ExpenseCategory(CategoryMixin, BaseModel):
    """Category for expense items (Operasional, Pemeliharaan, ...)."""
    __tablename__ = "expense_categories"
