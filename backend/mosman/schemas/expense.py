"""
Pydantic schemas for Expense endpoints.
"""
from typing import Optional
from datetime import datetime, date
from decimal import Decimal
from pydantic import AnyHttpUrl, BaseModel, Field, field_validator
from pydantic_core import PydanticCustomError

from mosman.models.expense import ExpenseStatus
from mosman.schemas.common import CalendarDate, UUIDStr
from mosman.schemas.line_item import LineItemCreate, reject_null_items


class ExpenseCreate(BaseModel):
    """Create a new expense with its items. Expenses always start pending."""
    pocket_id: UUIDStr
    description: str = Field(..., min_length=1, max_length=1000)
    receipt_url: Optional[AnyHttpUrl] = None
    expense_date: CalendarDate
    notes: Optional[str] = Field(None, max_length=1000)
    items: list[LineItemCreate] = Field(..., min_length=1)


class ExpenseUpdate(BaseModel):
    """Update an expense. Status is only changed through approval."""
    pocket_id: Optional[UUIDStr] = None
    description: Optional[str] = Field(None, min_length=1, max_length=1000)
    receipt_url: Optional[AnyHttpUrl] = None
    expense_date: Optional[CalendarDate] = None
    notes: Optional[str] = Field(None, max_length=1000)
    items: Optional[list[LineItemCreate]] = Field(None, min_length=1)

    @field_validator("items")
    @classmethod
    def validate_items(cls, value):
        return reject_null_items(value)


class ExpenseApproval(BaseModel):
    """Resolve a pending expense."""
    status: ExpenseStatus

    @field_validator("status")
    @classmethod
    def validate_resolution(cls, value: ExpenseStatus) -> ExpenseStatus:
        if value == ExpenseStatus.PENDING:
            raise PydanticCustomError(
                "status_resolution",
                "Status must be 'approved' or 'rejected'"
            )
        return value


class ExpenseItemResponse(BaseModel):
    """Expense item with its category name resolved."""
    id: str
    expense_id: str
    category_id: str
    category_name: str
    amount: Decimal
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ExpenseResponse(BaseModel):
    """Expense response."""
    id: str
    pocket_id: str
    pocket_name: str
    description: str
    receipt_url: Optional[str] = None
    expense_date: date
    status: str
    approved_by: Optional[str] = None
    notes: Optional[str] = None
    total_amount: Decimal
    items: list[ExpenseItemResponse] = []
    recorded_by: str
    created_at: datetime
    updated_at: datetime
