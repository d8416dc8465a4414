"""
Pydantic schemas for Donation endpoints.
"""
from typing import Optional
from datetime import datetime, date
from decimal import Decimal
from pydantic import AnyHttpUrl, BaseModel, Field, field_validator

from mosman.models.donation import PaymentMethod
from mosman.schemas.common import CalendarDate, UUIDStr
from mosman.schemas.line_item import LineItemCreate, reject_null_items


class DonationCreate(BaseModel):
    """Create a new donation with its items."""
    pocket_id: UUIDStr
    donor_name: Optional[str] = Field(None, min_length=1, max_length=255)
    is_anonymous: bool = False
    payment_method: PaymentMethod
    receipt_url: Optional[AnyHttpUrl] = None
    notes: Optional[str] = Field(None, max_length=1000)
    donation_date: CalendarDate
    items: list[LineItemCreate] = Field(..., min_length=1)


class DonationUpdate(BaseModel):
    """Update a donation. Supplying ``items`` replaces the whole item set."""
    pocket_id: Optional[UUIDStr] = None
    donor_name: Optional[str] = Field(None, min_length=1, max_length=255)
    is_anonymous: Optional[bool] = None
    payment_method: Optional[PaymentMethod] = None
    receipt_url: Optional[AnyHttpUrl] = None
    notes: Optional[str] = Field(None, max_length=1000)
    donation_date: Optional[CalendarDate] = None
    items: Optional[list[LineItemCreate]] = Field(None, min_length=1)

    @field_validator("items")
    @classmethod
    def validate_items(cls, value):
        return reject_null_items(value)


class DonationItemResponse(BaseModel):
    """Donation item with its category name resolved."""
    id: str
    donation_id: str
    category_id: str
    category_name: str
    amount: Decimal
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class DonationResponse(BaseModel):
    """Donation response."""
    id: str
    pocket_id: str
    pocket_name: str
    donor_name: Optional[str] = None
    is_anonymous: bool
    payment_method: str
    receipt_url: Optional[str] = None
    notes: Optional[str] = None
    donation_date: date
    total_amount: Decimal
    items: list[DonationItemResponse] = []
    recorded_by: str
    created_at: datetime
    updated_at: datetime
