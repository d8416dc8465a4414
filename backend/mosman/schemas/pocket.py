"""
Pydantic schemas for Pocket endpoints.
"""
from typing import Optional
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field


class PocketCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)
    is_active: bool = True


class PocketUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)
    is_active: Optional[bool] = None


class PocketResponse(BaseModel):
    """Pocket with its balance computed from transactions."""
    id: str
    name: str
    description: Optional[str] = None
    is_active: bool
    current_balance: Decimal
    created_at: datetime
    updated_at: datetime


class PocketSummary(BaseModel):
    """Aggregated totals for a pocket."""
    id: str
    name: str
    description: Optional[str] = None
    is_active: bool
    total_donations: Decimal
    total_expenses: Decimal
    pending_expenses: Decimal
    balance: Decimal
    donation_count: int
    expense_count: int
