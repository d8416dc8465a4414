"""
Pydantic schemas shared by donation and expense line items.
"""
from typing import Optional
from pydantic import BaseModel, Field
from pydantic_core import PydanticCustomError

from mosman.schemas.common import Money, UUIDStr


class LineItemCreate(BaseModel):
    """A categorized allocation within a donation or expense."""
    category_id: UUIDStr
    amount: Money
    description: Optional[str] = Field(None, max_length=500)


def reject_null_items(value: Optional[list[LineItemCreate]]) -> list[LineItemCreate]:
    """Items may be omitted from an update, but never set to null."""
    if value is None:
        raise PydanticCustomError("items_null", "Items cannot be null")
    return value
