"""
Pydantic schemas for user profile endpoints.
"""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field

from mosman.models.user_profile import UserRole

PHONE_PATTERN = r"^\+?[0-9]{10,15}$"


class UserUpdate(BaseModel):
    """Admin update of any user profile."""
    full_name: Optional[str] = Field(None, min_length=1, max_length=255)
    role: Optional[UserRole] = None
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    is_active: Optional[bool] = None


class ProfileUpdate(BaseModel):
    """Self-service update of the caller's own profile."""
    full_name: Optional[str] = Field(None, min_length=1, max_length=255)
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)


class UserResponse(BaseModel):
    id: str
    email: Optional[str] = None
    full_name: str
    role: str
    phone: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime
