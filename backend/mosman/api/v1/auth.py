"""
Current-user endpoints.

Sign-up, login and token refresh happen at the identity provider; this
API only exposes the caller's own profile.
"""
import logging
from datetime import datetime, timezone
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from mosman.api.responses import success
from mosman.api.v1.users import user_to_response
from mosman.core.deps import get_current_user
from mosman.core.errors import ValidationError
from mosman.db.base import get_db
from mosman.models.user_profile import UserProfile
from mosman.schemas.common import ApiResponse
from mosman.schemas.user import ProfileUpdate, UserResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/me", response_model=ApiResponse[UserResponse])
async def get_me(current_user: UserProfile = Depends(get_current_user)):
    """Get the current user's profile."""
    return success(user_to_response(current_user))


@router.put("/me", response_model=ApiResponse[UserResponse])
async def update_me(
    profile_data: ProfileUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: UserProfile = Depends(get_current_user),
):
    """Update the current user's name and phone. Role and active flag are admin-managed."""
    update_data = profile_data.model_dump(exclude_unset=True)
    if "full_name" in update_data and update_data["full_name"] is None:
        raise ValidationError(details={"full_name": "Field cannot be null"})

    for field, value in update_data.items():
        setattr(current_user, field, value)
    current_user.updated_at = datetime.now(timezone.utc)

    await db.commit()
    await db.refresh(current_user)

    logger.info(f"Profile updated: id={current_user.id}, fields={sorted(update_data)}")
    return success(user_to_response(current_user), "Profile updated successfully")
