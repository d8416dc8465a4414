"""
User profile management endpoints.

Admin only, except that every user may read their own profile.
Deleting a user deactivates the profile; the identity itself lives with
the identity provider and is not touched.
"""
import logging
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from mosman.api.responses import paginated, success
from mosman.core.config import settings
from mosman.core.deps import get_current_user, require_permission
from mosman.core.errors import AuthorizationError, NotFoundError, ValidationError
from mosman.core.permissions import Action, Resource, can_read_user
from mosman.db.base import get_db
from mosman.models.user_profile import UserProfile, UserRole
from mosman.schemas.common import ApiResponse, PaginatedResponse
from mosman.schemas.user import UserUpdate, UserResponse
from mosman.services.transactions import Page

logger = logging.getLogger(__name__)

router = APIRouter()


def user_to_response(user: UserProfile) -> UserResponse:
    """Convert UserProfile model to UserResponse schema."""
    return UserResponse(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        role=user.role.value if isinstance(user.role, UserRole) else user.role,
        phone=user.phone,
        is_active=user.is_active,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


async def get_user_or_404(db: AsyncSession, user_id: str) -> UserProfile:
    result = await db.execute(select(UserProfile).where(UserProfile.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise NotFoundError("User not found")
    return user


@router.get("", response_model=PaginatedResponse[UserResponse])
async def list_users(
    role: Optional[UserRole] = None,
    is_active: Optional[bool] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_db),
    current_user: UserProfile = Depends(require_permission(Action.READ, Resource.USER)),
):
    """List user profiles, newest first. Requires admin."""
    conditions = []
    if role is not None:
        conditions.append(UserProfile.role == role)
    if is_active is not None:
        conditions.append(UserProfile.is_active == is_active)

    total = (await db.execute(
        select(func.count()).select_from(UserProfile).where(*conditions)
    )).scalar() or 0

    result = await db.execute(
        select(UserProfile)
        .where(*conditions)
        .order_by(UserProfile.created_at.desc(), UserProfile.id)
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    users = result.scalars().all()

    return paginated(
        [user_to_response(u) for u in users],
        Page(items=users, page=page, page_size=page_size, total=total),
    )


@router.get("/{user_id}", response_model=ApiResponse[UserResponse])
async def get_user(
    user_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: UserProfile = Depends(get_current_user),
):
    """Get a user profile. Users may read their own; admins may read anyone's."""
    if not can_read_user(current_user, str(user_id)):
        raise AuthorizationError("Insufficient permissions. Required role(s): admin")
    user = await get_user_or_404(db, str(user_id))
    return success(user_to_response(user))


@router.put("/{user_id}", response_model=ApiResponse[UserResponse])
async def update_user(
    user_id: UUID,
    user_data: UserUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: UserProfile = Depends(require_permission(Action.UPDATE, Resource.USER)),
):
    """Update a user's name, role, phone or active flag. Requires admin."""
    user = await get_user_or_404(db, str(user_id))

    update_data = user_data.model_dump(exclude_unset=True)
    for name in ("full_name", "role", "is_active"):
        if name in update_data and update_data[name] is None:
            raise ValidationError(details={name: "Field cannot be null"})
    if user.id == current_user.id and (
        update_data.get("is_active") is False
        or update_data.get("role", UserRole.ADMIN) != UserRole.ADMIN
    ):
        raise ValidationError("Admins cannot demote or deactivate themselves")

    for field, value in update_data.items():
        setattr(user, field, value)
    user.updated_at = datetime.now(timezone.utc)

    await db.commit()
    await db.refresh(user)

    logger.info(f"User updated: id={user.id}, fields={sorted(update_data)}, by={current_user.id}")
    return success(user_to_response(user), "User updated successfully")


@router.delete("/{user_id}", response_model=ApiResponse[None])
async def deactivate_user(
    user_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: UserProfile = Depends(require_permission(Action.DELETE, Resource.USER)),
):
    """Deactivate a user profile. Requires admin."""
    user = await get_user_or_404(db, str(user_id))
    if user.id == current_user.id:
        raise ValidationError("Admins cannot deactivate themselves")

    user.is_active = False
    user.updated_at = datetime.now(timezone.utc)
    await db.commit()

    logger.info(f"User deactivated: id={user.id}, by={current_user.id}")
    return success(message="User deactivated successfully")
