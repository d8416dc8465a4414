"""
Request dependencies: authentication and policy checks.
"""
from typing import Callable, Optional
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from mosman.core.errors import AuthenticationError, AuthorizationError
from mosman.core.permissions import Action, Resource, authorize
from mosman.core.security import verify_token
from mosman.db.base import get_db
from mosman.models.user_profile import UserProfile

# auto_error=False so that failures are reported through our own error envelope
bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> UserProfile:
    """Resolve the bearer token to an active user profile."""
    if credentials is None:
        if request.headers.get("Authorization"):
            raise AuthenticationError("Invalid authorization header format. Use: Bearer <token>")
        raise AuthenticationError("Missing authorization header")

    identity = verify_token(credentials.credentials)
    if identity is None:
        raise AuthenticationError("Invalid or expired token")

    result = await db.execute(select(UserProfile).where(UserProfile.id == identity.id))
    profile = result.scalar_one_or_none()

    if profile is None:
        raise AuthorizationError("User profile not found")
    if not profile.is_active:
        raise AuthorizationError("User account is disabled")

    return profile


def require_permission(action: Action, resource: Resource) -> Callable:
    """Dependency factory: current user, checked against the access policy."""
    async def dependency(current_user: UserProfile = Depends(get_current_user)) -> UserProfile:
        return authorize(current_user, action, resource)

    return dependency
