"""
User profile model.

Credentials and sessions live with the identity provider; this table only
holds what authorization needs (role, active flag) plus display fields.
"""
from typing import Optional
from enum import Enum
from sqlalchemy import String, Boolean, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column
from mosman.models.base import BaseModel


class UserRole(str, Enum):
    """Roles - the only authorization axis."""
    ADMIN = "admin"
    TREASURER = "treasurer"
    VIEWER = "viewer"


class UserProfile(BaseModel):
    """Profile keyed by the identity provider's user id."""
    __tablename__ = "user_profiles"

    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        SQLEnum(
            UserRole,
            name="userrole",
            create_constraint=True,
            values_callable=lambda x: [e.value for e in x]
        ),
        default=UserRole.VIEWER,
        nullable=False,
        index=True
    )
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<UserProfile {self.full_name} ({self.role.value})>"
