"""
Identity provider boundary.

Bearer tokens are JWTs issued by the external auth service and signed with a
shared HS256 secret. Verifying one yields the caller's identity; everything
else about the user (role, active flag) comes from the profile store.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Any
from jose import jwt, JWTError
from .config import settings


@dataclass(frozen=True)
class Identity:
    """Resolved identity of a token bearer."""
    id: str
    email: Optional[str] = None


def create_access_token(
    subject: str,
    email: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
    additional_claims: Optional[dict[str, Any]] = None
) -> str:
    """Create a JWT shaped like the ones the identity provider issues.

    Used by tests and local tooling; production tokens come from the provider.
    """
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
        )

    to_encode = {
        "exp": expire,
        "sub": str(subject),
        "iat": datetime.now(timezone.utc),
        "aud": settings.JWT_AUDIENCE,
        "role": "authenticated",
    }
    if email:
        to_encode["email"] = email

    if additional_claims:
        to_encode.update(additional_claims)

    return jwt.encode(
        to_encode,
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM
    )


def decode_token(token: str) -> Optional[dict]:
    """Decode and validate a JWT token."""
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
        )
    except JWTError:
        return None


def verify_token(token: str) -> Optional[Identity]:
    """Verify a token and return the identity it was issued for."""
    payload = decode_token(token)
    if payload is None or not payload.get("sub"):
        return None
    return Identity(id=payload["sub"], email=payload.get("email"))
