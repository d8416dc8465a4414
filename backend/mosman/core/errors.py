"""
Application error taxonomy.

Every error carries an HTTP status, a stable machine-readable code and an
optional ``details`` mapping. The handlers in ``mosman.api.errors`` render
them into the standard error envelope.
"""
from typing import Any, Optional


class AppError(Exception):
    """Base class for errors that map onto an API error response."""
    status_code: int = 500
    code: str = "INTERNAL_SERVER_ERROR"
    default_message: str = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None, details: Optional[dict[str, Any]] = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.code}: {self.message}>"


class ValidationError(AppError):
    status_code = 400
    code = "VALIDATION_ERROR"
    default_message = "Request validation failed"


class AuthenticationError(AppError):
    status_code = 401
    code = "AUTHENTICATION_ERROR"
    default_message = "Authentication required"


class AuthorizationError(AppError):
    status_code = 403
    code = "AUTHORIZATION_ERROR"
    default_message = "Insufficient permissions"


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Resource not found"


class DatabaseError(AppError):
    status_code = 500
    code = "DATABASE_ERROR"
    default_message = "A database error occurred"
