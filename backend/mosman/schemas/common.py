"""
Common schemas and field types used across the application.
"""
import re
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Any, Generic, Optional, TypeVar
from pydantic import AfterValidator, BaseModel, BeforeValidator, Field
from pydantic_core import PydanticCustomError

T = TypeVar("T")

ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
UUID_RE = re.compile(r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$")


def _check_uuid(value: str) -> str:
    # Only the hyphenated 8-4-4-4-12 form; no braces, urn: prefix or bare hex
    if not UUID_RE.fullmatch(value):
        raise PydanticCustomError("uuid_format", "Must be a valid UUID")
    return str(uuid.UUID(value))


def _check_iso_date(value: Any) -> Any:
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not ISO_DATE_RE.match(value):
        raise PydanticCustomError("date_format", "Date must be in YYYY-MM-DD format")
    return value


# Identifier in canonical UUID form
UUIDStr = Annotated[str, AfterValidator(_check_uuid)]

# Calendar date given strictly as YYYY-MM-DD; out-of-range dates are rejected by the date parser
CalendarDate = Annotated[date, BeforeValidator(_check_iso_date)]

# Positive monetary amount with cent precision
Money = Annotated[Decimal, Field(gt=0, max_digits=15, decimal_places=2)]


class Pagination(BaseModel):
    page: int
    pageSize: int
    total: int
    totalPages: int


class ApiResponse(BaseModel, Generic[T]):
    """Standard success envelope."""
    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None


class PaginatedResponse(BaseModel, Generic[T]):
    """Paginated list envelope."""
    success: bool = True
    data: list[T]
    pagination: Pagination


class ErrorBody(BaseModel):
    code: str
    message: str
    details: Optional[dict[str, Any]] = None


class ErrorResponse(BaseModel):
    """Standard error envelope."""
    success: bool = False
    error: ErrorBody


class DatabaseHealth(BaseModel):
    connected: bool
    message: Optional[str] = None


class HealthStatus(BaseModel):
    """Health check payload."""
    status: str
    timestamp: datetime
    version: str
    environment: str
    database: DatabaseHealth
