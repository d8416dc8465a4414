"""
Exception handlers rendering every failure into the error envelope:

    {"success": false, "error": {"code": ..., "message": ..., "details": ...}}
"""
import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from mosman.core.config import settings
from mosman.core.errors import AppError, DatabaseError
from mosman.schemas.common import ErrorBody, ErrorResponse

logger = logging.getLogger(__name__)

_LOCATION_PREFIXES = {"body", "query", "path", "header", "cookie"}


def error_response(
    status_code: int,
    code: str,
    message: str,
    details: Optional[dict[str, Any]] = None,
) -> JSONResponse:
    body = ErrorResponse(error=ErrorBody(code=code, message=message, details=details))
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def error_path(loc: tuple) -> str:
    """('body', 'items', 1, 'amount') -> 'items.1.amount'"""
    parts = [str(part) for part in loc]
    if parts and parts[0] in _LOCATION_PREFIXES:
        parts = parts[1:]
    return ".".join(parts) or "body"


def validation_details(errors: list[dict]) -> dict[str, str]:
    """Map each failing field path to its first error message."""
    details: dict[str, str] = {}
    for error in errors:
        details.setdefault(error_path(tuple(error.get("loc", ()))), error.get("msg", "Invalid value"))
    return details


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message} {exc.details or ''}")
    details = exc.details
    if isinstance(exc, DatabaseError) and settings.is_production:
        details = None
    return error_response(exc.status_code, exc.code, exc.message, details)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return error_response(
        400,
        "VALIDATION_ERROR",
        "Request validation failed",
        validation_details(exc.errors()),
    )


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception(f"Database error on {request.method} {request.url.path}")
    details = None if settings.is_production else {"error": str(exc)}
    return error_response(500, DatabaseError.code, DatabaseError.default_message, details)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        return error_response(404, "NOT_FOUND", f"Route {request.method} {request.url.path} not found")
    return error_response(exc.status_code, "HTTP_ERROR", str(exc.detail))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    message = "An unexpected error occurred" if settings.is_production else str(exc)
    return error_response(500, "INTERNAL_SERVER_ERROR", message)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
