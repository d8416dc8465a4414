"""
Health check endpoint. No authentication required.
"""
import logging
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from mosman.core.config import settings
from mosman.db.base import get_db
from mosman.schemas.common import ApiResponse, DatabaseHealth, HealthStatus

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health", response_model=ApiResponse[HealthStatus])
async def health_check(db: AsyncSession = Depends(get_db)):
    """
    Report API and database status.
    Returns 200 when the database answers, 503 (status "degraded") otherwise.
    """
    try:
        await db.execute(text("SELECT 1"))
        database = DatabaseHealth(connected=True, message="Connected successfully")
    except (SQLAlchemyError, OSError) as e:
        logger.warning(f"Health check database query failed: {e}")
        database = DatabaseHealth(
            connected=False,
            message="Database unavailable" if settings.is_production else str(e),
        )
        await db.rollback()

    health = HealthStatus(
        status="healthy" if database.connected else "degraded",
        timestamp=datetime.now(timezone.utc),
        version=settings.API_VERSION,
        environment=settings.APP_ENV,
        database=database,
    )
    body = ApiResponse[HealthStatus](data=health)
    return JSONResponse(
        status_code=status.HTTP_200_OK if database.connected else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=body.model_dump(mode="json", exclude_none=True),
    )
