"""
Mosman Finance API - Main entry point.

Financial record keeping for a mosque:

- Pockets: named funds with balances derived from their transactions
- Donations and expenses: split across categories as line items
- Expense approval by admins
- Role-based access (admin, treasurer, viewer)

All endpoints live under /api; the versioned API under /api/v1.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mosman.api.errors import register_exception_handlers
from mosman.api.v1 import api_router
from mosman.core.config import settings
from mosman.db.base import init_db

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown."""
    # Startup: create missing tables
    await init_db()
    logger.info(f"{settings.APP_NAME} started (env={settings.APP_ENV})")
    yield


app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    description="Mosque financial records: pockets, donations, expenses and approvals.",
    lifespan=lifespan,
    docs_url=f"{settings.API_PREFIX}/docs" if settings.DEBUG else None,
    redoc_url=f"{settings.API_PREFIX}/redoc" if settings.DEBUG else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(api_router, prefix=settings.API_PREFIX)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "mosman.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
