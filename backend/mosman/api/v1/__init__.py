"""
Version 1 API routers.

Mounted by the application under ``/api``:

- /health                 - service and database status
- /v1                     - API index
- /v1/auth/me             - current user's profile
- /v1/users               - user profile management (admin)
- /v1/pockets             - pockets, balances and per-pocket transactions
- /v1/categories/{kind}   - donation and expense categories
- /v1/donations           - donations with categorized items
- /v1/expenses            - expenses with categorized items and approval
"""
from fastapi import APIRouter

from mosman.api.responses import success
from mosman.core.config import settings
from mosman.api.v1.health import router as health_router
from mosman.api.v1.auth import router as auth_router
from mosman.api.v1.users import router as users_router
from mosman.api.v1.pockets import router as pockets_router
from mosman.api.v1.categories import router as categories_router
from mosman.api.v1.donations import router as donations_router
from mosman.api.v1.expenses import router as expenses_router

API_V1 = f"/{settings.API_VERSION}"

api_router = APIRouter()

api_router.include_router(health_router, tags=["health"])

v1_router = APIRouter()


@v1_router.get("", tags=["index"])
async def api_index():
    """List the top-level v1 resources."""
    base = f"{settings.API_PREFIX}{API_V1}"
    return success({
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.API_VERSION,
        "endpoints": {
            "auth": f"{base}/auth/me",
            "users": f"{base}/users",
            "pockets": f"{base}/pockets",
            "categories": f"{base}/categories",
            "donations": f"{base}/donations",
            "expenses": f"{base}/expenses",
        },
    })


v1_router.include_router(auth_router, prefix="/auth", tags=["auth"])
v1_router.include_router(users_router, prefix="/users", tags=["users"])
v1_router.include_router(pockets_router, prefix="/pockets", tags=["pockets"])
v1_router.include_router(categories_router, prefix="/categories", tags=["categories"])
v1_router.include_router(donations_router, prefix="/donations", tags=["donations"])
v1_router.include_router(expenses_router, prefix="/expenses", tags=["expenses"])

api_router.include_router(v1_router, prefix=API_V1)

__all__ = ["api_router"]
