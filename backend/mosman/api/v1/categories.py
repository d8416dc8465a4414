"""
Category endpoints for donation and expense categories.

Both registries share one set of routes, selected by the ``kind`` path
segment: ``/categories/donations`` or ``/categories/expenses``.
"""
import logging
from datetime import datetime, timezone
from enum import Enum
from uuid import UUID
from fastapi import APIRouter, Depends, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from mosman.api.responses import success
from mosman.core.deps import require_permission
from mosman.core.errors import NotFoundError, ValidationError
from mosman.core.permissions import Action, Resource
from mosman.db.base import get_db
from mosman.models.user_profile import UserProfile
from mosman.schemas.category import CategoryCreate, CategoryUpdate, CategoryResponse
from mosman.schemas.common import ApiResponse
from mosman.services.transactions import DONATION, EXPENSE, TransactionKind

logger = logging.getLogger(__name__)

router = APIRouter()


class CategoryKind(str, Enum):
    DONATIONS = "donations"
    EXPENSES = "expenses"


KINDS: dict[CategoryKind, TransactionKind] = {
    CategoryKind.DONATIONS: DONATION,
    CategoryKind.EXPENSES: EXPENSE,
}


async def _get_category(db: AsyncSession, kind: TransactionKind, category_id: str):
    model = kind.category_model
    result = await db.execute(select(model).where(model.id == category_id))
    category = result.scalar_one_or_none()
    if not category:
        raise NotFoundError("Category not found")
    return category


async def _check_unique_name(db: AsyncSession, kind: TransactionKind, name: str, exclude_id=None) -> None:
    model = kind.category_model
    query = select(func.count()).select_from(model).where(model.name == name)
    if exclude_id:
        query = query.where(model.id != exclude_id)
    if (await db.execute(query)).scalar():
        raise ValidationError(details={"name": f"Another {kind.name} category already uses this name"})


async def _commit_named(db: AsyncSession, kind: TransactionKind) -> None:
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ValidationError(details={"name": f"Another {kind.name} category already uses this name"})


@router.get("/{kind}", response_model=ApiResponse[list[CategoryResponse]])
async def list_categories(
    kind: CategoryKind,
    include_inactive: bool = False,
    db: AsyncSession = Depends(get_db),
    current_user: UserProfile = Depends(require_permission(Action.READ, Resource.CATEGORY)),
):
    """List categories of one kind by name. Active categories only by default."""
    model = KINDS[kind].category_model
    query = select(model).order_by(model.name)
    if not include_inactive:
        query = query.where(model.is_active == True)

    result = await db.execute(query)
    return success([CategoryResponse.model_validate(c) for c in result.scalars().all()])


@router.get("/{kind}/{category_id}", response_model=ApiResponse[CategoryResponse])
async def get_category(
    kind: CategoryKind,
    category_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: UserProfile = Depends(require_permission(Action.READ, Resource.CATEGORY)),
):
    """Get a category by ID."""
    category = await _get_category(db, KINDS[kind], str(category_id))
    return success(CategoryResponse.model_validate(category))


@router.post("/{kind}", response_model=ApiResponse[CategoryResponse], status_code=status.HTTP_201_CREATED)
async def create_category(
    kind: CategoryKind,
    category_data: CategoryCreate,
    db: AsyncSession = Depends(get_db),
    current_user: UserProfile = Depends(require_permission(Action.CREATE, Resource.CATEGORY)),
):
    """Create a category. Requires admin."""
    transaction_kind = KINDS[kind]
    await _check_unique_name(db, transaction_kind, category_data.name)

    category = transaction_kind.category_model(**category_data.model_dump())
    db.add(category)
    await _commit_named(db, transaction_kind)
    await db.refresh(category)

    logger.info(f"{transaction_kind.label} category created: id={category.id}, name={category.name}")
    return success(CategoryResponse.model_validate(category), "Category created successfully")


@router.put("/{kind}/{category_id}", response_model=ApiResponse[CategoryResponse])
async def update_category(
    kind: CategoryKind,
    category_id: UUID,
    category_data: CategoryUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: UserProfile = Depends(require_permission(Action.UPDATE, Resource.CATEGORY)),
):
    """
    Update a category. Requires admin.
    Deactivated categories stay attached to existing items but cannot be
    used for new ones.
    """
    transaction_kind = KINDS[kind]
    category = await _get_category(db, transaction_kind, str(category_id))

    update_data = category_data.model_dump(exclude_unset=True)
    for name in ("name", "is_active"):
        if name in update_data and update_data[name] is None:
            raise ValidationError(details={name: "Field cannot be null"})
    if "name" in update_data and update_data["name"] != category.name:
        await _check_unique_name(db, transaction_kind, update_data["name"], exclude_id=category.id)

    for field, value in update_data.items():
        setattr(category, field, value)
    category.updated_at = datetime.now(timezone.utc)

    await _commit_named(db, transaction_kind)
    await db.refresh(category)

    logger.info(f"{transaction_kind.label} category updated: id={category.id}, fields={sorted(update_data)}")
    return success(CategoryResponse.model_validate(category), "Category updated successfully")


@router.delete("/{kind}/{category_id}", response_model=ApiResponse[None])
async def delete_category(
    kind: CategoryKind,
    category_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: UserProfile = Depends(require_permission(Action.DELETE, Resource.CATEGORY)),
):
    """
    Delete a category. Requires admin.
    Categories used by any item cannot be deleted; deactivate them instead.
    """
    transaction_kind = KINDS[kind]
    category = await _get_category(db, transaction_kind, str(category_id))

    item_model = transaction_kind.item_model
    used = await db.execute(
        select(func.count()).select_from(item_model).where(item_model.category_id == category.id)
    )
    if used.scalar():
        raise ValidationError(
            "Category is used by existing items and cannot be deleted",
            details={"category_id": "Deactivate the category instead"},
        )

    await db.delete(category)
    await db.commit()

    logger.info(f"{transaction_kind.label} category deleted: id={category_id}")
    return success(message="Category deleted successfully")
