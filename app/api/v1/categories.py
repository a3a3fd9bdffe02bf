import logging
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, get_current_db_user
from app.core.exceptions import ResourceNotFoundError, BusinessRuleError
from app.db.repositories.category_repo import CategoryRepository
from app.models.user import User
from app.schemas.category import (
    CategoryCreate,
    CategoryUpdate,
    CategoryResponse,
    CategoryWithCount,
)
from app.schemas.common import ApiResponse

logger = logging.getLogger(__name__)

router = APIRouter()

CATEGORY_NOT_FOUND = "Category not found"
DUPLICATE_NAME = "A category with this name already exists."


@router.get("", response_model=ApiResponse[List[CategoryWithCount]])
async def list_categories(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_db_user),
):
    """List the user's categories by name with their transaction counts."""
    rows = await CategoryRepository(db).list_with_counts(current_user.id)

    categories = []
    for category, count in rows:
        item = CategoryWithCount.model_validate(category)
        item.transaction_count = count
        categories.append(item)

    return ApiResponse(data=categories)


@router.post(
    "",
    response_model=ApiResponse[CategoryResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_category(
    payload: CategoryCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_db_user),
):
    category_repo = CategoryRepository(db)

    if await category_repo.get_by_name(current_user.id, payload.name):
        raise BusinessRuleError(DUPLICATE_NAME, details={"name": payload.name})

    category = await category_repo.create(
        user_id=current_user.id,
        name=payload.name,
        icon=payload.icon,
        color=payload.color,
    )

    return ApiResponse(
        message="Category created successfully.",
        data=CategoryResponse.model_validate(category),
    )


@router.put("/{category_id}", response_model=ApiResponse[CategoryResponse])
async def update_category(
    category_id: str,
    update_data: CategoryUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_db_user),
):
    """
    Update a category's name, icon or color.

    Renaming onto another of the user's category names is rejected.
    """
    category_repo = CategoryRepository(db)

    # Verify ownership
    category = await category_repo.get_by_id_and_user(
        category_id=category_id,
        user_id=current_user.id,
    )

    if not category:
        raise ResourceNotFoundError(CATEGORY_NOT_FOUND)

    if update_data.name is not None and update_data.name != category.name:
        existing = await category_repo.get_by_name(current_user.id, update_data.name)
        if existing and existing.id != category.id:
            raise BusinessRuleError(DUPLICATE_NAME, details={"name": update_data.name})

    updated = await category_repo.update(
        category,
        name=update_data.name,
        icon=update_data.icon,
        color=update_data.color,
    )

    return ApiResponse(
        message="Category updated successfully.",
        data=CategoryResponse.model_validate(updated),
    )


@router.delete("/{category_id}", response_model=ApiResponse)
async def delete_category(
    category_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_db_user),
):
    """Delete a category that no transaction references."""
    category_repo = CategoryRepository(db)

    # Verify ownership
    category = await category_repo.get_by_id_and_user(
        category_id=category_id,
        user_id=current_user.id,
    )

    if not category:
        raise ResourceNotFoundError(CATEGORY_NOT_FOUND)

    in_use = await category_repo.count_transactions(category.id, current_user.id)
    if in_use > 0:
        raise BusinessRuleError(
            f"Cannot delete this category. It is used by {in_use} transaction(s).",
            details={"transaction_count": in_use},
        )

    await category_repo.delete(category)
    logger.info(f"Deleted category {category_id} for user {current_user.id}")

    return ApiResponse(message="Category deleted successfully.")
