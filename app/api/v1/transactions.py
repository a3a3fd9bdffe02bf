from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, get_current_db_user
from app.core.exceptions import ResourceNotFoundError, BusinessRuleError
from app.db.repositories.category_repo import CategoryRepository
from app.db.repositories.transaction_repo import TransactionRepository
from app.models.enums import TransactionType
from app.models.user import User
from app.schemas.common import ApiResponse, Pagination
from app.schemas.transaction import (
    TransactionCreate,
    TransactionUpdate,
    TransactionResponse,
    TransactionListResponse,
)
from app.services.date_range import resolve_date_range

router = APIRouter()

TRANSACTION_NOT_FOUND = "Transaction not found."
CATEGORY_NOT_OWNED = "Category not found or not authorized."

# Columns that cannot be cleared by a partial update
NON_NULLABLE_FIELDS = ("amount", "type", "category_id", "date", "is_recurring")


def parse_type_filter(value: Optional[str]) -> Optional[TransactionType]:
    """Accept EXPENSE/INCOME in any case; anything else means no type filter."""
    if not value:
        return None
    try:
        return TransactionType(value.upper())
    except ValueError:
        return None


async def ensure_category_owned(db: AsyncSession, category_id: str, user_id: str) -> None:
    category = await CategoryRepository(db).get_by_id_and_user(category_id, user_id)
    if category is None:
        raise BusinessRuleError(CATEGORY_NOT_OWNED, details={"category_id": category_id})


@router.get("", response_model=ApiResponse[TransactionListResponse])
async def list_transactions(
    month: Optional[str] = Query(None, description="Filter by month (YYYY-MM)"),
    type: Optional[str] = Query(None, description="EXPENSE or INCOME"),
    category_id: Optional[str] = Query(None, alias="categoryId", description="Filter by category"),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_db_user),
):
    """
    List transactions, newest first.

    Supports filtering by month, type and category. Results are paginated
    with limit/offset.
    """
    transaction_repo = TransactionRepository(db)

    transactions, total = await transaction_repo.get_by_user(
        user_id=current_user.id,
        date_range=resolve_date_range(month=month) if month else None,
        type=parse_type_filter(type),
        category_id=category_id,
        limit=limit,
        offset=offset,
    )

    return ApiResponse(
        data=TransactionListResponse(
            transactions=[TransactionResponse.model_validate(t) for t in transactions],
            pagination=Pagination(
                total=total,
                limit=limit,
                offset=offset,
                has_more=offset + len(transactions) < total,
            ),
        )
    )


@router.get("/{transaction_id}", response_model=ApiResponse[TransactionResponse])
async def get_transaction(
    transaction_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_db_user),
):
    """Get a specific transaction by ID."""
    transaction_repo = TransactionRepository(db)

    transaction = await transaction_repo.get_by_id_and_user(
        transaction_id=transaction_id,
        user_id=current_user.id,
    )

    if not transaction:
        raise ResourceNotFoundError(TRANSACTION_NOT_FOUND)

    return ApiResponse(data=TransactionResponse.model_validate(transaction))


@router.post(
    "",
    response_model=ApiResponse[TransactionResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_transaction(
    payload: TransactionCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_db_user),
):
    """Record an expense or income against one of the user's categories."""
    await ensure_category_owned(db, payload.category_id, current_user.id)

    transaction = await TransactionRepository(db).create(
        user_id=current_user.id,
        category_id=payload.category_id,
        amount=payload.amount,
        type=payload.type,
        date=payload.date or datetime.now(timezone.utc),
        description=payload.description,
        is_recurring=payload.is_recurring,
        recurrence=payload.recurrence,
    )

    return ApiResponse(
        message="Transaction created successfully.",
        data=TransactionResponse.model_validate(transaction),
    )


@router.put("/{transaction_id}", response_model=ApiResponse[TransactionResponse])
async def update_transaction(
    transaction_id: str,
    update_data: TransactionUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_db_user),
):
    """
    Update a transaction.

    Only the fields present in the body are changed.
    """
    transaction_repo = TransactionRepository(db)

    # Verify ownership
    transaction = await transaction_repo.get_by_id_and_user(
        transaction_id=transaction_id,
        user_id=current_user.id,
    )

    if not transaction:
        raise ResourceNotFoundError(TRANSACTION_NOT_FOUND)

    changes = update_data.model_dump(exclude_unset=True)
    for field in NON_NULLABLE_FIELDS:
        if field in changes and changes[field] is None:
            del changes[field]

    if "category_id" in changes:
        await ensure_category_owned(db, changes["category_id"], current_user.id)

    updated = await transaction_repo.update(transaction, **changes)

    return ApiResponse(
        message="Transaction updated successfully.",
        data=TransactionResponse.model_validate(updated),
    )


@router.delete("/{transaction_id}", response_model=ApiResponse)
async def delete_transaction(
    transaction_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_db_user),
):
    """Delete a transaction."""
    transaction_repo = TransactionRepository(db)

    # Verify ownership
    transaction = await transaction_repo.get_by_id_and_user(
        transaction_id=transaction_id,
        user_id=current_user.id,
    )

    if not transaction:
        raise ResourceNotFoundError(TRANSACTION_NOT_FOUND)

    await transaction_repo.delete(transaction)

    return ApiResponse(message="Transaction deleted successfully.")
