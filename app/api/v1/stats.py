import logging
from datetime import date
from typing import Optional, List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, get_current_db_user
from app.core.exceptions import BusinessRuleError
from app.models.enums import TransactionType
from app.models.user import User
from app.schemas.common import ApiResponse
from app.schemas.stats import SummaryResponse, CategoryStatsResponse, MonthlyBucket
from app.schemas.transaction import TransactionResponse
from app.services.date_range import resolve_date_range
from app.services.stats_service import StatsService

logger = logging.getLogger(__name__)

router = APIRouter()


def parse_breakdown_type(value: str) -> TransactionType:
    try:
        return TransactionType(value.strip().upper())
    except ValueError as e:
        raise BusinessRuleError(
            f"Invalid type '{value}', expected EXPENSE or INCOME", details={"type": value}
        ) from e


@router.get("/summary", response_model=ApiResponse[SummaryResponse])
async def get_summary(
    month: Optional[str] = Query(None, description="Month (YYYY-MM)"),
    year: Optional[str] = Query(None, description="Year (YYYY)"),
    start_date: Optional[date] = Query(None, alias="startDate", description="Start date (inclusive)"),
    end_date: Optional[date] = Query(None, alias="endDate", description="End date (inclusive)"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_db_user),
):
    """
    Total expenses, incomes and balance for a period.

    startDate/endDate take precedence over month, which takes precedence over
    year. Without any of them all transactions are included.
    """
    date_range = resolve_date_range(
        month=month, year=year, start_date=start_date, end_date=end_date
    )
    logger.info(
        f"Summary request: user_id={current_user.id}, start={date_range.start}, end={date_range.end}"
    )

    summary = await StatsService(db).get_summary(current_user.id, date_range)
    return ApiResponse(data=summary)


@router.get("/by-category", response_model=ApiResponse[CategoryStatsResponse])
async def get_by_category(
    month: Optional[str] = Query(None, description="Month (YYYY-MM)"),
    year: Optional[str] = Query(None, description="Year (YYYY)"),
    start_date: Optional[date] = Query(None, alias="startDate", description="Start date (inclusive)"),
    end_date: Optional[date] = Query(None, alias="endDate", description="End date (inclusive)"),
    type: str = Query(TransactionType.EXPENSE.value, description="EXPENSE or INCOME, any case"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_db_user),
):
    """Spending (or income) broken down by category, largest first."""
    transaction_type = parse_breakdown_type(type)
    date_range = resolve_date_range(
        month=month, year=year, start_date=start_date, end_date=end_date
    )

    breakdown = await StatsService(db).get_by_category(
        current_user.id, date_range, type=transaction_type
    )
    return ApiResponse(data=breakdown)


@router.get("/monthly", response_model=ApiResponse[List[MonthlyBucket]])
async def get_monthly(
    year: Optional[int] = Query(None, description="Whole calendar year; overrides months"),
    months: int = Query(12, ge=1, le=120, description="Number of trailing months"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_db_user),
):
    """Month-by-month expenses and incomes. Months without transactions are omitted."""
    evolution = await StatsService(db).get_monthly_evolution(
        current_user.id, year=year, months=months
    )
    return ApiResponse(data=evolution)


@router.get("/recent", response_model=ApiResponse[List[TransactionResponse]])
async def get_recent(
    limit: int = Query(5, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_db_user),
):
    recent = await StatsService(db).get_recent(current_user.id, limit=limit)
    return ApiResponse(data=recent)
