import logging
from collections import defaultdict
from datetime import date, tzinfo
from typing import Optional, List, Dict

from sqlalchemy import select, and_, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.repositories.transaction_repo import TransactionRepository, date_conditions
from app.models.category import Category
from app.models.enums import TransactionType
from app.models.transaction import Transaction
from app.schemas.category import CategorySummary
from app.schemas.stats import (
    SummaryResponse,
    TransactionCounts,
    CategoryStat,
    CategoryStatsResponse,
    MonthlyBucket,
)
from app.schemas.transaction import TransactionResponse
from app.services.date_range import (
    DateRange,
    get_calendar_timezone,
    month_key,
    trailing_months_range,
    year_range,
)
from app.services.formatting import round_money, percentage

logger = logging.getLogger(__name__)


class StatsService:
    """Aggregations behind the dashboard.

    Every query carries ``Transaction.user_id == user_id`` in its WHERE clause;
    nothing is aggregated across users and filtered afterwards.
    """

    def __init__(self, db: AsyncSession, tz: Optional[tzinfo] = None):
        self.db = db
        self.tz = tz

    @property
    def calendar_tz(self) -> tzinfo:
        return self.tz or get_calendar_timezone()

    async def get_summary(
        self,
        user_id: str,
        date_range: Optional[DateRange] = None,
    ) -> SummaryResponse:
        """Totals and counts of expenses and incomes within the interval."""
        conditions = [Transaction.user_id == user_id]
        conditions.extend(date_conditions(date_range))

        result = await self.db.execute(
            select(
                Transaction.type,
                func.sum(Transaction.amount).label("total"),
                func.count(Transaction.id).label("tx_count"),
            )
            .where(and_(*conditions))
            .group_by(Transaction.type)
        )
        totals: Dict[str, float] = {}
        counts: Dict[str, int] = {}
        for row in result.all():
            totals[row.type] = row.total or 0
            counts[row.type] = row.tx_count or 0

        total_expenses = totals.get(TransactionType.EXPENSE.value, 0)
        total_incomes = totals.get(TransactionType.INCOME.value, 0)
        expense_count = counts.get(TransactionType.EXPENSE.value, 0)
        income_count = counts.get(TransactionType.INCOME.value, 0)

        return SummaryResponse(
            total_expenses=round_money(total_expenses),
            total_incomes=round_money(total_incomes),
            balance=round_money(total_incomes - total_expenses),
            transaction_count=TransactionCounts(
                expenses=expense_count,
                incomes=income_count,
                total=expense_count + income_count,
            ),
        )

    async def get_by_category(
        self,
        user_id: str,
        date_range: Optional[DateRange] = None,
        type: TransactionType = TransactionType.EXPENSE,
    ) -> CategoryStatsResponse:
        """Per-category totals with their share of the grand total.

        Groups are sorted by total, largest first. Percentages are computed from
        the unrounded totals.
        """
        conditions = [
            Transaction.user_id == user_id,
            Transaction.type == TransactionType(type).value,
        ]
        conditions.extend(date_conditions(date_range))

        total = func.sum(Transaction.amount).label("total")
        result = await self.db.execute(
            select(
                Category.id,
                Category.name,
                Category.icon,
                Category.color,
                total,
                func.count(Transaction.id).label("tx_count"),
            )
            .select_from(Transaction)
            .join(
                Category,
                and_(
                    Category.id == Transaction.category_id,
                    Category.user_id == user_id,
                ),
            )
            .where(and_(*conditions))
            .group_by(Category.id, Category.name, Category.icon, Category.color)
            .order_by(total.desc())
        )
        rows = result.all()

        grand_total = sum(row.total or 0 for row in rows)

        stats = [
            CategoryStat(
                category=CategorySummary(
                    id=row.id, name=row.name, icon=row.icon, color=row.color
                ),
                total=round_money(row.total or 0),
                count=row.tx_count,
                percentage=percentage(row.total or 0, grand_total),
            )
            for row in rows
        ]

        return CategoryStatsResponse(stats=stats, grand_total=round_money(grand_total))

    async def get_monthly_evolution(
        self,
        user_id: str,
        year: Optional[int] = None,
        months: int = 12,
        today: Optional[date] = None,
    ) -> List[MonthlyBucket]:
        """Expenses and incomes per calendar month.

        The window is a whole ``year`` when given, otherwise the last ``months``
        months including the current one. Only months with at least one
        transaction appear, oldest first.
        """
        tz = self.calendar_tz
        if year is not None:
            window = year_range(year, tz)
        else:
            window = trailing_months_range(months, today=today, tz=tz)

        conditions = [Transaction.user_id == user_id]
        conditions.extend(date_conditions(window))

        result = await self.db.execute(
            select(Transaction.amount, Transaction.date, Transaction.type).where(
                and_(*conditions)
            )
        )

        buckets = defaultdict(lambda: {"expenses": 0.0, "incomes": 0.0})
        for amount, tx_date, tx_type in result.all():
            key = month_key(tx_date, tz)
            if tx_type == TransactionType.EXPENSE.value:
                buckets[key]["expenses"] += amount
            else:
                buckets[key]["incomes"] += amount

        evolution = []
        for key in sorted(buckets):
            expenses = round_money(buckets[key]["expenses"])
            incomes = round_money(buckets[key]["incomes"])
            evolution.append(
                MonthlyBucket(
                    month=key,
                    expenses=expenses,
                    incomes=incomes,
                    balance=round_money(incomes - expenses),
                )
            )

        logger.debug(
            f"Monthly evolution: user_id={user_id}, window={window.start}..{window.end}, "
            f"buckets={len(evolution)}"
        )
        return evolution

    async def get_recent(self, user_id: str, limit: int = 5) -> List[TransactionResponse]:
        """Latest transactions by date, with their category."""
        transactions = await TransactionRepository(self.db).get_recent(user_id, limit=limit)
        return [TransactionResponse.model_validate(t) for t in transactions]
