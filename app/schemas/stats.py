from typing import List

from app.schemas.common import CamelModel
from app.schemas.category import CategorySummary


class TransactionCounts(CamelModel):
    expenses: int
    incomes: int
    total: int


class SummaryResponse(CamelModel):
    total_expenses: float
    total_incomes: float
    balance: float
    transaction_count: TransactionCounts


class CategoryStat(CamelModel):
    category: CategorySummary
    total: float
    count: int
    percentage: float


class CategoryStatsResponse(CamelModel):
    stats: List[CategoryStat]
    grand_total: float


class MonthlyBucket(CamelModel):
    month: str  # "YYYY-MM"
    expenses: float
    incomes: float
    balance: float
