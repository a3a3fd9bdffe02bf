from datetime import datetime
from typing import Optional, List, Any

from sqlalchemy import select, func, and_
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.transaction import Transaction
from app.models.enums import TransactionType, Recurrence
from app.services.date_range import DateRange

# Fields a partial update may touch
UPDATABLE_FIELDS = (
    "amount",
    "description",
    "date",
    "type",
    "category_id",
    "is_recurring",
    "recurrence",
)


def date_conditions(date_range: Optional[DateRange]) -> list:
    """Translate a resolved interval into WHERE predicates on Transaction.date."""
    conditions = []
    if date_range is None:
        return conditions
    if date_range.start is not None:
        conditions.append(Transaction.date >= date_range.start)
    if date_range.end is not None:
        conditions.append(Transaction.date <= date_range.end)
    return conditions


def normalize_recurrence(
    is_recurring: bool, recurrence: Optional[Recurrence]
) -> Optional[str]:
    """Keep a recurrence only on recurring transactions."""
    if is_recurring and recurrence is not None:
        return Recurrence(recurrence).value
    return None


class TransactionRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id_and_user(
        self, transaction_id: str, user_id: str
    ) -> Optional[Transaction]:
        """Get transaction by ID and user ID."""
        result = await self.db.execute(
            select(Transaction).where(
                Transaction.id == transaction_id,
                Transaction.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_by_user(
        self,
        user_id: str,
        date_range: Optional[DateRange] = None,
        type: Optional[TransactionType] = None,
        category_id: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[List[Transaction], int]:
        """Get transactions for a user with filters and pagination."""
        # Build filter conditions
        conditions = [Transaction.user_id == user_id]
        conditions.extend(date_conditions(date_range))

        if type is not None:
            conditions.append(Transaction.type == TransactionType(type).value)
        if category_id:
            conditions.append(Transaction.category_id == category_id)

        # Get total count
        count_result = await self.db.execute(
            select(func.count(Transaction.id)).where(and_(*conditions))
        )
        total = count_result.scalar() or 0

        # Get paginated results
        result = await self.db.execute(
            select(Transaction)
            .where(and_(*conditions))
            .order_by(Transaction.date.desc(), Transaction.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        transactions = list(result.scalars().all())

        return transactions, total

    async def get_recent(self, user_id: str, limit: int = 5) -> List[Transaction]:
        """Get the user's most recent transactions by date."""
        result = await self.db.execute(
            select(Transaction)
            .where(Transaction.user_id == user_id)
            .order_by(Transaction.date.desc(), Transaction.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def create(
        self,
        user_id: str,
        category_id: str,
        amount: float,
        type: TransactionType,
        date: datetime,
        description: Optional[str] = None,
        is_recurring: bool = False,
        recurrence: Optional[Recurrence] = None,
    ) -> Transaction:
        """Create a new transaction."""
        transaction = Transaction(
            user_id=user_id,
            category_id=category_id,
            amount=amount,
            type=TransactionType(type).value,
            date=date,
            description=description,
            is_recurring=bool(is_recurring),
            recurrence=normalize_recurrence(is_recurring, recurrence),
        )
        self.db.add(transaction)
        await self.db.flush()
        await self.db.refresh(transaction)
        return transaction

    async def update(self, transaction: Transaction, **changes: Any) -> Transaction:
        """Apply a partial update.

        Only keys present in ``changes`` are written, so an explicit ``None``
        clears a nullable field such as ``description``.
        """
        for field in UPDATABLE_FIELDS:
            if field not in changes or field in ("is_recurring", "recurrence"):
                continue
            value = changes[field]
            if field == "type" and value is not None:
                value = TransactionType(value).value
            setattr(transaction, field, value)

        if "is_recurring" in changes or "recurrence" in changes:
            is_recurring = changes.get("is_recurring")
            if is_recurring is None:
                is_recurring = transaction.is_recurring
            recurrence = changes.get("recurrence", transaction.recurrence)
            transaction.is_recurring = bool(is_recurring)
            transaction.recurrence = normalize_recurrence(is_recurring, recurrence)

        await self.db.flush()
        await self.db.refresh(transaction)
        return transaction

    async def delete(self, transaction: Transaction) -> None:
        """Delete a transaction."""
        await self.db.delete(transaction)
        await self.db.flush()
