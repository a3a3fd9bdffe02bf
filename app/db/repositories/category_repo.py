from typing import Optional, List, Dict

from sqlalchemy import select, func, insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.category import Category
from app.models.transaction import Transaction


class CategoryRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id_and_user(
        self, category_id: str, user_id: str
    ) -> Optional[Category]:
        """Get category by ID and user ID."""
        result = await self.db.execute(
            select(Category).where(
                Category.id == category_id,
                Category.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_by_name(self, user_id: str, name: str) -> Optional[Category]:
        """Get one of the user's categories by its exact name."""
        result = await self.db.execute(
            select(Category).where(
                Category.user_id == user_id,
                Category.name == name,
            )
        )
        return result.scalar_one_or_none()

    async def list_with_counts(self, user_id: str) -> List[tuple[Category, int]]:
        """List a user's categories by name, each with its transaction count."""
        tx_count = (
            select(
                Transaction.category_id,
                func.count(Transaction.id).label("transaction_count"),
            )
            .where(Transaction.user_id == user_id)
            .group_by(Transaction.category_id)
            .subquery()
        )
        result = await self.db.execute(
            select(Category, func.coalesce(tx_count.c.transaction_count, 0))
            .outerjoin(tx_count, tx_count.c.category_id == Category.id)
            .where(Category.user_id == user_id)
            .order_by(Category.name.asc())
        )
        return [(category, count) for category, count in result.all()]

    async def create(
        self,
        user_id: str,
        name: str,
        icon: Optional[str] = None,
        color: Optional[str] = None,
    ) -> Category:
        """Create a new category. Unset icon/color fall back to column defaults."""
        category = Category(user_id=user_id, name=name)
        if icon is not None:
            category.icon = icon
        if color is not None:
            category.color = color
        self.db.add(category)
        await self.db.flush()
        await self.db.refresh(category)
        return category

    async def create_many(self, user_id: str, categories: List[Dict[str, str]]) -> None:
        """Bulk insert categories for a user."""
        if not categories:
            return
        await self.db.execute(
            insert(Category),
            [{**category, "user_id": user_id} for category in categories],
        )
        await self.db.flush()

    async def update(
        self,
        category: Category,
        name: Optional[str] = None,
        icon: Optional[str] = None,
        color: Optional[str] = None,
    ) -> Category:
        """Update an existing category."""
        if name is not None:
            category.name = name
        if icon is not None:
            category.icon = icon
        if color is not None:
            category.color = color

        await self.db.flush()
        await self.db.refresh(category)
        return category

    async def count_transactions(self, category_id: str, user_id: str) -> int:
        """Count the user's transactions that reference a category."""
        result = await self.db.execute(
            select(func.count(Transaction.id)).where(
                Transaction.category_id == category_id,
                Transaction.user_id == user_id,
            )
        )
        return result.scalar() or 0

    async def delete(self, category: Category) -> None:
        """Delete a category."""
        await self.db.delete(category)
        await self.db.flush()
