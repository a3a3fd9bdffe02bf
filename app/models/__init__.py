from app.models.user import User
from app.models.category import Category
from app.models.transaction import Transaction
from app.models.enums import TransactionType, Recurrence

__all__ = [
    "User",
    "Category",
    "Transaction",
    "TransactionType",
    "Recurrence",
]
