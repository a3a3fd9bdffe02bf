from enum import Enum


class TransactionType(str, Enum):
    EXPENSE = "EXPENSE"
    INCOME = "INCOME"


class Recurrence(str, Enum):
    """Declared repeat interval of a recurring transaction.

    Stored and returned as-is; nothing generates future occurrences from it.
    """

    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"
