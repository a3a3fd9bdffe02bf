from typing import Optional, Dict, Any


class ExpenseTrackerException(Exception):
    """Base exception for the expense tracker backend."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ResourceNotFoundError(ExpenseTrackerException):
    """Raised when a requested resource is not found.

    Also used when the resource exists but belongs to another user, so that
    callers cannot probe for other tenants' records.
    """

    pass


class BusinessRuleError(ExpenseTrackerException):
    """Raised when a request is well-formed but violates a business rule."""

    pass


class InvalidDateRangeError(ExpenseTrackerException):
    """Raised when month/year filters cannot be turned into a date interval."""

    pass


class AuthenticationError(ExpenseTrackerException):
    """Raised when a request carries no usable credentials."""

    pass
