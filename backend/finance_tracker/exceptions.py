"""
Domain exceptions.
"""

from typing import List


class FinanceTrackerError(Exception):
    """Base class for errors raised by the finance tracker."""


class DuplicateTransactionError(FinanceTrackerError):
    """The store already holds a transaction with the same date, amount and description."""

    def __init__(self, message: str = "Duplicate transaction detected", existing_id: str = None):
        super().__init__(message)
        self.existing_id = existing_id


class InvalidTransactionError(FinanceTrackerError):
    """A transaction breaks the field or account rules of its type."""

    def __init__(self, errors: List[str]):
        super().__init__("; ".join(errors))
        self.errors = errors


class TransactionNotFoundError(FinanceTrackerError):
    pass


class AccountNotFoundError(FinanceTrackerError):
    pass


class InvalidEditError(FinanceTrackerError):
    """An edit names an unknown field or leaves the transaction invalid."""
