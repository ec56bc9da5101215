"""
Database models package.
"""

from finance_tracker.models.account import Account, AccountAdjustment, AccountType
from finance_tracker.models.transaction import (
    Transaction,
    TransactionEdit,
    TransactionType,
    UNCATEGORIZED,
)

__all__ = [
    "Account",
    "AccountAdjustment",
    "AccountType",
    "Transaction",
    "TransactionEdit",
    "TransactionType",
    "UNCATEGORIZED",
]
