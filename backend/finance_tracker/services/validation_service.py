"""
Transaction validation and batch validation with running-balance simulation.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Sequence

from finance_tracker.models.account import AccountType
from finance_tracker.models.transaction import TransactionType, UNCATEGORIZED
from finance_tracker.schemas.transaction import CandidateTransaction, UNNAMED_TRANSACTION
from finance_tracker.services.deduplication_service import DuplicatePolicy, check_for_duplicates

logger = logging.getLogger(__name__)

DEBIT_SOURCE = (TransactionType.expense, TransactionType.transfer)
CREDIT_DESTINATION = (TransactionType.income, TransactionType.reimbursement, TransactionType.transfer)


@dataclass
class ValidationResult:
    is_valid: bool
    errors: List[str] = field(default_factory=list)


@dataclass
class InvalidTransaction:
    transaction: CandidateTransaction
    errors: List[str]


@dataclass
class DuplicatePair:
    new_transaction: CandidateTransaction
    existing_transaction: Any


@dataclass
class BatchValidationResult:
    valid: List[CandidateTransaction] = field(default_factory=list)
    invalid: List[InvalidTransaction] = field(default_factory=list)
    duplicates: List[DuplicatePair] = field(default_factory=list)


def _has_funds(account: Any, amount: Decimal, balances: Optional[Mapping[str, Decimal]]) -> bool:
    # Credit accounts have no balance floor
    if account.account_type == AccountType.credit:
        return True
    available = balances.get(account.id) if balances is not None else None
    if available is None:
        available = Decimal(account.balance or 0)
    return amount <= available


def validate_transaction(
    transaction: Any,
    accounts: Sequence[Any],
    balances: Optional[Mapping[str, Decimal]] = None
) -> ValidationResult:
    """
    Check required fields and type-specific account rules.

    All applicable errors are collected. Funds are checked against
    ``balances`` (account id -> projected balance) when given, otherwise
    against each account's stored balance.
    """
    errors: List[str] = []
    by_id = {a.id: a for a in accounts}
    source_id = transaction.source_account_id or None
    destination_id = transaction.destination_account_id or None
    source = by_id.get(source_id) if source_id else None
    destination = by_id.get(destination_id) if destination_id else None
    amount = Decimal(transaction.amount or 0)

    if amount <= 0:
        errors.append("Amount must be greater than 0")

    if not transaction.date:
        errors.append("Date is required")

    if not transaction.type:
        errors.append("Transaction type is required")

    if source_id and source is None:
        errors.append(f"Source account {source_id} not found")
    if destination_id and destination is None:
        errors.append(f"Destination account {destination_id} not found")

    txn_type = transaction.type
    if txn_type == TransactionType.transfer:
        if not source_id or not destination_id:
            errors.append("Transfer requires both source and destination accounts")
        elif source_id == destination_id:
            errors.append("Source and destination accounts must be different")
        if source is not None and amount > 0 and not _has_funds(source, amount, balances):
            errors.append("Insufficient funds in source account")

    elif txn_type == TransactionType.expense:
        if not source_id:
            errors.append("Source account is required for expense")
        if source is not None and amount > 0 and not _has_funds(source, amount, balances):
            errors.append("Insufficient funds in source account")

    elif txn_type == TransactionType.income:
        if not destination_id:
            errors.append("Destination account is required for income")

    return ValidationResult(is_valid=not errors, errors=errors)


def sanitize(candidate: CandidateTransaction) -> CandidateTransaction:
    """Replace missing fields with explicit defaults."""
    return candidate.model_copy(update={
        "description": candidate.description or UNNAMED_TRANSACTION,
        "amount": candidate.amount if candidate.amount is not None else Decimal("0"),
        "type": candidate.type or TransactionType.expense,
        "category": candidate.category or UNCATEGORIZED,
        "source_account_id": candidate.source_account_id or None,
        "destination_account_id": candidate.destination_account_id or None,
        "is_edited": bool(candidate.is_edited),
    })


def apply_to_balances(balances: Dict[str, Decimal], transaction: Any) -> None:
    """Project a transaction onto an account id -> balance map."""
    amount = Decimal(transaction.amount)
    if transaction.type in DEBIT_SOURCE and transaction.source_account_id:
        balances[transaction.source_account_id] = (
            balances.get(transaction.source_account_id, Decimal("0")) - amount
        )
    if transaction.type in CREDIT_DESTINATION and transaction.destination_account_id:
        balances[transaction.destination_account_id] = (
            balances.get(transaction.destination_account_id, Decimal("0")) + amount
        )


def validate_transaction_batch(
    transactions: Sequence[CandidateTransaction],
    accounts: Sequence[Any],
    existing_transactions: Sequence[Any],
    policy: Optional[DuplicatePolicy] = None
) -> BatchValidationResult:
    """
    Partition candidates into valid, invalid and duplicates, in input order.

    Valid candidates are projected onto a batch-local running balance, so
    later candidates touching the same account are checked against what the
    earlier ones left behind rather than the stored balance.
    """
    policy = policy or DuplicatePolicy.from_settings()
    result = BatchValidationResult()
    balances: Dict[str, Decimal] = {a.id: Decimal(a.balance or 0) for a in accounts}

    for raw in transactions:
        transaction = sanitize(raw)

        dupe_check = check_for_duplicates(transaction, existing_transactions, policy)
        if dupe_check.is_duplicate:
            result.duplicates.append(DuplicatePair(transaction, dupe_check.existing_transaction))
            continue

        validation = validate_transaction(transaction, accounts, balances)
        if not validation.is_valid:
            result.invalid.append(InvalidTransaction(transaction, validation.errors))
            continue

        try:
            projected = dict(balances)
            apply_to_balances(projected, transaction)
        except Exception:
            logger.exception("Balance simulation failed for transaction on %s", transaction.date)
            result.invalid.append(InvalidTransaction(transaction, ["Failed to update account balance"]))
            continue

        balances = projected
        result.valid.append(transaction)

    logger.info(
        "Validated batch: %d valid, %d invalid, %d duplicates",
        len(result.valid), len(result.invalid), len(result.duplicates)
    )
    return result

