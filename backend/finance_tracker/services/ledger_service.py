"""
Account balance application and transaction edit history.

Every balance change is committed together with the record that explains it
(the transaction row or an AccountAdjustment). On failure the session is
rolled back, so callers never see one without the other. Edits that touch
amount, type or accounts are checked against the same rules as new
transactions before they are committed.
"""

import logging
from contextlib import contextmanager
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from finance_tracker.exceptions import InvalidEditError
from finance_tracker.models.account import Account, AccountAdjustment
from finance_tracker.models.transaction import Transaction, TransactionEdit, TransactionType
from finance_tracker.services.deduplication_service import generate_transaction_hash
from finance_tracker.services.validation_service import CREDIT_DESTINATION, DEBIT_SOURCE, validate_transaction

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "date",
    "amount",
    "type",
    "category",
    "description",
    "source_account_id",
    "destination_account_id",
)
BALANCE_FIELDS = ("amount", "type", "source_account_id", "destination_account_id")
HASH_FIELDS = ("date", "amount", "description")


@contextmanager
def _atomic(db: Session):
    try:
        yield
        db.commit()
    except Exception:
        db.rollback()
        raise


def _shift_balances(db: Session, txn: Transaction, sign: int) -> None:
    """Add (sign=1) or remove (sign=-1) the transaction's effect on balances."""
    amount = Decimal(txn.amount) * sign
    if txn.type in DEBIT_SOURCE and txn.source_account_id:
        source = db.get(Account, txn.source_account_id)
        if source is not None:
            source.balance = Decimal(source.balance) - amount
    if txn.type in CREDIT_DESTINATION and txn.destination_account_id:
        destination = db.get(Account, txn.destination_account_id)
        if destination is not None:
            destination.balance = Decimal(destination.balance) + amount


def apply_transaction(db: Session, txn: Transaction) -> Transaction:
    """Persist a transaction and apply it to its accounts in one commit."""
    with _atomic(db):
        db.add(txn)
        _shift_balances(db, txn, 1)
    db.refresh(txn)
    logger.debug("Applied %s %s of %s", txn.type.value, txn.id, txn.amount)
    return txn


def record_adjustment(
    db: Session,
    account: Account,
    amount: Decimal,
    reason: str = ""
) -> AccountAdjustment:
    """Apply a manual balance correction and record it in the same commit."""
    previous = Decimal(account.balance)
    delta = Decimal(amount)
    adjustment = AccountAdjustment(
        account_id=account.id,
        amount=delta,
        reason=reason,
        previous_balance=previous,
        new_balance=previous + delta,
    )
    with _atomic(db):
        db.add(adjustment)
        account.balance = previous + delta
    db.refresh(adjustment)
    return adjustment


def _stringify(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, TransactionType):
        return value.value
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def coerce_field(field: str, value: Any) -> Any:
    """Convert an incoming edit value to the column's Python type."""
    if field not in EDITABLE_FIELDS:
        raise InvalidEditError(f"Field '{field}' cannot be edited")
    try:
        if field == "date":
            return value if isinstance(value, date) else date.fromisoformat(str(value))
        if field == "amount":
            amount = Decimal(str(value))
            if amount <= 0:
                raise InvalidEditError("Amount must be greater than 0")
            return amount
        if field == "type":
            return value if isinstance(value, TransactionType) else TransactionType(value)
    except (ValueError, InvalidOperation) as e:
        raise InvalidEditError(f"Invalid value for {field}: {value!r}") from e
    if field in ("category", "description"):
        if value is None or not str(value).strip():
            raise InvalidEditError(f"{field} cannot be empty")
        return str(value)
    return value or None


def _edit(db: Session, txn: Transaction, field: str, new_value: Any, editor: str) -> Optional[TransactionEdit]:
    old_value = getattr(txn, field)
    if old_value == new_value:
        return None

    affects_balance = field in BALANCE_FIELDS
    if affects_balance:
        _shift_balances(db, txn, -1)
    setattr(txn, field, new_value)
    if affects_balance:
        _shift_balances(db, txn, 1)
    if field in HASH_FIELDS:
        txn.hash = generate_transaction_hash(txn.date, txn.amount, txn.description)

    edit = TransactionEdit(
        field=field,
        old_value=_stringify(old_value),
        new_value=_stringify(new_value),
        editor=editor,
    )
    txn.edits.append(edit)
    txn.is_edited = True
    return edit


def _check_rules(db: Session, txn: Transaction) -> None:
    """Raise InvalidEditError when an edited transaction breaks its type's account rules."""
    accounts = []
    for account_id in (txn.source_account_id, txn.destination_account_id):
        account = db.get(Account, account_id) if account_id else None
        if account is not None:
            accounts.append(account)

    # Funds are checked as if this transaction had not been applied
    balances = {a.id: Decimal(a.balance) for a in accounts}
    if txn.type in DEBIT_SOURCE and txn.source_account_id in balances:
        balances[txn.source_account_id] += Decimal(txn.amount)

    validation = validate_transaction(txn, accounts, balances)
    if not validation.is_valid:
        raise InvalidEditError("; ".join(validation.errors))


def edit_transaction(
    db: Session,
    txn: Transaction,
    field: str,
    new_value: Any,
    editor: str
) -> Optional[TransactionEdit]:
    """
    Replace one field value and append an edit record.
    Returns None when the value is unchanged.
    """
    value = coerce_field(field, new_value)
    with _atomic(db):
        edit = _edit(db, txn, field, value, editor)
        if edit is not None and field in BALANCE_FIELDS:
            _check_rules(db, txn)
    return edit


def edit_fields(
    db: Session,
    txn: Transaction,
    changes: Dict[str, Any],
    editor: str
) -> List[TransactionEdit]:
    """Edit several fields of one transaction in a single commit."""
    values = {name: coerce_field(name, value) for name, value in changes.items()}
    edits = []
    with _atomic(db):
        for name, value in values.items():
            edit = _edit(db, txn, name, value, editor)
            if edit is not None:
                edits.append(edit)
        if any(e.field in BALANCE_FIELDS for e in edits):
            _check_rules(db, txn)
    return edits


def bulk_edit(
    db: Session,
    transactions: Iterable[Transaction],
    field: str,
    new_value: Any,
    editor: str
) -> List[TransactionEdit]:
    """Apply the same field change to many transactions; one edit per change."""
    value = coerce_field(field, new_value)
    edits = []
    with _atomic(db):
        for txn in transactions:
            edit = _edit(db, txn, field, value, editor)
            if edit is not None:
                edits.append(edit)
                if field in BALANCE_FIELDS:
                    _check_rules(db, txn)
    return edits


def delete_transaction(db: Session, txn: Transaction) -> None:
    """Remove a transaction and undo its effect on account balances."""
    with _atomic(db):
        _shift_balances(db, txn, -1)
        db.delete(txn)


def get_transaction_history(txn: Transaction) -> List[TransactionEdit]:
    """Edits newest first."""
    return list(reversed(txn.edits))
