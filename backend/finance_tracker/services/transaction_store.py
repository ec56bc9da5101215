"""
SQLAlchemy-backed store for accounts and transactions.
"""

import asyncio
import logging
import threading
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from finance_tracker.exceptions import (
    AccountNotFoundError,
    DuplicateTransactionError,
    InvalidTransactionError,
    TransactionNotFoundError,
)
from finance_tracker.models.account import Account
from finance_tracker.models.transaction import Transaction
from finance_tracker.schemas.transaction import CandidateTransaction
from finance_tracker.services import ledger_service
from finance_tracker.services.deduplication_service import generate_transaction_hash
from finance_tracker.services.validation_service import sanitize, validate_transaction

logger = logging.getLogger(__name__)


class TransactionStore:
    """CRUD over one database session. Creates and deletes keep balances in step."""

    def __init__(self, db: Session):
        self.db = db
        # A session is not safe for concurrent use; worker threads take turns
        self._lock = threading.Lock()

    def list_accounts(self) -> List[Account]:
        return self.db.query(Account).order_by(Account.name).all()

    def get_account(self, account_id: str) -> Account:
        account = self.db.get(Account, account_id)
        if account is None:
            raise AccountNotFoundError(f"Account {account_id} not found")
        return account

    def list_transactions(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        account_id: Optional[str] = None,
        category: Optional[str] = None
    ) -> List[Transaction]:
        query = self.db.query(Transaction)

        if start_date:
            query = query.filter(Transaction.date >= start_date)
        if end_date:
            query = query.filter(Transaction.date <= end_date)
        if account_id:
            query = query.filter(
                (Transaction.source_account_id == account_id)
                | (Transaction.destination_account_id == account_id)
            )
        if category:
            query = query.filter(Transaction.category == category)

        return query.order_by(Transaction.date.desc(), Transaction.created_at.desc()).all()

    def get_transaction(self, transaction_id: str) -> Transaction:
        txn = self.db.get(Transaction, transaction_id)
        if txn is None:
            raise TransactionNotFoundError(f"Transaction {transaction_id} not found")
        return txn

    def create_transaction(
        self,
        candidate: CandidateTransaction,
        allow_duplicate: bool = False
    ) -> Transaction:
        """
        Persist a candidate and apply it to account balances.

        Raises DuplicateTransactionError when a transaction with the same
        date, amount and description is already stored, unless
        ``allow_duplicate`` is set. Raises InvalidTransactionError when the
        candidate breaks the account rules of its type or its source cannot
        cover it.
        """
        candidate = sanitize(candidate)
        txn_hash = None
        if candidate.date is not None:
            txn_hash = generate_transaction_hash(candidate.date, candidate.amount, candidate.description)

        if txn_hash and not allow_duplicate:
            existing = self.db.query(Transaction).filter(Transaction.hash == txn_hash).first()
            if existing:
                raise DuplicateTransactionError(
                    f"Transaction '{candidate.description}' on {candidate.date} already exists",
                    existing_id=existing.id,
                )

        validation = validate_transaction(candidate, self.list_accounts())
        if not validation.is_valid:
            raise InvalidTransactionError(validation.errors)

        txn = Transaction(
            hash=txn_hash,
            date=candidate.date,
            amount=candidate.amount,
            type=candidate.type,
            category=candidate.category,
            description=candidate.description,
            source_account_id=candidate.source_account_id,
            destination_account_id=candidate.destination_account_id,
            is_edited=candidate.is_edited,
        )
        return ledger_service.apply_transaction(self.db, txn)

    def _create_in_turn(self, candidate: CandidateTransaction, allow_duplicate: bool) -> Transaction:
        with self._lock:
            return self.create_transaction(candidate, allow_duplicate=allow_duplicate)

    async def create_transaction_async(
        self,
        candidate: CandidateTransaction,
        allow_duplicate: bool = False
    ) -> Transaction:
        """
        Run create_transaction on a worker thread so the event loop stays
        responsive and a caller's timeout can fire. Creates reach the session
        one at a time. A create abandoned by a timeout still finishes in its
        thread.
        """
        return await asyncio.to_thread(self._create_in_turn, candidate, allow_duplicate)

    def update_transaction(
        self,
        transaction_id: str,
        fields: Dict[str, Any],
        editor: str = "user"
    ) -> Transaction:
        """Apply each changed field as a recorded edit, all in one commit."""
        txn = self.get_transaction(transaction_id)
        ledger_service.edit_fields(self.db, txn, fields, editor)
        self.db.refresh(txn)
        return txn

    def delete_transaction(self, transaction_id: str) -> None:
        txn = self.get_transaction(transaction_id)
        ledger_service.delete_transaction(self.db, txn)
        logger.info("Deleted transaction %s", transaction_id)
