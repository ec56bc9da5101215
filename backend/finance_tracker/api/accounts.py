"""
Account API endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from finance_tracker.dependencies import get_db, get_store
from finance_tracker.exceptions import AccountNotFoundError
from finance_tracker.models import Account
from finance_tracker.schemas.account import (
    AccountCreate,
    AccountResponse,
    AccountList,
    AccountAdjustmentCreate,
    AccountAdjustmentResponse,
)
from finance_tracker.services import ledger_service
from finance_tracker.services.transaction_store import TransactionStore

router = APIRouter(prefix="/accounts", tags=["accounts"])


def _get_account_or_404(store: TransactionStore, account_id: str) -> Account:
    try:
        return store.get_account(account_id)
    except AccountNotFoundError:
        raise HTTPException(status_code=404, detail="Account not found")


@router.get("", response_model=AccountList)
def list_accounts(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db)
):
    """List all accounts."""
    accounts = db.query(Account).order_by(Account.name).offset(skip).limit(limit).all()
    total = db.query(Account).count()

    return AccountList(
        items=accounts,
        total=total
    )


@router.post("", response_model=AccountResponse, status_code=201)
def create_account(
    account: AccountCreate,
    db: Session = Depends(get_db)
):
    """Create a new account with its opening balance."""
    db_account = Account(
        name=account.name,
        account_type=account.account_type,
        balance=account.balance,
        purpose=account.purpose,
        is_shared=account.is_shared,
        owner=account.owner,
    )
    db.add(db_account)
    db.commit()
    db.refresh(db_account)
    return db_account


@router.get("/{account_id}", response_model=AccountResponse)
def get_account(
    account_id: str,
    store: TransactionStore = Depends(get_store)
):
    """Get a specific account."""
    return _get_account_or_404(store, account_id)


@router.post("/{account_id}/adjustments", response_model=AccountAdjustmentResponse, status_code=201)
def adjust_balance(
    account_id: str,
    adjustment: AccountAdjustmentCreate,
    store: TransactionStore = Depends(get_store)
):
    """Record a manual balance correction."""
    account = _get_account_or_404(store, account_id)
    return ledger_service.record_adjustment(store.db, account, adjustment.amount, adjustment.reason)
