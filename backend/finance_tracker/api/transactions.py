"""
Transaction API endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session
from typing import Optional
from datetime import date

from finance_tracker.dependencies import get_db, get_store
from finance_tracker.exceptions import InvalidEditError, TransactionNotFoundError
from finance_tracker.models.transaction import Transaction
from finance_tracker.schemas.transaction import (
    BulkEditRequest,
    TransactionEditResponse,
    TransactionResponse,
    TransactionUpdate,
    TransactionListResponse
)
from finance_tracker.services import export_service, ledger_service
from finance_tracker.services.transaction_store import TransactionStore

router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.get("", response_model=TransactionListResponse)
def list_transactions(
    account_id: Optional[str] = None,
    category: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    store: TransactionStore = Depends(get_store)
):
    """List transactions, newest first"""
    transactions = store.list_transactions(
        start_date=start_date,
        end_date=end_date,
        account_id=account_id,
        category=category,
    )
    return TransactionListResponse(
        items=[TransactionResponse.model_validate(t) for t in transactions],
        total=len(transactions)
    )


@router.get("/export")
def export_transactions(
    export_format: str = Query("csv", alias="format", pattern="^(csv|xlsx)$"),
    account_id: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    store: TransactionStore = Depends(get_store)
):
    """Download transactions as CSV or XLSX"""
    transactions = store.list_transactions(
        start_date=start_date,
        end_date=end_date,
        account_id=account_id,
    )

    if export_format == "xlsx":
        return Response(
            content=export_service.export_xlsx(transactions),
            media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            headers={"Content-Disposition": "attachment; filename=transactions.xlsx"},
        )
    return Response(
        content=export_service.export_csv(transactions),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=transactions.csv"},
    )


@router.post("/bulk-edit")
def bulk_edit(
    request: BulkEditRequest,
    db: Session = Depends(get_db)
):
    """Apply one field change to several transactions"""
    transactions = db.query(Transaction).filter(Transaction.id.in_(request.transaction_ids)).all()
    found = {t.id for t in transactions}
    missing = [txn_id for txn_id in request.transaction_ids if txn_id not in found]
    if missing:
        raise HTTPException(status_code=404, detail=f"Transactions not found: {', '.join(missing)}")

    try:
        edits = ledger_service.bulk_edit(db, transactions, request.field, request.value, request.editor)
    except InvalidEditError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {"updated": len(edits)}


@router.get("/{transaction_id}", response_model=TransactionResponse)
def get_transaction(
    transaction_id: str,
    store: TransactionStore = Depends(get_store)
):
    """Get a single transaction"""
    try:
        transaction = store.get_transaction(transaction_id)
    except TransactionNotFoundError:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return TransactionResponse.model_validate(transaction)


@router.patch("/{transaction_id}", response_model=TransactionResponse)
def update_transaction(
    transaction_id: str,
    update: TransactionUpdate,
    store: TransactionStore = Depends(get_store)
):
    """Update a transaction; every changed field is kept in its edit history"""
    update_data = update.model_dump(exclude_unset=True, exclude={"editor"})
    try:
        transaction = store.update_transaction(transaction_id, update_data, update.editor)
    except TransactionNotFoundError:
        raise HTTPException(status_code=404, detail="Transaction not found")
    except InvalidEditError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return TransactionResponse.model_validate(transaction)


@router.get("/{transaction_id}/history", response_model=list[TransactionEditResponse])
def get_history(
    transaction_id: str,
    store: TransactionStore = Depends(get_store)
):
    """Edit history, newest first"""
    try:
        transaction = store.get_transaction(transaction_id)
    except TransactionNotFoundError:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return ledger_service.get_transaction_history(transaction)


@router.delete("/{transaction_id}", status_code=204)
def delete_transaction(
    transaction_id: str,
    store: TransactionStore = Depends(get_store)
):
    """Delete a transaction and reverse its balance effect"""
    try:
        store.delete_transaction(transaction_id)
    except TransactionNotFoundError:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return None
