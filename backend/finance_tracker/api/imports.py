"""
Import API endpoints.
"""

import json
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, UploadFile, File, Form, HTTPException
from sqlalchemy.orm import Session

from finance_tracker.dependencies import get_db
from finance_tracker.schemas.import_file import (
    BatchRequest,
    BatchValidationResponse,
    ColumnMappingSchema,
    DuplicatePairResponse,
    FailedTransactionResponse,
    ImportPreviewResponse,
    ImportResultsResponse,
    InvalidTransactionResponse,
    ReconcileResponse,
    TextImportRequest,
)
from finance_tracker.schemas.transaction import TransactionResponse
from finance_tracker.services import import_service

router = APIRouter(prefix="/imports", tags=["imports"])

ALLOWED_EXTENSIONS = ['.csv', '.xlsx', '.xlsm']


@router.post("/text", response_model=ImportPreviewResponse)
def import_text(request: TextImportRequest):
    """Parse pasted statement text into candidate transactions"""
    try:
        result = import_service.parse_text_import(request.text, request.profile)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return ImportPreviewResponse(transactions=result.transactions, errors=result.errors)


@router.post("/file", response_model=ImportPreviewResponse)
async def import_file(
    file: UploadFile = File(...),
    mapping: Optional[str] = Form(None)
):
    """Parse a CSV or XLSX statement; ``mapping`` overrides the inferred columns"""
    if not file.filename:
        raise HTTPException(status_code=400, detail="No filename provided")

    ext = '.' + file.filename.split('.')[-1].lower() if '.' in file.filename else ''
    if ext not in ALLOWED_EXTENSIONS:
        raise HTTPException(
            status_code=400,
            detail=f"File type not supported. Allowed: {', '.join(ALLOWED_EXTENSIONS)}"
        )

    mapping_override = None
    if mapping:
        try:
            mapping_override = ColumnMappingSchema(**json.loads(mapping)).model_dump()
        except (ValueError, TypeError) as e:
            raise HTTPException(status_code=400, detail=f"Invalid column mapping: {e}")

    content = await file.read()
    try:
        preview = import_service.parse_file_import(file.filename, content, mapping_override)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return ImportPreviewResponse(
        transactions=preview.parse_result.transactions,
        errors=preview.parse_result.errors,
        headers=preview.headers,
        column_mapping=ColumnMappingSchema(**asdict(preview.mapping)),
    )


@router.post("/validate", response_model=BatchValidationResponse)
def validate_batch(
    request: BatchRequest,
    db: Session = Depends(get_db)
):
    """Split candidates into valid, invalid and duplicate sets"""
    result = import_service.validate_import(db, request.transactions)

    return BatchValidationResponse(
        valid=result.valid,
        invalid=[
            InvalidTransactionResponse(transaction=i.transaction, errors=i.errors)
            for i in result.invalid
        ],
        duplicates=[
            DuplicatePairResponse(
                new_transaction=d.new_transaction,
                existing_transaction=TransactionResponse.model_validate(d.existing_transaction),
            )
            for d in result.duplicates
        ],
    )


@router.post("/commit", response_model=ImportResultsResponse)
async def commit_batch(
    request: BatchRequest,
    allow_duplicates: bool = False,
    db: Session = Depends(get_db)
):
    """Create validated candidates; partial success is reported, not rolled back"""
    results = await import_service.commit_import(db, request.transactions, allow_duplicates)

    return ImportResultsResponse(
        successful=[TransactionResponse.model_validate(t) for t in results.successful],
        duplicates=results.duplicates,
        failed=[
            FailedTransactionResponse(transaction=candidate, error=error)
            for candidate, error in results.failed
        ],
        messages=results.messages,
    )


@router.post("/reconcile", response_model=ReconcileResponse)
def reconcile_statement(
    request: BatchRequest,
    db: Session = Depends(get_db)
):
    """Match statement lines against recorded transactions"""
    result = import_service.reconcile_statement(db, request.transactions)

    return ReconcileResponse(
        matched=[
            DuplicatePairResponse(
                new_transaction=line,
                existing_transaction=TransactionResponse.model_validate(existing),
            )
            for line, existing in result.matched
        ],
        unmatched=result.unmatched,
        summary=result.summary,
    )
