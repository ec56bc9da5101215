"""
Pydantic schemas package.
"""

from finance_tracker.schemas.account import (
    AccountBase,
    AccountCreate,
    AccountAdjustmentCreate,
    AccountAdjustmentResponse,
    AccountResponse,
    AccountList,
)
from finance_tracker.schemas.import_file import (
    ColumnMappingSchema,
    TextImportRequest,
    ImportPreviewResponse,
    BatchRequest,
    InvalidTransactionResponse,
    DuplicatePairResponse,
    BatchValidationResponse,
    FailedTransactionResponse,
    ImportResultsResponse,
    ReconcileResponse,
)
from finance_tracker.schemas.transaction import (
    UNNAMED_TRANSACTION,
    CandidateTransaction,
    TransactionEditResponse,
    TransactionUpdate,
    BulkEditRequest,
    TransactionResponse,
    TransactionListResponse,
)

__all__ = [
    "AccountBase",
    "AccountCreate",
    "AccountAdjustmentCreate",
    "AccountAdjustmentResponse",
    "AccountResponse",
    "AccountList",
    "ColumnMappingSchema",
    "TextImportRequest",
    "ImportPreviewResponse",
    "BatchRequest",
    "InvalidTransactionResponse",
    "DuplicatePairResponse",
    "BatchValidationResponse",
    "FailedTransactionResponse",
    "ImportResultsResponse",
    "ReconcileResponse",
    "UNNAMED_TRANSACTION",
    "CandidateTransaction",
    "TransactionEditResponse",
    "TransactionUpdate",
    "BulkEditRequest",
    "TransactionResponse",
    "TransactionListResponse",
]
