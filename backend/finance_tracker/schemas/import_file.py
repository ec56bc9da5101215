"""
Import schemas.
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict

from finance_tracker.schemas.transaction import CandidateTransaction, TransactionResponse


class ColumnMappingSchema(BaseModel):
    date_col: str = Field(..., description="Column name holding the date")
    amount_col: str = Field(..., description="Column name holding the amount")
    description_col: str = Field(..., description="Column name holding the description")
    category_col: Optional[str] = Field(None, description="Column name holding the category")
    type_col: Optional[str] = Field(None, description="Column name holding the transaction type")
    fallbacks: List[str] = Field(default_factory=list, description="Fields guessed from the first column")


class TextImportRequest(BaseModel):
    text: str
    profile: str = Field("multi-line", description="multi-line or single-line")


class ImportPreviewResponse(BaseModel):
    transactions: List[CandidateTransaction]
    errors: List[str] = []
    headers: List[str] = []
    column_mapping: Optional[ColumnMappingSchema] = None


class BatchRequest(BaseModel):
    transactions: List[CandidateTransaction]


class InvalidTransactionResponse(BaseModel):
    transaction: CandidateTransaction
    errors: List[str]


class DuplicatePairResponse(BaseModel):
    new_transaction: CandidateTransaction
    existing_transaction: TransactionResponse


class BatchValidationResponse(BaseModel):
    valid: List[CandidateTransaction] = []
    invalid: List[InvalidTransactionResponse] = []
    duplicates: List[DuplicatePairResponse] = []


class FailedTransactionResponse(BaseModel):
    transaction: CandidateTransaction
    error: str


class ImportResultsResponse(BaseModel):
    successful: List[TransactionResponse] = []
    duplicates: List[CandidateTransaction] = []
    failed: List[FailedTransactionResponse] = []
    messages: List[str] = []


class ReconcileResponse(BaseModel):
    matched: List[DuplicatePairResponse] = []
    unmatched: List[CandidateTransaction] = []
    summary: Dict[str, int] = {}
