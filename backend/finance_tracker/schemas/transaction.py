"""
Transaction schemas.
"""

from pydantic import BaseModel, Field
from typing import Optional, Any
import datetime as dt
from datetime import date, datetime
from decimal import Decimal

from finance_tracker.models.transaction import TransactionType, UNCATEGORIZED

UNNAMED_TRANSACTION = "Unnamed Transaction"


class CandidateTransaction(BaseModel):
    """Unvalidated transaction extracted from a statement or typed by a user."""
    date: Optional[dt.date] = None
    amount: Optional[Decimal] = Field(None, ge=0)
    description: str = ""
    category: str = UNCATEGORIZED
    type: TransactionType = TransactionType.expense
    source_account_id: Optional[str] = None
    destination_account_id: Optional[str] = None
    is_edited: bool = False
    line: Optional[int] = Field(None, description="Source line or row number")
    potential_duplicate: bool = False


class TransactionEditResponse(BaseModel):
    id: str
    field: str
    old_value: Optional[str]
    new_value: Optional[str]
    editor: str
    created_at: datetime

    class Config:
        from_attributes = True


class TransactionUpdate(BaseModel):
    date: Optional[dt.date] = None
    amount: Optional[Decimal] = Field(None, gt=0)
    type: Optional[TransactionType] = None
    category: Optional[str] = None
    description: Optional[str] = None
    source_account_id: Optional[str] = None
    destination_account_id: Optional[str] = None
    editor: str = "user"


class BulkEditRequest(BaseModel):
    transaction_ids: list[str]
    field: str
    value: Any = None
    editor: str = "user"


class TransactionResponse(BaseModel):
    id: str
    date: date
    amount: Decimal
    type: TransactionType
    category: str
    description: str
    source_account_id: Optional[str]
    destination_account_id: Optional[str]
    is_edited: bool
    created_at: datetime
    edits: list[TransactionEditResponse] = []

    class Config:
        from_attributes = True


class TransactionListResponse(BaseModel):
    items: list[TransactionResponse]
    total: int
