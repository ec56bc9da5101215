"""
Account Pydantic schemas for API validation.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional
from finance_tracker.models.account import AccountType


class AccountBase(BaseModel):
    """Base account schema."""
    name: str = Field(..., min_length=1, max_length=100)
    account_type: AccountType = AccountType.checking
    purpose: Optional[str] = Field(None, max_length=255)
    is_shared: bool = False
    owner: Optional[str] = None


class AccountCreate(AccountBase):
    """Schema for creating an account."""
    balance: Decimal = Decimal("0.00")


class AccountAdjustmentCreate(BaseModel):
    """Signed correction applied to the current balance."""
    amount: Decimal
    reason: str = ""


class AccountAdjustmentResponse(BaseModel):
    id: str
    amount: Decimal
    reason: str
    previous_balance: Decimal
    new_balance: Decimal
    created_at: datetime

    class Config:
        from_attributes = True


class AccountResponse(AccountBase):
    """Schema for account response."""
    id: str
    balance: Decimal
    created_at: datetime
    adjustments: list[AccountAdjustmentResponse] = []

    class Config:
        from_attributes = True


class AccountList(BaseModel):
    """Schema for listing accounts."""
    items: list[AccountResponse]
    total: int
