"""
Account database models.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, String, Boolean, DateTime, Enum, Numeric, Text, ForeignKey
from sqlalchemy.orm import relationship
import enum
from finance_tracker.database import Base


class AccountType(str, enum.Enum):
    """Account type enumeration."""
    checking = "checking"
    savings = "savings"
    credit = "credit"
    investment = "investment"
    custom = "custom"


class Account(Base):
    """Account model. ``balance`` is the authoritative running value."""

    __tablename__ = "accounts"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(100), nullable=False)
    account_type = Column(Enum(AccountType), nullable=False, default=AccountType.checking)
    balance = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    purpose = Column(String(255), nullable=True)
    is_shared = Column(Boolean, default=False, nullable=False)
    owner = Column(String(100), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    adjustments = relationship(
        "AccountAdjustment",
        back_populates="account",
        order_by="AccountAdjustment.created_at",
        cascade="all, delete-orphan",
    )
    transactions = relationship(
        "Transaction",
        primaryjoin="or_(Account.id == Transaction.source_account_id, "
                    "Account.id == Transaction.destination_account_id)",
        viewonly=True,
        order_by="Transaction.date",
    )


class AccountAdjustment(Base):
    """Manual balance correction. Rows are append-only."""

    __tablename__ = "account_adjustments"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    account_id = Column(String(36), ForeignKey("accounts.id"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)  # Signed delta
    reason = Column(Text, nullable=False, default="")
    previous_balance = Column(Numeric(12, 2), nullable=False)
    new_balance = Column(Numeric(12, 2), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    account = relationship("Account", back_populates="adjustments")
