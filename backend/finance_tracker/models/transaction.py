"""
Transaction database models.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, Date, Enum, Numeric, Text, ForeignKey, Index
from sqlalchemy.orm import relationship
import enum
from finance_tracker.database import Base


class TransactionType(str, enum.Enum):
    """Direction of a transaction. Amounts are always stored positive."""
    income = "Income"
    expense = "Expense"
    reimbursement = "Reimbursement"
    transfer = "Transfer"


UNCATEGORIZED = "Uncategorized"


class Transaction(Base):
    """Transaction model."""

    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    hash = Column(String(64), nullable=False, index=True)  # Exact-duplicate fingerprint
    date = Column(Date, nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)  # Magnitude; type carries direction
    type = Column(Enum(TransactionType), nullable=False)
    category = Column(String(100), nullable=False, default=UNCATEGORIZED)
    description = Column(Text, nullable=False)
    source_account_id = Column(String(36), ForeignKey("accounts.id"), nullable=True)
    destination_account_id = Column(String(36), ForeignKey("accounts.id"), nullable=True)
    is_edited = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    source_account = relationship("Account", foreign_keys=[source_account_id])
    destination_account = relationship("Account", foreign_keys=[destination_account_id])
    edits = relationship(
        "TransactionEdit",
        back_populates="transaction",
        order_by="TransactionEdit.created_at",
        cascade="all, delete-orphan",
    )

    # Indexes for common queries
    __table_args__ = (
        Index("idx_transaction_date_amount", "date", "amount"),
        Index("idx_transaction_category", "category"),
    )


class TransactionEdit(Base):
    """Field-level edit record. Rows are append-only."""

    __tablename__ = "transaction_edits"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    transaction_id = Column(String(36), ForeignKey("transactions.id"), nullable=False, index=True)
    field = Column(String(50), nullable=False)
    old_value = Column(Text, nullable=True)
    new_value = Column(Text, nullable=True)
    editor = Column(String(100), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    transaction = relationship("Transaction", back_populates="edits")
