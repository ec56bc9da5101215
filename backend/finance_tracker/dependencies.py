"""
FastAPI dependencies.
"""

from typing import Generator

from fastapi import Depends
from sqlalchemy.orm import Session

from finance_tracker.database import SessionLocal
from finance_tracker.services.transaction_store import TransactionStore


def get_db() -> Generator[Session, None, None]:
    """
    Dependency for getting database sessions.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_store(db: Session = Depends(get_db)) -> TransactionStore:
    """Transaction store bound to the request's session."""
    return TransactionStore(db)
