"""Shared test fixtures."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient
from datetime import date
from decimal import Decimal
import uuid

from finance_tracker.database import Base
from finance_tracker.dependencies import get_db
from finance_tracker.main import app
from finance_tracker.models.account import Account, AccountType
from finance_tracker.models.transaction import Transaction, TransactionType
from finance_tracker.services.deduplication_service import generate_transaction_hash


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test using in-memory SQLite."""
    # Use StaticPool to ensure all connections use the same in-memory database
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Create all tables
    Base.metadata.create_all(bind=engine)

    # Create session
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(scope="function")
def client(db_session):
    """Create a test client with database override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    # Not used as a context manager so startup never touches the real database
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def checking_account(db_session):
    """Checking account with 1000.00."""
    account = Account(
        id=str(uuid.uuid4()),
        name="Test Checking",
        account_type=AccountType.checking,
        balance=Decimal("1000.00"),
    )
    db_session.add(account)
    db_session.commit()
    db_session.refresh(account)
    return account


@pytest.fixture
def savings_account(db_session):
    """Savings account with 500.00."""
    account = Account(
        id=str(uuid.uuid4()),
        name="Test Savings",
        account_type=AccountType.savings,
        balance=Decimal("500.00"),
    )
    db_session.add(account)
    db_session.commit()
    db_session.refresh(account)
    return account


@pytest.fixture
def credit_account(db_session):
    """Credit card with a zero balance."""
    account = Account(
        id=str(uuid.uuid4()),
        name="Test Card",
        account_type=AccountType.credit,
        balance=Decimal("0.00"),
    )
    db_session.add(account)
    db_session.commit()
    db_session.refresh(account)
    return account


@pytest.fixture
def sample_transaction(db_session, checking_account):
    """Stored grocery expense from the checking account (balance untouched)."""
    txn = Transaction(
        id=str(uuid.uuid4()),
        hash=generate_transaction_hash(date(2024, 1, 15), Decimal("50.00"), "WHOLE FOODS #1234"),
        date=date(2024, 1, 15),
        amount=Decimal("50.00"),
        type=TransactionType.expense,
        category="Groceries",
        description="WHOLE FOODS #1234",
        source_account_id=checking_account.id,
    )
    db_session.add(txn)
    db_session.commit()
    db_session.refresh(txn)
    return txn
