"""Pytest fixtures for testing"""

import pytest
from datetime import date, datetime, time
from typing import Callable, Generator
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker, Session
from ledger_insights.api.main import create_app
from ledger_insights.infrastructure.database.models import Base, CategoryRecord, TransactionRecord
from ledger_insights.infrastructure.database.session import build_engine, get_db
from ledger_insights.domain.models import EXPENSE, Transaction


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = build_engine(TEST_DATABASE_URL)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def make_transaction() -> Callable[..., Transaction]:
    """Factory for domain transactions with sensible defaults"""
    counter = {"n": 0}

    def _make(
        day: date,
        amount: float,
        description: str = "Purchase",
        type: str = EXPENSE,
        category_id: str | None = "cat_general",
        category_name: str | None = None,
        payee: str | None = None,
    ) -> Transaction:
        counter["n"] += 1
        return Transaction(
            transaction_id=f"txn_{counter['n']}",
            date=day,
            amount=amount,
            type=type,
            description=description,
            category_id=category_id,
            category_name=category_name,
            payee=payee,
        )

    return _make


@pytest.fixture
def seed_record(db: Session) -> Callable[..., TransactionRecord]:
    """Insert a transaction row for the given user"""

    def _seed(
        user_id: str,
        day: date,
        amount: float,
        description: str,
        type: str = EXPENSE,
        category: CategoryRecord | None = None,
        merchant: str | None = None,
    ) -> TransactionRecord:
        record = TransactionRecord(
            user_id=user_id,
            category_id=category.id if category else None,
            amount=amount,
            date=datetime.combine(day, time(12, 0)),
            description=description,
            merchant=merchant,
            type=type,
        )
        db.add(record)
        db.flush()
        return record

    return _seed
