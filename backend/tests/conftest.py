"""Shared test fixtures."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient
from datetime import date, datetime
from decimal import Decimal
import uuid

import cadence.models  # noqa: F401
from cadence.config import settings
from cadence.database import Base, get_db
from cadence.dependencies import get_today, get_now
from cadence.main import app
from cadence.models.transaction import Transaction

TODAY = date(2024, 6, 20)
USER_ID = "user-1"


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
def client(db_session, monkeypatch):
    """Create a test client with database and clock overrides."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    monkeypatch.setattr(settings, "auto_create_tables", False)
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_today] = lambda: TODAY
    app.dependency_overrides[get_now] = lambda: datetime(2024, 6, 20, 12, 0, 0)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def user_headers():
    return {"X-User-Id": USER_ID}


@pytest.fixture
def add_transaction(db_session):
    """Factory that persists a transaction for the test user."""
    def _add(description, amount, txn_date, user_id=USER_ID, commit=True, **kwargs):
        txn = Transaction(
            id=str(uuid.uuid4()),
            user_id=user_id,
            date=txn_date,
            amount=Decimal(str(amount)),
            raw_description=description,
            **kwargs
        )
        db_session.add(txn)
        if commit:
            db_session.commit()
        return txn
    return _add


@pytest.fixture
def netflix_history(add_transaction):
    """Six monthly Netflix charges on the 14th-16th, ending in May 2024."""
    dates = [
        date(2023, 12, 14), date(2024, 1, 15), date(2024, 2, 16),
        date(2024, 3, 14), date(2024, 4, 15), date(2024, 5, 16),
    ]
    return [add_transaction("NETFLIX.COM", "15.99", d) for d in dates]
