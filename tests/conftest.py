"""Pytest fixtures for testing"""

import uuid
import pytest
from datetime import date
from decimal import Decimal
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from finplan_gateway.api.main import create_app
from finplan_gateway.api.dependencies import get_today
from finplan_gateway.infrastructure.database.models import Base
from finplan_gateway.infrastructure.database.session import get_db
from finplan_gateway.domain.models import Account, AccountKind


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Fixed "today" for every API test
TODAY = date(2024, 6, 12)


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
    """Create FastAPI test client with test database and a frozen today"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_today] = lambda: TODAY
    return TestClient(app)


@pytest.fixture
def checking() -> Account:
    return Account(
        id=uuid.uuid4(),
        name="Checking",
        kind=AccountKind.CHECKING,
        opening_balance=Decimal("2000.00"),
    )


@pytest.fixture
def card() -> Account:
    """Card closing on the 10th, due on the 20th"""
    return Account(
        id=uuid.uuid4(),
        name="Visa",
        kind=AccountKind.CREDIT_CARD,
        opening_balance=Decimal("0.00"),
        credit_limit=Decimal("5000.00"),
        closing_day=10,
        due_day=20,
    )


@pytest.fixture
def counter_ids():
    """Deterministic id factory: UUIDs 1, 2, 3, ..."""

    def factory():
        factory.n += 1
        return uuid.UUID(int=factory.n)

    factory.n = 0
    return factory
