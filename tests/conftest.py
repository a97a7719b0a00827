"""Pytest fixtures for testing"""

import pytest
from datetime import date, datetime
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from cycle_projector.api.main import create_app
from cycle_projector.api.dependencies import get_now
from cycle_projector.infrastructure.database.models import Base
from cycle_projector.infrastructure.database.session import get_db
from cycle_projector.domain.models import Recurrence, RecurringObligation


# In-memory test database shared by every session
TEST_DATABASE_URL = "sqlite://"
engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Fixed clock for every API test
NOW = datetime(2024, 6, 20, 10, 0)


@pytest.fixture
def now() -> datetime:
    return NOW


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
def client(db: Session, now: datetime) -> TestClient:
    """Create FastAPI test client with test database and a fixed clock"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_now] = lambda: now
    return TestClient(app)


@pytest.fixture
def sample_obligations() -> list[RecurringObligation]:
    """Rent, gym and streaming subscriptions plus a one-off purchase"""
    return [
        RecurringObligation(
            id="rent",
            anchor_date=date(2024, 1, 15),
            amount_cents=150000,
            recurrence=Recurrence.MONTHLY,
            description="Rent",
            category="housing",
            created_at=datetime(2024, 1, 15, 8, 0),
        ),
        RecurringObligation(
            id="gym",
            anchor_date=date(2024, 6, 3),  # Monday
            amount_cents=2500,
            recurrence=Recurrence.WEEKLY,
            description="",
            category="fitness",
            created_at=datetime(2024, 6, 3, 9, 0),
        ),
        RecurringObligation(
            id="stream",
            anchor_date=date(2024, 5, 24),
            amount_cents=1599,
            recurrence=Recurrence.MONTHLY,
            description="Streaming",
            category="entertainment",
            created_at=datetime(2024, 5, 24, 12, 0),
        ),
        RecurringObligation(
            id="tv",
            anchor_date=date(2024, 6, 18),
            amount_cents=89900,
            recurrence=Recurrence.NONE,
            description="Television",
            category="electronics",
        ),
    ]
