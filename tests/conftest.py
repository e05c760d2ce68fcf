"""Pytest fixtures and configuration for slotwise tests."""

import os

# Keep the app's module-level engine off the developer's real database file
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from datetime import datetime, timedelta
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from slotwise.database.database import Base, get_db
from slotwise.database import models  # noqa: F401
from slotwise.database.repository import TaskRepository
from slotwise.engine.scheduler import WorkingHours
from slotwise.models.task import Task, Priority


# Use in-memory SQLite database for tests
TEST_DATABASE_URL = "sqlite:///:memory:"


class FakeClock:
    """Callable clock pinned to a settable instant."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture(scope="function")
def db_session():
    """Create a database session for testing.

    Uses an in-memory SQLite database that is created fresh for each test.
    """
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def now():
    """Monday 2024-01-01 08:00, before the default 09:00-17:00 window opens."""
    return datetime(2024, 1, 1, 8, 0, 0)


@pytest.fixture
def clock(now):
    return FakeClock(now)


@pytest.fixture
def working_hours():
    return WorkingHours(start_hour=9, end_hour=17)


@pytest.fixture
def task_repository(db_session: Session, clock, working_hours):
    """Create a TaskRepository with a pinned clock."""
    return TaskRepository(db_session, clock=clock, working_hours=working_hours, max_lookahead_days=30)


@pytest.fixture
def sample_task_base(now):
    """Base task data for building Task objects directly.

    Returns a dict with default task attributes that can be overridden.
    """
    return {
        "id": 1,
        "title": "Test Task",
        "description": "Test description",
        "estimated_hours": 1.0,
        "priority": Priority.MEDIUM,
        "due_date": now.replace(hour=10),
        "completed": False,
        "scheduled_start": None,
        "scheduled_end": None,
        "created_at": now,
    }


@pytest.fixture
def make_task(sample_task_base):
    """Factory building Task objects from the base data plus overrides."""
    def _make(**overrides) -> Task:
        return Task(**{**sample_task_base, **overrides})
    return _make


@pytest.fixture
def sample_payload():
    """Create payload as a JSON-ready dict."""
    return {
        "title": "Write report",
        "description": "Quarterly numbers",
        "estimated_hours": 1,
        "priority": "medium",
        "due_date": "2024-01-01T10:00:00",
    }


@pytest.fixture
def test_client(db_session: Session, clock, working_hours):
    """Create a FastAPI test client with overridden database and repository dependencies."""
    from slotwise.api.app import app, get_task_repository

    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Don't close the session here, let the fixture handle it

    def override_get_task_repository():
        return TaskRepository(db_session, clock=clock, working_hours=working_hours, max_lookahead_days=30)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_task_repository] = override_get_task_repository

    with TestClient(app) as client:
        yield client

    # Clean up dependency overrides
    app.dependency_overrides.clear()
