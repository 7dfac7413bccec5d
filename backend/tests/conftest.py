"""Pytest configuration and fixtures"""
import os

# Must be set before the app modules read their settings
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("DISPATCH_API_KEY", "dispatch-secret-key-change-in-production")

from typing import Any, Callable, Dict, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from app.database import Base, get_db
from app.main import app
from app.policy.audit import SqlAuditSink
from app.policy.engine import PolicyEngine
from app.policy.store import SqlDocumentStore

TEST_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

NANOS = 1_000_000_000
DAY = 86_400
HOUR = 3_600


def epoch_ns(days: int, hour: int) -> int:
    """Nanosecond timestamp for ``hour``:00 UTC on day ``days`` since the epoch"""
    return (days * DAY + hour * HOUR) * NANOS


# Day numbers chosen so that (days + 4) % 7 lands on the wanted weekday index
WEDNESDAY = 20739  # index 2
SATURDAY = 20735   # index 5
SUNDAY = 20736     # index 6


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a fresh database for each test"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db: Session) -> Generator[TestClient, None, None]:
    """Create test client with database session override"""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def dispatch_headers() -> dict:
    """Dispatch layer authentication headers"""
    return {"X-Dispatch-Key": os.environ["DISPATCH_API_KEY"]}


@pytest.fixture
def business_hours() -> int:
    """Wednesday 10:00 UTC"""
    return epoch_ns(WEDNESDAY, 10)


@pytest.fixture
def saturday() -> int:
    """Saturday 10:00 UTC"""
    return epoch_ns(SATURDAY, 10)


@pytest.fixture
def after_hours() -> int:
    """Wednesday 23:00 UTC"""
    return epoch_ns(WEDNESDAY, 23)


@pytest.fixture
def store(db: Session) -> SqlDocumentStore:
    return SqlDocumentStore(db)


@pytest.fixture
def policy(db: Session, store: SqlDocumentStore, business_hours: int) -> PolicyEngine:
    """Engine over the test database with the clock fixed to business hours"""
    return PolicyEngine(store, SqlAuditSink(db), clock=lambda: business_hours)


@pytest.fixture
def seed_admin(store: SqlDocumentStore) -> Callable[..., Dict[str, Any]]:
    """Store an admin profile directly, bypassing the lifecycle guard"""

    def _seed(
        user_id: str,
        role: str = "manager",
        approval_limit: float = 1_000_000,
        is_active: bool = True,
        **extra: Any,
    ) -> Dict[str, Any]:
        doc = {
            "userId": user_id,
            "displayName": user_id.title(),
            "role": role,
            "approvalLimit": approval_limit,
            "isActive": is_active,
            **extra,
        }
        store.put("admin_profiles", user_id, doc)
        return doc

    return _seed


@pytest.fixture
def approval() -> Callable[..., Dict[str, Any]]:
    """Build an approved business application document"""

    def _approval(approved_by: str, amount: float, **extra: Any) -> Dict[str, Any]:
        return {
            "status": "approved",
            "requestedAmount": amount,
            "approvedBy": approved_by,
            **extra,
        }

    return _approval
