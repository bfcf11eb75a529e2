"""Pytest fixtures for MediaHub tests."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("ENVIRONMENT", "test")

from collections.abc import Generator
from datetime import UTC, datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Ensure all models are loaded for create_all
import mediahub.models  # noqa: F401
from mediahub.core.cache import CacheService
from mediahub.core.clock import MonotonicClock
from mediahub.core.database import get_db
from mediahub.core.security import create_access_token
from mediahub.models import Base, User
from mediahub.services.activity_service import ActivityTrackingService
from mediahub.services.chart_service import DashboardChartsService

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=UTC)


class ManualTime:
    """Wall clock that only moves when told to."""

    def __init__(self, start: datetime = NOW) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> datetime:
        self.current += timedelta(**kwargs)
        return self.current


class FakeTimer:
    """Epoch-seconds timer for cache expiry tests."""

    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def engine():
    """In-memory SQLite engine shared across threads (TestClient runs in a worker thread)."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def db(engine) -> Generator[Session, None, None]:
    """Create a session on a fresh database with all tables."""
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def manual_time() -> ManualTime:
    return ManualTime()


@pytest.fixture
def clock(manual_time: ManualTime) -> MonotonicClock:
    return MonotonicClock(source=manual_time)


@pytest.fixture
def cache_timer() -> FakeTimer:
    return FakeTimer()


@pytest.fixture
def cache(cache_timer: FakeTimer) -> CacheService:
    return CacheService(default_ttl=60, max_entries=100, timer=cache_timer)


@pytest.fixture
def activity_service(db: Session, clock: MonotonicClock) -> ActivityTrackingService:
    """Activity service without a cache."""
    return ActivityTrackingService(db, clock=clock)


@pytest.fixture
def charts_service(db: Session, clock: MonotonicClock) -> DashboardChartsService:
    """Charts service without a cache."""
    return DashboardChartsService(db, clock=clock)


@pytest.fixture
def make_user(db: Session):
    """Factory inserting a user row."""

    def _make_user(user_id: str, name: str | None = None, status: str = "ACTIVE", **extra) -> User:
        user = User(
            id=user_id,
            email=f"{user_id}@example.com",
            name=name or user_id.title(),
            status=status,
            **extra,
        )
        db.add(user)
        db.commit()
        return user

    return _make_user


@pytest.fixture
def admin(make_user) -> User:
    return make_user("admin", name="Ada Admin", role="ADMIN")


@pytest.fixture
def client(db: Session, clock: MonotonicClock, cache_timer: FakeTimer) -> Generator[TestClient, None, None]:
    """Test client with the database dependency pointed at the test session."""
    from mediahub.main import app

    def override_get_db() -> Generator[Session, None, None]:
        yield db

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        app.state.clock = clock
        app.state.cache = CacheService(default_ttl=60, timer=cache_timer)
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(admin: User) -> dict[str, str]:
    token = create_access_token({"sub": admin.id, "email": admin.email})
    return {"Authorization": f"Bearer {token}"}
