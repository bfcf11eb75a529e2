"""Database connection and session management."""

from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from .config import settings


def _engine_options(database_url: str) -> dict[str, Any]:
    """Build engine keyword arguments for the configured backend.

    SQLite (tests, local development) uses SQLAlchemy's default pool and takes
    no pool sizing. PostgreSQL gets a bounded pool and a per-statement timeout.
    """
    options: dict[str, Any] = {"echo": settings.DATABASE_ECHO, "pool_pre_ping": True}
    if database_url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
        return options

    options["pool_size"] = settings.DATABASE_POOL_SIZE
    options["max_overflow"] = settings.DATABASE_MAX_OVERFLOW
    if settings.DATABASE_STATEMENT_TIMEOUT_MS > 0:
        options["connect_args"] = {
            "options": f"-c statement_timeout={settings.DATABASE_STATEMENT_TIMEOUT_MS}"
        }
    return options


# Create database engine
engine = create_engine(str(settings.DATABASE_URL), **_engine_options(settings.DATABASE_URL))

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Get database session.

    Yields:
        Database session

    This is a dependency that can be injected into FastAPI routes.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
