"""Base model and utilities."""

from __future__ import annotations

import uuid

from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase

# JSONB on PostgreSQL (matches the Prisma Json columns), plain JSON elsewhere
JSONType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


def generate_cuid() -> str:
    """Generate a cuid-like identifier.

    Prisma's ``cuid()`` produces 'c' followed by 24 lowercase alphanumerics;
    rows written here must sort and look the same as rows written by the
    Prisma side of the application.

    Returns:
        A cuid-style string identifier.
    """
    uid = uuid.uuid4().hex
    return f"c{uid[:24]}"
