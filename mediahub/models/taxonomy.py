"""Classification models (categories, countries, beats) matching Prisma schema."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Float, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mediahub.models.base import Base, generate_cuid
from mediahub.models.media_contact import (
    media_contact_beats,
    media_contact_categories,
    media_contact_countries,
)

if TYPE_CHECKING:
    from mediahub.models.media_contact import MediaContact


class Category(Base):
    """Category model - matches Prisma categories table."""

    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=generate_cuid)
    name: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    color: Mapped[str | None] = mapped_column(String, nullable=True)  # hex, e.g. #3B82F6
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    media_contacts: Mapped[list[MediaContact]] = relationship(
        "MediaContact", secondary=media_contact_categories, back_populates="categories"
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<Category(id={self.id}, name={self.name})>"


class Country(Base):
    """Country model - matches Prisma countries table."""

    __tablename__ = "countries"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=generate_cuid)
    name: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    code: Mapped[str | None] = mapped_column(String, nullable=True)  # ISO 3166-1 alpha-2
    flag_emoji: Mapped[str | None] = mapped_column(String, nullable=True)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)

    media_contacts: Mapped[list[MediaContact]] = relationship(
        "MediaContact", secondary=media_contact_countries, back_populates="countries"
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<Country(id={self.id}, code={self.code})>"


class Beat(Base):
    """Beat model - matches Prisma beats table."""

    __tablename__ = "beats"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=generate_cuid)
    name: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    media_contacts: Mapped[list[MediaContact]] = relationship(
        "MediaContact", secondary=media_contact_beats, back_populates="beats"
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<Beat(id={self.id}, name={self.name})>"
