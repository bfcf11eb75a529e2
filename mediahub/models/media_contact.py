"""Media contact model matching Prisma schema."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, String, Table, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mediahub.models.base import Base, generate_cuid

if TYPE_CHECKING:
    from mediahub.models.taxonomy import Beat, Category, Country


def _implicit_join_table(name: str, target: str) -> Table:
    """Prisma implicit many-to-many table: column A -> media_contacts, B -> target."""
    return Table(
        name,
        Base.metadata,
        Column("A", ForeignKey("media_contacts.id", ondelete="CASCADE"), primary_key=True),
        Column("B", ForeignKey(f"{target}.id", ondelete="CASCADE"), primary_key=True, index=True),
    )


media_contact_categories = _implicit_join_table("_MediaContactCategories", "categories")
media_contact_countries = _implicit_join_table("_MediaContactCountries", "countries")
media_contact_beats = _implicit_join_table("_MediaContactBeats", "beats")


class MediaContact(Base):
    """Media contact model - matches Prisma media_contacts table."""

    __tablename__ = "media_contacts"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=generate_cuid)
    name: Mapped[str] = mapped_column(String, nullable=False)
    email: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    title: Mapped[str | None] = mapped_column(String, nullable=True)
    email_verified_status: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="false"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    # Relationships
    categories: Mapped[list[Category]] = relationship(
        "Category", secondary=media_contact_categories, back_populates="media_contacts"
    )
    countries: Mapped[list[Country]] = relationship(
        "Country", secondary=media_contact_countries, back_populates="media_contacts"
    )
    beats: Mapped[list[Beat]] = relationship(
        "Beat", secondary=media_contact_beats, back_populates="media_contacts"
    )

    __table_args__ = (Index("idx_media_contacts_created_at", "created_at"),)

    def __repr__(self) -> str:
        """String representation."""
        return f"<MediaContact(id={self.id}, name={self.name})>"
