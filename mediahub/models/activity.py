"""Activity log model matching Prisma schema."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from mediahub.models.base import Base, JSONType, generate_cuid


class ActivityLog(Base):
    """Append-only audit record of one mutation - matches Prisma activity_logs table.

    ``entity_id`` and ``user_id`` are plain references without foreign keys:
    the row must outlive the entity and the user it mentions. ``entity_name``
    is a snapshot taken at write time for the same reason.
    """

    __tablename__ = "activity_logs"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=generate_cuid)
    type: Mapped[str] = mapped_column(String, nullable=False)  # ActivityType value
    entity: Mapped[str] = mapped_column(String, nullable=False)  # ActivityEntity value
    entity_id: Mapped[str] = mapped_column(String, nullable=False)
    entity_name: Mapped[str] = mapped_column(String, nullable=False)
    user_id: Mapped[str] = mapped_column(String, nullable=False)
    details: Mapped[dict | None] = mapped_column(JSONType, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("idx_activity_logs_timestamp", "timestamp"),
        Index("idx_activity_logs_user_id", "user_id"),
        Index("idx_activity_logs_type", "type"),
        Index("idx_activity_logs_entity", "entity"),
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<ActivityLog(id={self.id}, type={self.type}, entity={self.entity})>"
