"""User model matching Prisma schema."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column

from mediahub.models.base import Base, generate_cuid
from mediahub.models.enums import UserStatus


class User(Base):
    """User model - matches Prisma users table.

    Accounts are managed by the auth provider; this service only reads them to
    resolve display names for activity records.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=generate_cuid)
    email: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    name: Mapped[str | None] = mapped_column(String, nullable=True)
    role: Mapped[str] = mapped_column(String, nullable=False, server_default="USER")
    status: Mapped[str] = mapped_column(
        String, nullable=False, server_default=UserStatus.ACTIVE.value
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (Index("idx_users_email", "email"),)

    def __repr__(self) -> str:
        """String representation."""
        return f"<User(id={self.id}, email={self.email}, status={self.status})>"
