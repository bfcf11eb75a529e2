"""Database models package."""

from mediahub.models.activity import ActivityLog
from mediahub.models.base import Base, generate_cuid
from mediahub.models.enums import (
    ActivityEntity,
    ActivityType,
    ChartType,
    TimeRange,
    UserStatus,
)
from mediahub.models.media_contact import MediaContact
from mediahub.models.taxonomy import Beat, Category, Country
from mediahub.models.user import User

__all__ = [
    # Base
    "Base",
    "generate_cuid",
    # Enums
    "UserStatus",
    "ActivityType",
    "ActivityEntity",
    "TimeRange",
    "ChartType",
    # User
    "User",
    # Activity
    "ActivityLog",
    # Media contacts
    "MediaContact",
    "Category",
    "Country",
    "Beat",
]
