"""Enum types matching Prisma schema and query parameters."""

import enum


class UserStatus(str, enum.Enum):
    """User account status."""

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"


class ActivityType(str, enum.Enum):
    """Kind of mutation recorded in the activity log."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    IMPORT = "import"
    EXPORT = "export"


class ActivityEntity(str, enum.Enum):
    """Tracked entity kinds."""

    MEDIA_CONTACT = "media_contact"
    OUTLET = "outlet"
    PUBLISHER = "publisher"
    BEAT = "beat"
    CATEGORY = "category"
    COUNTRY = "country"
    LANGUAGE = "language"
    REGION = "region"


class TimeRange(str, enum.Enum):
    """Relative lookback window anchored at query time."""

    LAST_7_DAYS = "7d"
    LAST_30_DAYS = "30d"
    LAST_3_MONTHS = "3m"
    LAST_YEAR = "1y"


# Windows accepted by activity statistics
ACTIVITY_STATS_RANGES = frozenset(
    {TimeRange.LAST_7_DAYS, TimeRange.LAST_30_DAYS, TimeRange.LAST_3_MONTHS}
)


class ChartType(str, enum.Enum):
    """Dashboard chart series."""

    CATEGORY = "category"
    COUNTRY = "country"
    BEAT = "beat"
    TRENDING_BEATS = "trending_beats"
    EMAIL_VERIFICATION = "email_verification"
