"""Activity log schemas for query inputs and dashboard responses."""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from mediahub.models.enums import ActivityEntity, ActivityType


# ============== Query inputs ==============
class ActivityFilters(BaseModel):
    """Conjunctive activity log filters; unset fields do not constrain."""

    type: ActivityType | None = None
    entity: ActivityEntity | None = None
    userId: str | None = None
    startDate: datetime | None = None
    endDate: datetime | None = None

    @field_validator("startDate", "endDate")
    @classmethod
    def normalize_to_utc(cls, v: datetime | None) -> datetime | None:
        """Treat naive bounds as UTC and convert offset bounds to UTC."""
        if v is None:
            return v
        if v.tzinfo is None or v.utcoffset() is None:
            return v.replace(tzinfo=UTC)
        return v.astimezone(UTC)

    @model_validator(mode="after")
    def check_date_order(self) -> "ActivityFilters":
        if self.startDate and self.endDate and self.startDate > self.endDate:
            raise ValueError("startDate must be on or before endDate")
        return self


# ============== Activity feed ==============
class ActivityUser(BaseModel):
    """Display info of the acting user."""

    name: str
    email: str


class ActivityItem(BaseModel):
    """One activity log entry as shown in the feed."""

    id: str
    type: ActivityType
    entity: ActivityEntity
    entityId: str
    entityName: str
    userId: str
    user: ActivityUser
    timestamp: datetime
    details: dict[str, Any] | None = None


class PaginatedActivities(BaseModel):
    """A page of the activity feed."""

    activities: list[ActivityItem]
    totalCount: int
    hasMore: bool


# ============== Aggregates ==============
class TopUser(BaseModel):
    """User ranked by activity count within a window."""

    userId: str
    name: str
    email: str
    activityCount: int


class ActivityStats(BaseModel):
    """Windowed activity statistics."""

    timeRange: str
    since: datetime
    total: int
    byType: dict[str, int]
    byEntity: dict[str, int] = Field(default_factory=dict)
    topUsers: list[TopUser] = Field(default_factory=list)


class ActivitySummary(BaseModel):
    """All-time activity summary."""

    totalActivities: int
    uniqueUsers: int
    lastActivityAt: datetime | None = None


# ============== User activity metrics ==============
class ActiveUserCounts(BaseModel):
    """Distinct acting users since the start of each window."""

    today: int
    thisWeek: int
    thisMonth: int


class MostActiveUser(TopUser):
    """Top user with the time of their latest activity."""

    lastActive: datetime


class RecentImport(BaseModel):
    """One import recorded in the activity log."""

    entity: ActivityEntity
    count: int
    timestamp: datetime
    userId: str
    userName: str


class UserActivityMetrics(BaseModel):
    """Admin overview of who is using the system."""

    activeUsers: ActiveUserCounts
    totalUsers: int
    newUsersThisMonth: int
    mostActiveUsers: list[MostActiveUser] = Field(default_factory=list)
    recentImports: list[RecentImport] = Field(default_factory=list)
