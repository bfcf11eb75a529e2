"""Schemas package."""

from .activity import (
    ActiveUserCounts,
    ActivityFilters,
    ActivityItem,
    ActivityStats,
    ActivitySummary,
    ActivityUser,
    MostActiveUser,
    PaginatedActivities,
    RecentImport,
    TopUser,
    UserActivityMetrics,
)
from .dashboard import CacheClearResponse, ChartDataPoint, ChartResponse, GeographicDataPoint

__all__ = [
    "ActivityFilters",
    "ActivityItem",
    "ActivityUser",
    "PaginatedActivities",
    "TopUser",
    "ActivityStats",
    "ActivitySummary",
    "ActiveUserCounts",
    "MostActiveUser",
    "RecentImport",
    "UserActivityMetrics",
    "ChartDataPoint",
    "ChartResponse",
    "GeographicDataPoint",
    "CacheClearResponse",
]
