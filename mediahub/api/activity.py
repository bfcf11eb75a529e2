"""Activity feed and statistics routes."""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from mediahub.api.deps import (
    get_activity_service,
    get_current_active_user,
    get_current_admin_user,
)
from mediahub.core.exceptions import StorageError, ValidationError
from mediahub.models import User
from mediahub.schemas.activity import (
    ActivityStats,
    ActivitySummary,
    PaginatedActivities,
    UserActivityMetrics,
)
from mediahub.services.activity_service import ActivityTrackingService

router = APIRouter(prefix="/activities", tags=["Activity"])

MAX_PAGE_SIZE = 100


@router.get("", response_model=PaginatedActivities)
async def list_activities(
    service: Annotated[ActivityTrackingService, Depends(get_activity_service)],
    current_user: Annotated[User, Depends(get_current_active_user)],
    limit: int = Query(20, description="Items per page (capped at 100)"),
    offset: int = Query(0, description="Items to skip"),
    type: str | None = Query(None, description="create/update/delete/import/export"),
    entity: str | None = Query(None, description="Tracked entity kind"),
    userId: str | None = Query(None, description="Acting user ID"),
    startDate: datetime | None = Query(None, description="Inclusive lower bound"),
    endDate: datetime | None = Query(None, description="Inclusive upper bound"),
) -> PaginatedActivities:
    """Get the activity feed, newest first, with optional filters.

    An empty page is a valid result; storage failures are reported as 500.
    """
    filters = {
        "type": type,
        "entity": entity,
        "userId": userId,
        "startDate": startDate,
        "endDate": endDate,
    }
    try:
        return service.get_recent_activities(
            limit=min(limit, MAX_PAGE_SIZE),
            offset=offset,
            filters={key: value for key, value in filters.items() if value is not None},
        )
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except StorageError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load activities",
        ) from exc


@router.get("/stats", response_model=ActivityStats)
async def get_activity_stats(
    service: Annotated[ActivityTrackingService, Depends(get_activity_service)],
    current_user: Annotated[User, Depends(get_current_active_user)],
    timeRange: str = Query("30d", description="7d, 30d or 3m"),
) -> ActivityStats:
    """Get activity counts by type and entity plus the most active users."""
    try:
        return service.get_activity_stats(timeRange)
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except StorageError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load activity statistics",
        ) from exc


@router.get("/summary", response_model=ActivitySummary)
async def get_activity_summary(
    service: Annotated[ActivityTrackingService, Depends(get_activity_service)],
    current_user: Annotated[User, Depends(get_current_active_user)],
) -> ActivitySummary:
    """Get all-time activity totals."""
    try:
        return service.get_activity_summary()
    except StorageError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load activity summary",
        ) from exc


@router.get("/metrics", response_model=UserActivityMetrics)
async def get_user_activity_metrics(
    service: Annotated[ActivityTrackingService, Depends(get_activity_service)],
    current_user: Annotated[User, Depends(get_current_admin_user)],
) -> UserActivityMetrics:
    """Get active user counts, most active users and recent imports (admin only)."""
    try:
        return service.get_user_activity_metrics()
    except StorageError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load user activity metrics",
        ) from exc
