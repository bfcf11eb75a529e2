"""Dashboard chart routes."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from mediahub.api.deps import get_cache, get_charts_service, get_current_active_user
from mediahub.core.cache import CHARTS_PREFIX, CacheService
from mediahub.core.exceptions import StorageError, ValidationError
from mediahub.models import User
from mediahub.schemas.dashboard import CacheClearResponse, ChartResponse, GeographicDataPoint
from mediahub.services.chart_service import DashboardChartsService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/charts/{chart_type}", response_model=ChartResponse)
async def get_chart(
    chart_type: str,
    service: Annotated[DashboardChartsService, Depends(get_charts_service)],
    current_user: Annotated[User, Depends(get_current_active_user)],
    timeRange: str = Query("30d", description="7d, 30d, 3m or 1y"),
) -> ChartResponse:
    """Get contact counts grouped by category, country or beat.

    Unknown chart types are rejected with 400 rather than answered with an
    empty series.
    """
    try:
        data = service.get_chart_data(chart_type, timeRange)
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except StorageError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load chart data",
        ) from exc

    return ChartResponse(type=chart_type, timeRange=timeRange, data=data)


@router.get("/geographic", response_model=list[GeographicDataPoint])
async def get_geographic_distribution(
    service: Annotated[DashboardChartsService, Depends(get_charts_service)],
    current_user: Annotated[User, Depends(get_current_active_user)],
) -> list[GeographicDataPoint]:
    """Get contact counts per country with map coordinates."""
    try:
        return service.get_geographic_distribution()
    except StorageError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load geographic distribution",
        ) from exc


@router.delete("/cache", response_model=CacheClearResponse)
async def clear_chart_cache(
    cache: Annotated[CacheService, Depends(get_cache)],
    current_user: Annotated[User, Depends(get_current_active_user)],
) -> CacheClearResponse:
    """Drop cached chart series so the next request recomputes them."""
    cleared = cache.clear_by_prefix(CHARTS_PREFIX)
    logger.info("Chart cache cleared by user %s (%d entries)", current_user.id, cleared)
    return CacheClearResponse(message="Chart cache cleared", cleared=cleared)
