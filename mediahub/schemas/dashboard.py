"""Dashboard chart schemas."""

from typing import Any

from pydantic import BaseModel


class ChartDataPoint(BaseModel):
    """One bar/slice of a chart series."""

    label: str
    value: int
    color: str
    metadata: dict[str, Any] | None = None


class ChartResponse(BaseModel):
    """Chart series for one chart type and window."""

    type: str
    timeRange: str
    data: list[ChartDataPoint]


class CacheClearResponse(BaseModel):
    """Result of a cache invalidation request."""

    message: str
    cleared: int


class GeographicDataPoint(BaseModel):
    """Contact count for one country, placed on a map."""

    countryCode: str
    countryName: str
    contactCount: int
    coordinates: tuple[float, float]  # (longitude, latitude)
    flagEmoji: str | None = None
