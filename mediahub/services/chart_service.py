"""Dashboard chart aggregation over media contacts."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from mediahub.core.cache import CacheKeys, CacheService
from mediahub.core.clock import MonotonicClock, default_clock
from mediahub.core.config import settings
from mediahub.core.exceptions import ChartQueryError, InvalidChartTypeError
from mediahub.models import Beat, Category, ChartType, Country, MediaContact, TimeRange
from mediahub.models.media_contact import media_contact_countries
from mediahub.schemas.dashboard import ChartDataPoint, GeographicDataPoint
from mediahub.services.time_windows import parse_time_range, resolve_since

logger = logging.getLogger(__name__)

BLUE_SHADES = [
    "#1e40af",  # blue-800
    "#2563eb",  # blue-600
    "#3b82f6",  # blue-500
    "#60a5fa",  # blue-400
    "#93c5fd",  # blue-300
    "#bfdbfe",  # blue-200
    "#dbeafe",  # blue-100
    "#eff6ff",  # blue-50
    "#1e3a8a",  # blue-900
    "#1d4ed8",  # blue-700
]

VERIFIED_COLOR = "#10B981"
UNVERIFIED_COLOR = "#EF4444"

TOP_COUNTRIES_LIMIT = 10
TRENDING_BEATS_LIMIT = 8


@dataclass
class _Bucket:
    label: str
    color: str
    metadata: dict[str, Any] | None
    value: int = 0


@dataclass
class _Tally:
    """Counts keyed by dimension row id, in first-seen order."""

    buckets: dict[str, _Bucket] = field(default_factory=dict)

    def add(self, key: str, make_bucket: Callable[[int], _Bucket]) -> None:
        bucket = self.buckets.get(key)
        if bucket is None:
            bucket = make_bucket(len(self.buckets))
            self.buckets[key] = bucket
        bucket.value += 1

    def points(self) -> list[ChartDataPoint]:
        return [
            ChartDataPoint(label=b.label, value=b.value, color=b.color, metadata=b.metadata)
            for b in self.buckets.values()
        ]


def _palette_color(index: int, stored: str | None = None) -> str:
    return stored or BLUE_SHADES[index % len(BLUE_SHADES)]


def _top(points: list[ChartDataPoint], limit: int) -> list[ChartDataPoint]:
    # sorted() is stable: equal counts keep first-seen order
    return sorted(points, key=lambda p: p.value, reverse=True)[:limit]


class DashboardChartsService:
    """Build chart series counting contacts per related dimension.

    A contact related to several values of a dimension (two categories, say)
    adds one to each of them, so bucket totals can exceed the number of
    contacts in the window.
    """

    def __init__(
        self,
        db: Session,
        cache: CacheService | None = None,
        clock: MonotonicClock | None = None,
    ) -> None:
        """Initialize dashboard charts service.

        Args:
            db: Database session
            cache: Optional shared cache for computed series
            clock: Source of "now" for window cutoffs
        """
        self.db = db
        self.cache = cache
        self.clock = clock or default_clock

    def get_chart_data(
        self, chart_type: ChartType | str, time_range: TimeRange | str = TimeRange.LAST_30_DAYS
    ) -> list[ChartDataPoint]:
        """Get the series for one chart.

        Args:
            chart_type: category, country, beat, trending_beats or email_verification
            time_range: "7d", "30d", "3m" or "1y"

        Returns:
            Ordered chart data points

        Raises:
            InvalidChartTypeError: If the chart type is unknown
            ValidationError: If the time range is unknown
            ChartQueryError: If the aggregation query fails
        """
        try:
            chart = ChartType(chart_type)
        except ValueError as exc:
            raise InvalidChartTypeError(str(chart_type)) from exc
        window = parse_time_range(time_range)

        builders: dict[ChartType, Callable[[datetime], list[ChartDataPoint]]] = {
            ChartType.CATEGORY: self._contacts_by_category,
            ChartType.COUNTRY: self._contacts_by_country,
            ChartType.BEAT: self._contacts_by_beat,
            ChartType.TRENDING_BEATS: self._trending_beats,
            ChartType.EMAIL_VERIFICATION: self._email_verification,
        }
        build = builders[chart]

        def compute() -> list[ChartDataPoint]:
            since = resolve_since(window, self.clock.now())
            try:
                return build(since)
            except SQLAlchemyError as exc:
                self.db.rollback()
                logger.exception("Failed to aggregate %s chart for %s", chart.value, window.value)
                raise ChartQueryError(f"Failed to load {chart.value} chart") from exc

        if self.cache is None:
            return compute()
        return self.cache.get_or_set(
            CacheKeys.chart(chart.value, window.value), compute, settings.CACHE_TTL_CHARTS
        )

    def get_contacts_by_category(self, time_range: TimeRange | str = TimeRange.LAST_30_DAYS) -> list[ChartDataPoint]:
        return self.get_chart_data(ChartType.CATEGORY, time_range)

    def get_contacts_by_country(self, time_range: TimeRange | str = TimeRange.LAST_30_DAYS) -> list[ChartDataPoint]:
        return self.get_chart_data(ChartType.COUNTRY, time_range)

    def get_contacts_by_beat(self, time_range: TimeRange | str = TimeRange.LAST_30_DAYS) -> list[ChartDataPoint]:
        return self.get_chart_data(ChartType.BEAT, time_range)

    def get_geographic_distribution(self) -> list[GeographicDataPoint]:
        """Get all-time contact counts for countries that can be placed on a map.

        Countries without coordinates or without contacts are left out.

        Returns:
            Points ordered by contact count descending, then country name

        Raises:
            ChartQueryError: If the aggregation query fails
        """
        if self.cache is None:
            return self._geographic_distribution()
        return self.cache.get_or_set(
            CacheKeys.geographic(), self._geographic_distribution, settings.CACHE_TTL_CHARTS
        )

    # -------------------------------------------------------------- builders

    def _contacts_since(self, since: datetime, relation: Any) -> Iterable[MediaContact]:
        return (
            self.db.query(MediaContact)
            .options(selectinload(relation))
            .filter(MediaContact.created_at >= since)
            .order_by(MediaContact.created_at.asc(), MediaContact.id.asc())
            .all()
        )

    def _contacts_by_category(self, since: datetime) -> list[ChartDataPoint]:
        tally = _Tally()
        for contact in self._contacts_since(since, MediaContact.categories):
            for category in contact.categories:
                tally.add(category.id, lambda i, c=category: self._category_bucket(c, i))
        return tally.points()

    def _contacts_by_country(self, since: datetime) -> list[ChartDataPoint]:
        tally = _Tally()
        for contact in self._contacts_since(since, MediaContact.countries):
            for country in contact.countries:
                tally.add(country.id, lambda i, c=country: self._country_bucket(c, i))
        return _top(tally.points(), TOP_COUNTRIES_LIMIT)

    def _contacts_by_beat(self, since: datetime) -> list[ChartDataPoint]:
        tally = _Tally()
        for contact in self._contacts_since(since, MediaContact.beats):
            for beat in contact.beats:
                tally.add(beat.id, lambda i, b=beat: self._beat_bucket(b, i))
        return tally.points()

    def _trending_beats(self, since: datetime) -> list[ChartDataPoint]:
        points = self._contacts_by_beat(since)
        for point in points:
            point.metadata = {**(point.metadata or {}), "trend": "up"}
        return _top(points, TRENDING_BEATS_LIMIT)

    def _email_verification(self, since: datetime) -> list[ChartDataPoint]:
        rows = (
            self.db.query(MediaContact.email_verified_status, func.count(MediaContact.id))
            .filter(MediaContact.created_at >= since)
            .group_by(MediaContact.email_verified_status)
            .all()
        )
        counts = {bool(verified): count for verified, count in rows}
        points = [
            ChartDataPoint(
                label="Verified",
                value=counts.get(True, 0),
                color=VERIFIED_COLOR,
                metadata={"status": "verified"},
            ),
            ChartDataPoint(
                label="Unverified",
                value=counts.get(False, 0),
                color=UNVERIFIED_COLOR,
                metadata={"status": "unverified"},
            ),
        ]
        return [point for point in points if point.value > 0]

    def _geographic_distribution(self) -> list[GeographicDataPoint]:
        contact_count = func.count(media_contact_countries.c.A).label("contact_count")
        try:
            rows = (
                self.db.query(Country, contact_count)
                .join(media_contact_countries, media_contact_countries.c.B == Country.id)
                .filter(Country.latitude.is_not(None), Country.longitude.is_not(None))
                .group_by(Country.id)
                .order_by(contact_count.desc(), Country.name.asc())
                .all()
            )
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Failed to aggregate geographic distribution")
            raise ChartQueryError("Failed to load geographic distribution") from exc

        return [
            GeographicDataPoint(
                countryCode=country.code or "",
                countryName=country.name,
                contactCount=count,
                coordinates=(country.longitude, country.latitude),
                flagEmoji=country.flag_emoji,
            )
            for country, count in rows
        ]

    @staticmethod
    def _category_bucket(category: Category, index: int) -> _Bucket:
        return _Bucket(
            label=category.name,
            color=_palette_color(index, category.color),
            metadata={"description": category.description},
        )

    @staticmethod
    def _country_bucket(country: Country, index: int) -> _Bucket:
        return _Bucket(
            label=country.name,
            color=_palette_color(index),
            metadata={
                "countryCode": country.code,
                "countryName": country.name,
                "flagEmoji": country.flag_emoji,
            },
        )

    @staticmethod
    def _beat_bucket(beat: Beat, index: int) -> _Bucket:
        return _Bucket(
            label=beat.name,
            color=_palette_color(index),
            metadata={"description": beat.description},
        )
