"""Time window parsing and cutoff tests."""

from datetime import UTC, datetime, timedelta

import pytest

from mediahub.core.exceptions import ValidationError
from mediahub.models import TimeRange
from mediahub.models.enums import ACTIVITY_STATS_RANGES
from mediahub.services.time_windows import parse_time_range, resolve_since, subtract_months


@pytest.mark.parametrize("value", ["7d", "30d", "3m", "1y"])
def test_parse_known_ranges(value: str) -> None:
    assert parse_time_range(value).value == value


@pytest.mark.parametrize("value", ["", "90d", "1w", "7D"])
def test_parse_rejects_unknown_ranges(value: str) -> None:
    with pytest.raises(ValidationError):
        parse_time_range(value)


def test_parse_respects_allowed_subset() -> None:
    assert parse_time_range("3m", allowed=ACTIVITY_STATS_RANGES) is TimeRange.LAST_3_MONTHS
    with pytest.raises(ValidationError, match="not supported"):
        parse_time_range("1y", allowed=ACTIVITY_STATS_RANGES)


def test_subtract_months_clamps_day() -> None:
    moment = datetime(2026, 5, 31, 8, 30, tzinfo=UTC)
    assert subtract_months(moment, 3) == datetime(2026, 2, 28, 8, 30, tzinfo=UTC)


def test_subtract_months_crosses_year_boundary() -> None:
    moment = datetime(2026, 2, 10, tzinfo=UTC)
    assert subtract_months(moment, 3) == datetime(2025, 11, 10, tzinfo=UTC)
    assert subtract_months(moment, 12) == datetime(2025, 2, 10, tzinfo=UTC)


def test_subtract_months_handles_leap_day() -> None:
    assert subtract_months(datetime(2024, 2, 29), 12) == datetime(2023, 2, 28)


def test_resolve_since_day_windows() -> None:
    now = datetime(2026, 3, 15, 12, tzinfo=UTC)
    assert resolve_since(TimeRange.LAST_7_DAYS, now) == now - timedelta(days=7)
    assert resolve_since(TimeRange.LAST_30_DAYS, now) == now - timedelta(days=30)


def test_resolve_since_month_windows() -> None:
    now = datetime(2026, 3, 15, 12, tzinfo=UTC)
    assert resolve_since(TimeRange.LAST_3_MONTHS, now) == datetime(2025, 12, 15, 12, tzinfo=UTC)
    assert resolve_since(TimeRange.LAST_YEAR, now) == datetime(2025, 3, 15, 12, tzinfo=UTC)
