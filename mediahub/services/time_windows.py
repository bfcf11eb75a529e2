"""Relative time windows used by activity statistics and dashboard charts."""

from __future__ import annotations

import calendar
from collections.abc import Collection
from datetime import datetime, timedelta

from mediahub.core.exceptions import ValidationError
from mediahub.models.enums import TimeRange


def parse_time_range(value: TimeRange | str, allowed: Collection[TimeRange] | None = None) -> TimeRange:
    """Coerce a query value to a ``TimeRange``.

    Args:
        value: Enum member or its string value ("7d", "30d", "3m", "1y")
        allowed: Optional subset of accepted ranges

    Returns:
        The matching TimeRange

    Raises:
        ValidationError: If the value is unknown or not in ``allowed``
    """
    try:
        time_range = TimeRange(value)
    except ValueError as exc:
        raise ValidationError(f"Invalid time range: {value}") from exc

    if allowed is not None and time_range not in allowed:
        accepted = ", ".join(sorted(r.value for r in allowed))
        raise ValidationError(f"Time range {time_range.value} not supported here (use {accepted})")
    return time_range


def subtract_months(moment: datetime, months: int) -> datetime:
    """Step back whole calendar months, clamping the day to the target month's length."""
    month_index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def resolve_since(time_range: TimeRange, now: datetime) -> datetime:
    """Return the inclusive lower bound of the window ending at ``now``."""
    if time_range is TimeRange.LAST_7_DAYS:
        return now - timedelta(days=7)
    if time_range is TimeRange.LAST_30_DAYS:
        return now - timedelta(days=30)
    if time_range is TimeRange.LAST_3_MONTHS:
        return subtract_months(now, 3)
    return subtract_months(now, 12)
