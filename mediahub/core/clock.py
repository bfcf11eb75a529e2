"""Monotonic wall-clock source for activity timestamps."""

from __future__ import annotations

import threading
from collections.abc import Callable
from datetime import UTC, datetime


class MonotonicClock:
    """UTC clock that never goes backwards.

    Concurrent writers may receive identical timestamps, but a later call never
    returns an earlier instant than a previous one, even if the system clock is
    stepped back.
    """

    def __init__(self, source: Callable[[], datetime] | None = None) -> None:
        self._source = source or (lambda: datetime.now(UTC))
        self._last: datetime | None = None
        self._lock = threading.Lock()

    def now(self) -> datetime:
        """Return the current UTC time, clamped to the last value handed out."""
        current = self._source()
        with self._lock:
            if self._last is not None and current < self._last:
                current = self._last
            self._last = current
        return current


# Process-wide default, used when no clock is injected
default_clock = MonotonicClock()
