"""In-process TTL cache for dashboard aggregations."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Key prefixes, one per cached family
ACTIVITY_PREFIX = "activity:"
CHARTS_PREFIX = "dashboard:charts:"


@dataclass
class CacheEntry:
    """Cached value with its absolute expiry (epoch seconds)."""

    value: Any
    expires_at: float
    last_accessed: float
    hits: int = 0


class CacheKeys:
    """Cache key builders."""

    @staticmethod
    def activity_stats(time_range: str) -> str:
        return f"{ACTIVITY_PREFIX}stats:{time_range}"

    @staticmethod
    def user_activity_metrics() -> str:
        return f"{ACTIVITY_PREFIX}user-metrics"

    @staticmethod
    def chart(chart_type: str, time_range: str) -> str:
        return f"{CHARTS_PREFIX}{chart_type}:{time_range}"

    @staticmethod
    def geographic() -> str:
        return f"{CHARTS_PREFIX}geographic"


class CacheService:
    """Process-local key/value cache with per-entry TTL.

    Expired entries are evicted lazily: expiry is checked on every ``get`` and
    the entry is dropped at that point, there is no background sweep. When the
    cache is full, inserting a new key evicts the least recently accessed one.

    The cache holds no cross-process guarantees and starts empty after a
    restart. Callers must produce correct results with the cache disabled.
    """

    def __init__(
        self,
        default_ttl: int = 900,
        max_entries: int = 1000,
        enabled: bool = True,
        timer: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the cache.

        Args:
            default_ttl: TTL in seconds used when ``set`` gets none
            max_entries: Capacity before least-recently-used eviction
            enabled: When False every lookup misses and writes are dropped
            timer: Epoch-seconds clock, injectable for tests
        """
        self.default_ttl = default_ttl
        self.max_entries = max_entries
        self.enabled = enabled
        self._timer = timer
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None on miss or expiry."""
        if not self.enabled:
            return None

        now = self._timer()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None
            if now >= entry.expires_at:
                del self._entries[key]
                self._misses += 1
                return None
            entry.last_accessed = now
            entry.hits += 1
            self._hits += 1
            return entry.value

    def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Store a value for ``ttl`` seconds."""
        if not self.enabled:
            return

        now = self._timer()
        ttl = self.default_ttl if ttl is None else ttl
        with self._lock:
            if key not in self._entries and len(self._entries) >= self.max_entries:
                self._evict_least_recently_used()
            self._entries[key] = CacheEntry(value=value, expires_at=now + ttl, last_accessed=now)

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def clear_by_prefix(self, prefix: str) -> int:
        """Drop every key starting with ``prefix``.

        Returns:
            Number of entries removed
        """
        with self._lock:
            keys = [key for key in self._entries if key.startswith(prefix)]
            for key in keys:
                del self._entries[key]
        if keys:
            logger.debug("Cleared %d cache entries with prefix %s", len(keys), prefix)
        return len(keys)

    def get_or_set(self, key: str, fetcher: Callable[[], T], ttl: int | None = None) -> T:
        """Cache-aside lookup: return the cached value or compute and store it.

        Exceptions raised by ``fetcher`` propagate and nothing is cached.
        """
        cached = self.get(key)
        if cached is not None:
            return cached

        value = fetcher()
        self.set(key, value, ttl)
        return value

    def get_stats(self) -> dict[str, Any]:
        """Return entry and hit/miss counters."""
        now = self._timer()
        with self._lock:
            expired = sum(1 for entry in self._entries.values() if now >= entry.expires_at)
            lookups = self._hits + self._misses
            return {
                "enabled": self.enabled,
                "totalItems": len(self._entries),
                "expiredItems": expired,
                "hits": self._hits,
                "misses": self._misses,
                "hitRate": round(self._hits / lookups, 4) if lookups else 0.0,
            }

    def _evict_least_recently_used(self) -> None:
        # caller holds the lock
        if not self._entries:
            return
        oldest_key = min(self._entries, key=lambda k: self._entries[k].last_accessed)
        del self._entries[oldest_key]
