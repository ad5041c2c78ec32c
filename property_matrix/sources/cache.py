"""
cache.py

Time-boxed, in-process snapshot cache for fetched sheet data.

Each data service owns one TimedCache. A snapshot is fresh while
clock() - timestamp < ttl. The clock is injectable so tests can move time
forward without sleeping.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Callable, Generic, TypeVar

from ..config import CACHE_CONFIG

T = TypeVar("T")


class TimedCache(Generic[T]):
    """Holds one value plus the time it was stored."""

    def __init__(
        self,
        ttl: float = CACHE_CONFIG.ttl_seconds,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.ttl = ttl
        self._clock = clock
        self.value: T | None = None
        self.timestamp: float | None = None

    def is_fresh(self) -> bool:
        if self.timestamp is None:
            return False
        return self._clock() - self.timestamp < self.ttl

    def get(self) -> T | None:
        """Return the cached value if it is still fresh, else None."""
        return self.value if self.is_fresh() else None

    def set(self, value: T) -> None:
        self.value = value
        self.timestamp = self._clock()

    def clear(self) -> None:
        self.value = None
        self.timestamp = None

    @property
    def timestamp_iso(self) -> str | None:
        # ISO-8601 UTC, the form the payload _meta blocks use
        if self.timestamp is None:
            return None
        return datetime.fromtimestamp(self.timestamp, tz=timezone.utc).isoformat()

    def __repr__(self) -> str:
        state = "fresh" if self.is_fresh() else "stale"
        return f"TimedCache(ttl={self.ttl}, {state})"
