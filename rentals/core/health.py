"""In-memory health registry for the admin dashboard.

Counters are process wide and reset on restart. The weather resolver feeds
them; the admin health endpoint reads a snapshot.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from threading import Lock
from typing import Dict, Optional


@dataclass(frozen=True)
class CacheStats:
    """Simple container for cache related counters."""

    hits: int = 0
    misses: int = 0
    writes: int = 0
    errors: int = 0

    def as_dict(self) -> Dict[str, int]:
        return {"hits": self.hits, "misses": self.misses, "writes": self.writes, "errors": self.errors}


class HealthRegistry:
    """Stores provider error counters, cache stats and resolution counters."""

    def __init__(self) -> None:
        self._provider_errors: Dict[str, int] = {}
        self._cache_stats: CacheStats = CacheStats()
        self._batches = 0
        self._provider_calls = 0
        self._last_resolution: Optional[str] = None
        self._lock = Lock()

    # -- Provider errors ----------------------------------------------------
    def record_provider_error(self, provider: str, increment: int = 1) -> None:
        if not provider:
            raise ValueError("provider must be provided")
        if increment <= 0:
            raise ValueError("increment must be positive")
        with self._lock:
            self._provider_errors[provider] = (
                self._provider_errors.get(provider, 0) + increment
            )

    # -- Cache stats --------------------------------------------------------
    def record_cache(self, *, hits: int = 0, misses: int = 0, writes: int = 0, errors: int = 0) -> None:
        if min(hits, misses, writes, errors) < 0:
            raise ValueError("cache counters must be non-negative")
        with self._lock:
            stats = self._cache_stats
            self._cache_stats = replace(
                stats,
                hits=stats.hits + hits,
                misses=stats.misses + misses,
                writes=stats.writes + writes,
                errors=stats.errors + errors,
            )

    # -- Resolutions --------------------------------------------------------
    def record_resolution(self, fetched: bool, when: Optional[datetime] = None) -> None:
        when = when or datetime.now(timezone.utc)
        with self._lock:
            self._batches += 1
            if fetched:
                self._provider_calls += 1
            self._last_resolution = self._format_datetime(when)

    # -- Snapshot -----------------------------------------------------------
    def snapshot(self) -> Dict[str, object]:
        with self._lock:
            providers = dict(self._provider_errors)
            cache = self._cache_stats.as_dict()
            resolutions = {
                "batches": self._batches,
                "provider_calls": self._provider_calls,
                "last": self._last_resolution,
            }
        return {"providers": providers, "cache": cache, "resolutions": resolutions}

    @staticmethod
    def _format_datetime(value: datetime) -> str:
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat()


__all__ = ["CacheStats", "HealthRegistry"]
