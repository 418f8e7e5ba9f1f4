from __future__ import annotations

import time
from typing import Any, Dict, Optional, Tuple, Union

from rentals.core.abstractions import CacheBackend, WeatherObservation
from rentals.core.regions import WeatherCacheKey


WEATHER_CACHE_EXPIRY = 5 * 60

CacheKey = Union[WeatherCacheKey, str]


class CacheUnavailableError(RuntimeError):
    """Raised when the cache backend cannot be read or written."""


def verbatim_key(key: str, key_prefix: str, version: int) -> str:
    """Django ``KEY_FUNCTION`` storing keys without prefix or version."""
    return key


class MemoryCache:
    """A lightweight TTL cache with the Django cache call signatures."""

    def __init__(self, time_func=time.monotonic) -> None:
        self._time_func = time_func
        self._storage: Dict[str, Tuple[Optional[float], Any]] = {}

    def get(self, key: str, default: Any = None) -> Any:
        item = self._storage.get(key)
        if not item:
            return default
        expires_at, value = item
        if expires_at is not None and expires_at <= self._time_func():
            self._storage.pop(key, None)
            return default
        return value

    def set(self, key: str, value: Any, timeout: Optional[float] = None) -> None:
        expires_at = self._time_func() + timeout if timeout is not None else None
        self._storage[key] = (expires_at, value)

    def clear(self) -> None:
        self._storage.clear()

    def __len__(self) -> int:
        return len(self._storage)


class WeatherCache:
    """Best-effort weather store on top of a cache backend.

    Any backend failure is re-raised as :class:`CacheUnavailableError` so
    callers only have one thing to catch.
    """

    def __init__(self, backend: Optional[CacheBackend] = None) -> None:
        self.backend = backend if backend is not None else MemoryCache()

    def get(self, key: CacheKey) -> Optional[WeatherObservation]:
        try:
            return self.backend.get(str(key))
        except Exception as exc:  # noqa: BLE001 - backend errors vary per driver
            raise CacheUnavailableError(f"cache read failed for {key}") from exc

    def put(self, key: CacheKey, value: WeatherObservation, ttl: float = WEATHER_CACHE_EXPIRY) -> None:
        try:
            self.backend.set(str(key), value, ttl)
        except Exception as exc:  # noqa: BLE001 - backend errors vary per driver
            raise CacheUnavailableError(f"cache write failed for {key}") from exc


__all__ = [
    "CacheUnavailableError",
    "MemoryCache",
    "WEATHER_CACHE_EXPIRY",
    "WeatherCache",
    "verbatim_key",
]
