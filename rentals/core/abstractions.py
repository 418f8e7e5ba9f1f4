"""Core abstractions for the region weather domain."""
from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, Protocol, Sequence

# Observations come straight from the provider's JSON and are not trusted to
# have any particular shape.
WeatherObservation = Mapping[str, Any]


class WeatherProvider(Protocol):
    """A data source returning weather observations for a batch of addresses."""

    name: str

    def fetch_weather(self, addresses: Sequence[str]) -> Iterable[WeatherObservation]:
        """Return observations tagged with ``location.city``/``location.country``.

        Results are not ordered like ``addresses`` and have to be matched by
        content.
        """
        ...


class CacheBackend(Protocol):
    """The subset of Django's cache API the weather cache relies on."""

    def get(self, key: str, default: Any = None) -> Any:
        ...

    def set(self, key: str, value: Any, timeout: Optional[float] = None) -> None:
        ...
