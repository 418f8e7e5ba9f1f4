"""Batched weather lookup for regions, backed by a TTL cache."""
from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

from rentals.core.abstractions import WeatherObservation, WeatherProvider
from rentals.core.cache import WEATHER_CACHE_EXPIRY, CacheUnavailableError, WeatherCache
from rentals.core.health import HealthRegistry
from rentals.core.providers.base import ExternalFetchError
from rentals.core.regions import Region


def observation_location(observation: Any) -> Tuple[Any, Any]:
    """Return ``(city, country)`` from an observation, ``None`` where absent."""
    if not isinstance(observation, Mapping):
        return None, None
    location = observation.get("location")
    if not isinstance(location, Mapping):
        return None, None
    return location.get("city"), location.get("country")


def observation_matches(region: Region, observation: Any) -> bool:
    """City must be equal; the observed country only has to prefix ours.

    Providers abbreviate country names ("Aus" for "Australia"), so the check
    runs one way only. The city comparison is case sensitive.
    """
    city, country = observation_location(observation)
    if city != region.name or not isinstance(country, str):
        return False
    return region.country_name.startswith(country)


class WeatherResolver:
    """Resolve weather for many regions with at most one provider call."""

    def __init__(
        self,
        provider: WeatherProvider,
        cache: Optional[WeatherCache] = None,
        *,
        ttl: float = WEATHER_CACHE_EXPIRY,
        health: Optional[HealthRegistry] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.provider = provider
        self.cache = cache or WeatherCache()
        self.ttl = ttl
        self.health = health
        self._log = logger or logging.getLogger(__name__)

    # Public API ---------------------------------------------------------
    def weather(self, region: Region, load: bool = False) -> Optional[WeatherObservation]:
        if load and region.weather is None:
            self.resolve_batch([region])
        return region.weather

    def resolve_batch(self, regions: Iterable[Region]) -> None:
        """Populate ``weather`` on every region that can be resolved.

        Regions already holding weather are left alone. The rest are looked
        up in the cache and whatever is still missing is fetched in a single
        provider call. Failures of the cache or the provider leave regions
        unresolved instead of raising.
        """
        regions = list(regions)
        self._load_from_cache(regions)

        to_fetch = self._unresolved(regions)
        if not to_fetch:
            self._record_resolution(fetched=False)
            return

        observations = self._fetch([region.address() for region in to_fetch])
        self._record_resolution(fetched=True)

        matched = 0
        writable = True
        for region in to_fetch:
            observation = next(
                (candidate for candidate in observations if observation_matches(region, candidate)),
                None,
            )
            if observation is None:
                continue
            region.weather = observation
            matched += 1
            if writable:
                writable = self._store(region, observation)

        self._log.debug(
            "Resolved weather for %d of %d regions (%d observations)",
            matched,
            len(to_fetch),
            len(observations),
        )

    # Helpers ------------------------------------------------------------
    def _load_from_cache(self, regions: Sequence[Region]) -> None:
        hits = misses = 0
        for region in regions:
            if region.weather is not None:
                continue
            try:
                cached = self.cache.get(region.weather_cache_key)
            except CacheUnavailableError as exc:
                self._log.warning("Weather cache unavailable, fetching everything: %s", exc)
                self._record_cache(errors=1)
                break
            if cached is None:
                misses += 1
            else:
                region.weather = cached
                hits += 1
        self._record_cache(hits=hits, misses=misses)

    def _unresolved(self, regions: Sequence[Region]) -> List[Region]:
        seen = set()
        pending = []
        for region in regions:
            if region.weather is not None or id(region) in seen:
                continue
            seen.add(id(region))
            pending.append(region)
        return pending

    def _fetch(self, addresses: List[str]) -> List[Any]:
        # Equal addresses go out once; matching still runs per region.
        addresses = list(dict.fromkeys(addresses))
        try:
            return list(self.provider.fetch_weather(addresses))
        except ExternalFetchError as exc:
            self._log.error("Weather provider %s failed: %s", self.provider.name, exc)
        except Exception as exc:  # noqa: BLE001 - providers are pluggable
            self._log.exception("Weather provider %s crashed: %s", self.provider.name, exc)
        if self.health is not None:
            self.health.record_provider_error(self.provider.name)
        return []

    def _store(self, region: Region, observation: WeatherObservation) -> bool:
        try:
            self.cache.put(region.weather_cache_key, observation, self.ttl)
        except CacheUnavailableError as exc:
            self._log.warning("Could not write weather for %s: %s", region.address(), exc)
            self._record_cache(errors=1)
            return False
        self._record_cache(writes=1)
        return True

    def _record_cache(self, **counters: int) -> None:
        if self.health is not None:
            self.health.record_cache(**counters)

    def _record_resolution(self, fetched: bool) -> None:
        if self.health is not None:
            self.health.record_resolution(fetched=fetched)


__all__ = ["WeatherResolver", "observation_location", "observation_matches"]
