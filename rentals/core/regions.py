"""Region entities and the store that loads them."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Set

from django.core.exceptions import ValidationError

from rentals.core import models
from rentals.core.abstractions import WeatherObservation
from rentals.core.countries import CountryDirectory, get_country_directory


class RegionNotFound(LookupError):
    """Raised when a region lookup by name and country has no result."""


@dataclass(frozen=True)
class WeatherCacheKey:
    """Cache key for a region's weather.

    Only the address is rendered into the string form, which has to stay
    byte-identical for caches shared with other consumers.
    """

    region_id: Optional[int]
    address: str

    def __str__(self) -> str:
        return f"region.address({self.address}).weather"


@dataclass(eq=False)
class Region:
    """A city within a country. Compared and hashed by identity."""

    name: str
    country_code: str
    id: Optional[int] = None
    directory: CountryDirectory = field(default_factory=get_country_directory, repr=False)
    # Last known observation. Held in memory only and never expires by itself.
    weather: Optional[WeatherObservation] = field(default=None, repr=False)

    @property
    def country_name(self) -> str:
        return self.directory.display_name(self.country_code)

    def address(self, prefix: Optional[str] = None) -> str:
        # e.g.
        # 123 Example St, Melbourne, Australia
        # Melbourne, Australia
        parts = (prefix, self.name, self.country_name)
        return ", ".join(part for part in parts if part and part.strip())

    @property
    def weather_cache_key(self) -> WeatherCacheKey:
        return WeatherCacheKey(region_id=self.id, address=self.address())

    def cache_key(self) -> str:
        return str(self.weather_cache_key)


class RegionStore:
    """Query and persist regions through a database session.

    Every finder returns a materialised set. A store keeps one instance per
    region id so results of different finders can be intersected, and so
    in-memory weather survives repeated lookups within the same store.
    """

    def __init__(
        self,
        session: models.DatabaseSession,
        directory: Optional[CountryDirectory] = None,
    ) -> None:
        self.session = session
        self.directory = directory or get_country_directory()
        self._identity: Dict[int, Region] = {}

    # -- Finders ------------------------------------------------------------
    def all(self) -> Set[Region]:
        return self._materialize(models.select_regions(self.session))

    def find_by_name_exact(self, name: str) -> Set[Region]:
        return self._materialize(models.regions_by_lower_name(self.session, name))

    def find_by_name_prefix(self, prefix: str) -> Set[Region]:
        return self._materialize(models.regions_by_name_prefix(self.session, prefix))

    def find_by_country_code(self, code: str) -> Set[Region]:
        return self._materialize(models.regions_by_country_codes(self.session, [code]))

    def search_by_country_name_prefix(self, query: str) -> Set[Region]:
        codes = self.directory.codes_with_name_prefix(query)
        return self._materialize(models.regions_by_country_codes(self.session, codes))

    def get(self, name: str, country_code: str) -> Region:
        candidates = self.find_by_name_exact(name) & self.find_by_country_code(country_code)
        if not candidates:
            raise RegionNotFound(f"No region named {name!r} in {country_code!r}")
        return min(candidates, key=lambda region: region.id)

    def address(self, region: Region, prefix: Optional[str] = None) -> str:
        return region.address(prefix)

    # -- Persistence --------------------------------------------------------
    def save(self, region: Region) -> Region:
        self.validate(region)
        region.country_code = region.country_code.lower()
        if region.id is None:
            record = models.insert_region(
                self.session, name=region.name, country_code=region.country_code
            )
            region.id = record.id
        else:
            models.update_region(
                self.session,
                region_id=region.id,
                name=region.name,
                country_code=region.country_code,
            )
        self._identity[region.id] = region
        return region

    def validate(self, region: Region) -> None:
        errors: Dict[str, list] = {}
        if not region.name or not region.name.strip():
            errors["name"] = ["can't be blank"]
        code = region.country_code
        if not code:
            errors["country_code"] = ["can't be blank"]
        elif len(code) != 2:
            errors["country_code"] = ["is the wrong length (should be 2 characters)"]
        elif not self.directory.is_valid_code(code):
            errors["country_code"] = ["must be valid alpha 2 country code"]
        if errors:
            raise ValidationError(errors)

    # -- Helpers ------------------------------------------------------------
    def _materialize(self, records: Iterable[models.RegionRecord]) -> Set[Region]:
        regions = set()
        for record in records:
            region = self._identity.get(record.id)
            if region is None:
                region = Region(
                    name=record.name,
                    country_code=record.country_code,
                    id=record.id,
                    directory=self.directory,
                )
                self._identity[record.id] = region
            regions.add(region)
        return regions


__all__ = ["Region", "RegionNotFound", "RegionStore", "WeatherCacheKey"]
