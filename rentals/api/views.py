"""REST API views for regions and their weather."""
from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, List, Optional, Set

from django.conf import settings
from django.core.cache import caches
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from rentals.core.cache import WeatherCache
from rentals.core.health import HealthRegistry
from rentals.core.models import session_scope
from rentals.core.providers.base import RequestConfig
from rentals.core.providers.yql import YqlWeatherProvider
from rentals.core.regions import Region, RegionStore
from rentals.core.services.weather_resolver import WeatherResolver


TRUTHY = {"1", "true", "yes", "on"}


@lru_cache(maxsize=1)
def get_health_registry() -> HealthRegistry:
    return HealthRegistry()


@lru_cache(maxsize=1)
def get_weather_resolver() -> WeatherResolver:
    provider = YqlWeatherProvider(
        base_url=settings.WEATHER_PROVIDER_URL,
        request_config=RequestConfig(
            timeout=settings.WEATHER_PROVIDER_TIMEOUT,
            retries=settings.WEATHER_PROVIDER_RETRIES,
        ),
    )
    return WeatherResolver(
        provider,
        WeatherCache(caches[settings.WEATHER_CACHE_ALIAS]),
        ttl=settings.WEATHER_CACHE_TIMEOUT,
        health=get_health_registry(),
    )


def filter_regions(
    store: RegionStore,
    *,
    region_name: Optional[str] = None,
    country_code: Optional[str] = None,
    country: Optional[str] = None,
) -> List[Region]:
    """Intersect the requested filters; no filter at all means every region."""
    selections: List[Set[Region]] = []
    if region_name:
        selections.append(store.find_by_name_exact(region_name))
    if country_code:
        selections.append(store.find_by_country_code(country_code))
    if country:
        selections.append(store.search_by_country_name_prefix(country))
    regions = set.intersection(*selections) if selections else store.all()
    return sorted(regions, key=lambda region: region.id)


def serialize_region(region: Region) -> Dict[str, Any]:
    return {
        "id": region.id,
        "name": region.name,
        "country_code": region.country_code,
        "country_name": region.country_name,
        "address": region.address(),
        "weather": region.weather,
    }


class RegionListView(APIView):
    """List regions, optionally with their current weather."""

    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):  # noqa: D401
        """Return regions matching the query parameters."""
        params = request.query_params
        country_code = params.get("country_code")
        if country_code and len(country_code) != 2:
            return Response(
                {"detail": "country_code must be a two letter code"},
                status=status.HTTP_400_BAD_REQUEST,
            )
        with_weather = params.get("weather", "").lower() in TRUTHY

        with session_scope() as session:
            regions = filter_regions(
                RegionStore(session),
                region_name=params.get("region_name"),
                country_code=country_code,
                country=params.get("country"),
            )
        if with_weather and regions:
            get_weather_resolver().resolve_batch(regions)
        return Response([serialize_region(region) for region in regions], status=status.HTTP_200_OK)


class AdminHealthView(APIView):
    """Serve health counters for the admin UI."""

    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):  # noqa: D401
        """Return the current health snapshot."""
        return Response(get_health_registry().snapshot(), status=status.HTTP_200_OK)
