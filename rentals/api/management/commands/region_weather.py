"""Management command to fetch weather using the same stack as the API."""
from __future__ import annotations

import json
from typing import Any

from django.core.management.base import BaseCommand, CommandError

from rentals.api.views import filter_regions, get_weather_resolver, serialize_region
from rentals.core.models import session_scope
from rentals.core.regions import RegionStore


class Command(BaseCommand):
    help = "Resolve current weather for the matching regions in one batch"

    def add_arguments(self, parser) -> None:  # noqa: D401
        parser.add_argument("--name", type=str, help="Exact region name (case-insensitive)")
        parser.add_argument("--country-code", type=str, help="Two letter country code")
        parser.add_argument("--country", type=str, help="Country name prefix, e.g. 'austr'")

    def handle(self, *args: Any, **options: Any) -> None:  # noqa: D401
        with session_scope() as session:
            regions = filter_regions(
                RegionStore(session),
                region_name=options.get("name"),
                country_code=options.get("country_code"),
                country=options.get("country"),
            )
        if not regions:
            raise CommandError("No regions match the given filters")

        get_weather_resolver().resolve_batch(regions)
        for region in regions:
            self.stdout.write(json.dumps(serialize_region(region)))
