"""Management command to register a region."""
from __future__ import annotations

import json
from typing import Any

from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError

from rentals.api.views import serialize_region
from rentals.core.models import session_scope
from rentals.core.regions import Region, RegionStore


class Command(BaseCommand):
    help = "Create a region from a city name and a two letter country code"

    def add_arguments(self, parser) -> None:  # noqa: D401
        parser.add_argument("name", type=str, help="City name")
        parser.add_argument("country_code", type=str, help="ISO 3166 alpha-2 country code")

    def handle(self, *args: Any, **options: Any) -> None:  # noqa: D401
        try:
            with session_scope() as session:
                store = RegionStore(session)
                region = store.save(
                    Region(name=options["name"], country_code=options["country_code"], directory=store.directory)
                )
        except ValidationError as exc:
            problems = "; ".join(
                f"{field} {message}" for field, messages in exc.message_dict.items() for message in messages
            )
            raise CommandError(f"Invalid region: {problems}") from exc

        self.stdout.write(json.dumps(serialize_region(region)))
