from __future__ import annotations

import json
from io import StringIO

import pytest
from django.conf import settings
from django.core.cache import caches
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import override_settings

from helpers import make_observation
from rentals.api import views
from rentals.core import models


URL = "https://yql.test/v1/public/yql"


@pytest.fixture(autouse=True)
def weather_stack(database):
    views.get_weather_resolver.cache_clear()
    caches[settings.WEATHER_CACHE_ALIAS].clear()
    with override_settings(WEATHER_PROVIDER_URL=URL, WEATHER_PROVIDER_RETRIES=0):
        yield
    views.get_weather_resolver.cache_clear()


def test_region_add_saves_region() -> None:
    out = StringIO()

    call_command("region_add", "Melbourne", "AU", stdout=out)

    payload = json.loads(out.getvalue())
    assert payload["country_code"] == "au"
    assert payload["address"] == "Melbourne, Australia"
    with models.session_scope() as session:
        assert models.count_regions(session) == 1


def test_region_add_reports_invalid_country() -> None:
    with pytest.raises(CommandError, match="country_code must be valid alpha 2 country code"):
        call_command("region_add", "Atlantis", "ZZ", stdout=StringIO())

    with models.session_scope() as session:
        assert models.count_regions(session) == 0


def test_region_weather_prints_resolved_regions(requests_mock) -> None:
    call_command("region_add", "Melbourne", "au", stdout=StringIO())
    call_command("region_add", "Vienna", "at", stdout=StringIO())
    requests_mock.get(
        URL,
        json={"query": {"count": 1, "results": {"channel": make_observation("Vienna", "Austria")}}},
    )
    out = StringIO()

    call_command("region_weather", "--country", "austr", stdout=out)

    lines = [json.loads(line) for line in out.getvalue().splitlines()]
    assert [line["name"] for line in lines] == ["Melbourne", "Vienna"]
    assert lines[0]["weather"] is None
    assert lines[1]["weather"]["location"]["city"] == "Vienna"
    assert requests_mock.call_count == 1


def test_region_weather_requires_matches() -> None:
    with pytest.raises(CommandError):
        call_command("region_weather", "--name", "Nowhere", stdout=StringIO())
