from __future__ import annotations

import pytest
import requests

from helpers import make_observation
from rentals.core.providers.base import ExternalFetchError, QuotaExceeded
from rentals.core.providers.yql import YqlWeatherProvider


URL = "https://yql.test/v1/public/yql"


def _provider() -> YqlWeatherProvider:
    return YqlWeatherProvider(base_url=URL)


def test_fetch_sends_one_query_for_the_batch(requests_mock):
    requests_mock.get(
        URL,
        json={
            "query": {
                "count": 2,
                "results": {
                    "channel": [
                        make_observation("Vienna", "Austria"),
                        make_observation("Melbourne", "Australia"),
                    ]
                },
            }
        },
    )

    observations = list(_provider().fetch_weather(["Melbourne, Australia", "Vienna, Austria"]))

    assert requests_mock.call_count == 1
    query = requests_mock.last_request.qs["q"][0]
    assert '"melbourne, australia", "vienna, austria"' in query
    assert requests_mock.last_request.qs["format"] == ["json"]
    assert [item["location"]["city"] for item in observations] == ["Vienna", "Melbourne"]


def test_single_channel_object_is_wrapped(requests_mock):
    requests_mock.get(URL, json={"query": {"count": 1, "results": {"channel": make_observation("Vienna", "Austria")}}})

    observations = list(_provider().fetch_weather(["Vienna, Austria"]))

    assert len(observations) == 1
    assert observations[0]["location"]["country"] == "Austria"


def test_empty_results_yield_nothing(requests_mock):
    requests_mock.get(URL, json={"query": {"count": 0, "results": None}})

    assert list(_provider().fetch_weather(["Nowhere, Austria"])) == []


def test_empty_batch_makes_no_request(requests_mock):
    assert list(_provider().fetch_weather([])) == []
    assert requests_mock.call_count == 0


def test_build_query_escapes_quotes():
    query = _provider().build_query(['He said "hi", Australia'])

    assert '"He said \\"hi\\", Australia"' in query
    assert query.startswith("select * from weather.forecast where u='c'")


def test_build_query_takes_one_place_per_address():
    query = _provider().build_query(["Melbourne, Australia", "Vienna, Austria"])

    assert query.endswith(
        '(select woeid from geo.places(1) where text in ("Melbourne, Australia", "Vienna, Austria"))'
    )


def test_quota_is_reported(requests_mock):
    requests_mock.get(URL, status_code=429, text="quota exceeded")

    with pytest.raises(QuotaExceeded):
        _provider().fetch_weather(["Vienna, Austria"])


def test_server_error_is_reported(requests_mock):
    requests_mock.get(URL, status_code=502, text="bad gateway")

    with pytest.raises(ExternalFetchError):
        _provider().fetch_weather(["Vienna, Austria"])


def test_timeout_is_reported(requests_mock):
    requests_mock.get(URL, exc=requests.exceptions.ConnectTimeout)

    with pytest.raises(ExternalFetchError, match="timeout"):
        _provider().fetch_weather(["Vienna, Austria"])


@pytest.mark.parametrize(
    "payload",
    [
        {"error": {"description": "Query syntax error"}},
        {"query": {"results": "nope"}},
        {"query": {"results": {"channel": "nope"}}},
        ["not", "an", "object"],
    ],
)
def test_malformed_envelope_is_reported(requests_mock, payload):
    requests_mock.get(URL, json=payload)

    with pytest.raises(ExternalFetchError):
        _provider().fetch_weather(["Vienna, Austria"])


def test_invalid_json_is_reported(requests_mock):
    requests_mock.get(URL, text="<html>oops</html>")

    with pytest.raises(ExternalFetchError, match="invalid JSON"):
        _provider().fetch_weather(["Vienna, Austria"])
