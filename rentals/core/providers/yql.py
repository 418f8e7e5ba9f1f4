"""Batched weather provider speaking the YQL ``weather.forecast`` dialect."""
from __future__ import annotations

import os
from typing import Any, Iterator, Mapping, Optional, Sequence

import requests

from rentals.core.abstractions import WeatherObservation, WeatherProvider
from rentals.core.providers.base import ExternalFetchError, HttpProvider, RequestConfig


QUERY_TEMPLATE = (
    "select * from weather.forecast where u='{units}' and woeid in "
    "(select woeid from geo.places(1) where text in ({places}))"
)


def quote(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


class YqlWeatherProvider(HttpProvider, WeatherProvider):
    """Fetch the weather of many places with a single YQL query.

    Each returned channel carries a ``location`` record (``city``,
    ``country``, ``region``) next to the ``item.condition`` data.
    """

    name = "yql"
    base_url = "https://query.yahooapis.com/v1/public/yql"

    def __init__(
        self,
        base_url: Optional[str] = None,
        units: str = "c",
        session: Optional[requests.Session] = None,
        request_config: Optional[RequestConfig] = None,
    ) -> None:
        super().__init__(session=session, request_config=request_config)
        self.base_url = base_url or self.base_url
        self.units = units
        self._testing_mode = os.environ.get("TESTING_MODE", "0") == "1"

    def build_query(self, addresses: Sequence[str]) -> str:
        places = ", ".join(quote(address) for address in addresses)
        return QUERY_TEMPLATE.format(units=self.units, places=places)

    def fetch_weather(self, addresses: Sequence[str]) -> Iterator[WeatherObservation]:
        if not addresses:
            return iter(())
        params = {"q": self.build_query(addresses), "format": "json"}
        response = self._request("GET", self.base_url, params=params)
        self._log_response(response, len(addresses))
        return iter(self._channels(self._json(response)))

    def _channels(self, data: Any) -> Sequence[Any]:
        if not isinstance(data, Mapping) or not isinstance(data.get("query"), Mapping):
            raise ExternalFetchError("missing query envelope")
        results = data["query"].get("results")
        if results is None:
            return []
        if not isinstance(results, Mapping):
            raise ExternalFetchError("malformed results")
        channels = results.get("channel")
        if channels is None:
            return []
        # A single match is returned as an object rather than a list.
        if isinstance(channels, Mapping):
            return [channels]
        if not isinstance(channels, list):
            raise ExternalFetchError("malformed channel list")
        return channels

    def _log_response(self, response: requests.Response, batch_size: int) -> None:
        if not self._testing_mode:
            return
        self._log.info(
            "YQL request",
            extra={"url": response.url, "batch": batch_size, "status": response.status_code, "body": response.text[:500]},
        )


__all__ = ["YqlWeatherProvider"]
