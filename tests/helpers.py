from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence


COUNTRIES = {
    "AT": "Austria",
    "AU": "Australia",
    "GB": "United Kingdom",
    "NZ": "New Zealand",
    "US": "United States",
}


class TimeController:
    def __init__(self) -> None:
        self.now = 0.0

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def __call__(self) -> float:
        return self.now


class RecordingProvider:
    """Returns canned observations and remembers every batch it was asked for."""

    name = "recording"

    def __init__(self, observations: Sequence[Any] = (), error: Optional[Exception] = None) -> None:
        self.observations = list(observations)
        self.error = error
        self.calls: List[List[str]] = []

    def fetch_weather(self, addresses: Sequence[str]):
        self.calls.append(list(addresses))
        if self.error is not None:
            raise self.error
        # Hand out a one-shot iterator like the HTTP provider does.
        return iter(self.observations)


def make_observation(city: Any, country: Any, temp: str = "21") -> Dict[str, Any]:
    return {
        "location": {"city": city, "country": country, "region": ""},
        "item": {"condition": {"temp": temp, "text": "Sunny"}},
    }
