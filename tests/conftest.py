from __future__ import annotations

import pytest

from helpers import COUNTRIES, RecordingProvider, TimeController
from rentals.core import models
from rentals.core.countries import CountryDirectory
from rentals.core.providers.base import ExternalFetchError
from rentals.core.regions import Region, RegionStore


@pytest.fixture()
def directory() -> CountryDirectory:
    return CountryDirectory(COUNTRIES)


@pytest.fixture()
def clock() -> TimeController:
    return TimeController()


@pytest.fixture()
def database(tmp_path) -> str:
    return models.configure_engine(f"sqlite:///{tmp_path / 'regions.db'}")


@pytest.fixture()
def session(database):
    with models.session_scope() as session:
        yield session


@pytest.fixture()
def store(session, directory) -> RegionStore:
    return RegionStore(session, directory=directory)


@pytest.fixture()
def melbourne(directory) -> Region:
    return Region(name="Melbourne", country_code="au", id=1, directory=directory)


@pytest.fixture()
def vienna(directory) -> Region:
    return Region(name="Vienna", country_code="at", id=2, directory=directory)


@pytest.fixture()
def failing_provider() -> RecordingProvider:
    return RecordingProvider(error=ExternalFetchError("timeout"))
