from __future__ import annotations

import pytest

from factories import FakeWeatherAPI
from skycast.storage import MemoryStore


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def weather_api() -> FakeWeatherAPI:
    return FakeWeatherAPI()
