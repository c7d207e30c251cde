from __future__ import annotations

import json

import pytest
from django.core.cache import caches
from django.core.management import CommandError, call_command
from django.test import Client

from backend.api import views
from factories import FakeWeatherAPI
from skycast.entities import Coordinate, ResolvedLocation
from skycast.services.alerts import AlertRuleStore
from skycast.services.controller import WeatherController
from skycast.services.location import LocationResolver, LocationSearch
from skycast.services.preferences import PreferenceStore
from skycast.services.saved_locations import SavedLocationStore
from skycast.services.weather import FETCH_FAILED_MESSAGE, WeatherFetcher
from skycast.storage import CacheStore


HOME = ResolvedLocation(Coordinate(55.75, 37.61), "Moscow")


@pytest.fixture
def api(monkeypatch):
    fake = FakeWeatherAPI()

    def build_controller():
        store = CacheStore(caches["default"])
        fetcher = WeatherFetcher(fake)
        return WeatherController(
            resolver=LocationResolver(default=HOME),
            fetcher=fetcher,
            preferences=PreferenceStore(store),
            saved_locations=SavedLocationStore(store, temperature_source=fetcher),
            alert_rules=AlertRuleStore(store),
            search=LocationSearch(fake),
        )

    monkeypatch.setattr(views, "build_controller", build_controller)
    return fake


def test_weather_endpoint_returns_snapshot(api):
    response = Client().get("/api/weather", {"lat": "55.75", "lon": "37.61", "name": "Red Square"})

    assert response.status_code == 200
    payload = response.json()
    assert payload["location"] == {"name": "Red Square", "lat": 55.75, "lon": 37.61}
    assert payload["error"] is None
    assert payload["units"] == "metric"
    assert payload["unit_labels"]["temperature"] == "°C"
    assert payload["current"]["name"] == "Red Square, GB"
    assert payload["current"]["visibility"] == 10.0
    assert payload["current"]["sunrise"] == "07:20"
    assert payload["display"] == {
        "temperature": "18°C",
        "feels_like": "17°C",
        "wind_speed": "4.1 m/s",
        "visibility": "10.0 km",
    }
    assert payload["suggestion"] == "It's a nice day for a jog!"
    assert [day["day"] for day in payload["daily"]] == ["Wed", "Thu"]
    assert payload["daily"][0]["temperature"] == 14
    assert len(payload["hourly"]) == 16


def test_weather_endpoint_without_coordinates_uses_resolution(api):
    response = Client().get("/api/weather", {"units": "imperial"})

    assert response.status_code == 200
    payload = response.json()
    assert payload["location"]["name"] == "Moscow"
    assert payload["units"] == "imperial"
    assert payload["unit_labels"]["visibility"] == "mi"
    assert api.calls[0][1] == (55.75, 37.61)


def test_weather_endpoint_labels_bare_coordinates(api):
    response = Client().get("/api/weather", {"lat": "1.5", "lon": "2"})

    assert response.json()["location"]["name"] == "Lat: 1.5000, Lon: 2.0000"


@pytest.mark.parametrize(
    "params",
    [
        {"lat": "abc", "lon": "37.61"},
        {"lat": "95", "lon": "0"},
        {"lat": "10"},
        {"lat": "10", "lon": "10", "units": "kelvin"},
    ],
)
def test_weather_endpoint_validates_params(api, params):
    response = Client().get("/api/weather", params)

    assert response.status_code == 400
    assert "detail" in response.json()
    assert api.calls == []


def test_weather_endpoint_reports_upstream_failure(api):
    api.fail_forecast = True

    response = Client().get("/api/weather", {"lat": "55.75", "lon": "37.61"})

    assert response.status_code == 502
    payload = response.json()
    assert payload["error"] == FETCH_FAILED_MESSAGE
    assert "current" not in payload


def test_weather_report_command_prints_json(api, capsys):
    call_command("weather_report", "--lat", "48.85", "--lon", "2.35", "--name", "Paris")

    payload = json.loads(capsys.readouterr().out)
    assert payload["current"]["name"] == "Paris, GB"


def test_weather_report_command_fails_loudly(api):
    api.fail_current = True

    with pytest.raises(CommandError):
        call_command("weather_report", "--lat", "48.85", "--lon", "2.35")


def test_location_search_endpoint(api):
    api.search_hits = [
        {"name": "Paris", "country": "FR", "lat": 48.85, "lon": 2.35},
        {"name": "Paris", "country": "US", "state": "Texas", "lat": 33.66, "lon": -95.55},
    ]

    response = Client().get("/api/locations/search", {"q": "Paris", "limit": "1"})

    assert response.status_code == 200
    assert response.json() == [
        {"name": "Paris", "country": "FR", "state": None, "lat": 48.85, "lon": 2.35, "label": "Paris, FR"}
    ]
    assert api.calls == [("search", "Paris", 1)]


def test_location_search_failure_is_empty(api):
    api.failing.add("Paris")

    response = Client().get("/api/locations/search", {"q": "Paris"})

    assert response.status_code == 200
    assert response.json() == []


@pytest.mark.parametrize("limit", ["0", "11", "many"])
def test_location_search_validates_limit(api, limit):
    response = Client().get("/api/locations/search", {"q": "Paris", "limit": limit})

    assert response.status_code == 400
