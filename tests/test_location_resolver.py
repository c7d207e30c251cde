from __future__ import annotations

import asyncio

from skycast.entities import Coordinate, ResolvedLocation
from skycast.providers.base import NetworkError, NotFound
from skycast.providers.ipapi import IpLocation
from skycast.providers.sensor import FixedPositionSensor
from skycast.services.location import (
    DEFAULT_LOCATION,
    UNKNOWN_LOCATION,
    LocationResolver,
    LocationSearch,
    short_place_name,
)


class StubGeocoder:
    def __init__(self, place: str = "", error: Exception | None = None) -> None:
        self.place = place
        self.error = error
        self.calls = []

    def reverse_geocode(self, lat: float, lon: float) -> str:
        self.calls.append((lat, lon))
        if self.error is not None:
            raise self.error
        return self.place


class StubIpService:
    def __init__(self, found: IpLocation | None = None, error: Exception | None = None) -> None:
        self.found = found
        self.error = error

    def locate(self) -> IpLocation:
        if self.error is not None:
            raise self.error
        return self.found


class StubForwardGeocoder:
    def __init__(self, hits=None, error: Exception | None = None) -> None:
        self.hits = hits or []
        self.error = error
        self.queries = []

    def search(self, query: str, limit: int = 5):
        self.queries.append((query, limit))
        if self.error is not None:
            raise self.error
        return self.hits


PARIS_IP = IpLocation(lat=48.8, lon=2.3, city="Paris", country="FR")


def test_sensor_denied_falls_back_to_ip():
    resolver = LocationResolver(
        sensor=FixedPositionSensor(51.0, 0.0, allowed=False),
        reverse_geocoder=StubGeocoder("never used"),
        ip_service=StubIpService(PARIS_IP),
    )

    location = asyncio.run(resolver.resolve())

    assert location == ResolvedLocation(Coordinate(48.8, 2.3), "Paris, FR")
    assert resolver.reverse_geocoder.calls == []


def test_sensor_with_reverse_geocoding_uses_short_name():
    geocoder = StubGeocoder("Baker Street, Marylebone, London, England, United Kingdom")
    resolver = LocationResolver(
        sensor=FixedPositionSensor(51.52, -0.15),
        reverse_geocoder=geocoder,
        ip_service=StubIpService(PARIS_IP),
    )

    location = asyncio.run(resolver.resolve())

    assert location.display_name == "Baker Street, Marylebone"
    assert location.coordinate == Coordinate(51.52, -0.15)
    assert geocoder.calls == [(51.52, -0.15)]


def test_reverse_geocoding_failure_keeps_sensor_position():
    resolver = LocationResolver(
        sensor=FixedPositionSensor(10.0, 20.0),
        reverse_geocoder=StubGeocoder(error=NotFound("no match")),
        ip_service=StubIpService(PARIS_IP),
    )

    location = asyncio.run(resolver.resolve())

    assert location.display_name == UNKNOWN_LOCATION
    assert location.coordinate == Coordinate(10.0, 20.0)


def test_unavailable_position_falls_through():
    resolver = LocationResolver(
        sensor=FixedPositionSensor(None, None),
        ip_service=StubIpService(PARIS_IP),
    )

    assert asyncio.run(resolver.resolve()).display_name == "Paris, FR"


def test_everything_failing_gives_default():
    resolver = LocationResolver(
        sensor=FixedPositionSensor(1.0, 1.0, allowed=False),
        ip_service=StubIpService(error=NetworkError("offline")),
    )

    assert asyncio.run(resolver.resolve()) == DEFAULT_LOCATION


def test_no_collaborators_gives_default():
    custom = ResolvedLocation(Coordinate(40.71, -74.0), "New York")

    assert asyncio.run(LocationResolver(default=custom).resolve()) == custom


def test_locate_device_reports_missing_position():
    denied = LocationResolver(sensor=FixedPositionSensor(1.0, 1.0, allowed=False), ip_service=StubIpService(PARIS_IP))
    allowed = LocationResolver(sensor=FixedPositionSensor(1.0, 1.0), reverse_geocoder=StubGeocoder("Here, There"))

    assert asyncio.run(denied.locate_device()) is None
    assert asyncio.run(allowed.locate_device()).display_name == "Here, There"


def test_label_for_point():
    found = LocationResolver(reverse_geocoder=StubGeocoder("Rue de Rivoli, Paris, France"))
    missing = LocationResolver(reverse_geocoder=StubGeocoder(error=NetworkError("down")))

    assert asyncio.run(found.label_for_point(48.86, 2.34)) == "Rue de Rivoli, Paris, France"
    assert asyncio.run(missing.label_for_point(48.86, 2.34)) == "Lat: 48.8600, Lon: 2.3400"
    assert asyncio.run(LocationResolver().label_for_point(1, -2.5)) == "Lat: 1.0000, Lon: -2.5000"


def test_short_place_name():
    assert short_place_name("A, B, C, D") == "A, B"
    assert short_place_name("  Only  ") == "Only"
    assert short_place_name("A ,B") == "A, B"


def test_search_builds_candidates():
    geocoder = StubForwardGeocoder(
        [
            {"name": "Paris", "country": "FR", "lat": 48.85, "lon": 2.35},
            {"name": "Paris", "country": "US", "state": "Texas", "lat": 33.66, "lon": -95.55},
            {"name": "Broken"},
        ]
    )

    candidates = asyncio.run(LocationSearch(geocoder).search("  Paris "))

    assert [c.country for c in candidates] == ["FR", "US"]
    assert candidates[1].state == "Texas"
    assert candidates[0].to_resolved().display_name == "Paris, FR"
    assert geocoder.queries == [("Paris", 5)]


def test_search_empty_query_and_failures_give_no_results():
    failing = LocationSearch(StubForwardGeocoder(error=NetworkError("offline")))
    idle = StubForwardGeocoder([{"name": "x", "lat": 0, "lon": 0}])

    assert asyncio.run(failing.search("Paris")) == []
    assert asyncio.run(LocationSearch(idle).search("   ")) == []
    assert idle.queries == []


def test_ip_label_skips_missing_parts():
    city_only = LocationResolver(ip_service=StubIpService(IpLocation(lat=48.8, lon=2.3, city="Paris", country="")))
    country_only = LocationResolver(ip_service=StubIpService(IpLocation(lat=48.8, lon=2.3, city="", country="FR")))

    assert asyncio.run(city_only.resolve()).display_name == "Paris"
    assert asyncio.run(country_only.resolve()).display_name == "FR"


def test_ip_position_without_place_name_falls_through():
    resolver = LocationResolver(ip_service=StubIpService(IpLocation(lat=48.8, lon=2.3, city="", country="")))

    assert asyncio.run(resolver.resolve()) == DEFAULT_LOCATION
