"""REST API views for the weather pipeline."""
from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, Optional

from asgiref.sync import async_to_sync
from django.conf import settings
from django.core.cache import caches
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from skycast.entities import Coordinate, ResolvedLocation, UnitMode, WeatherSnapshot
from skycast.providers.base import RequestConfig
from skycast.providers.ipapi import IpApiLocator
from skycast.providers.nominatim import NominatimGeocoder
from skycast.providers.openweather import OpenWeatherClient
from skycast.providers.sensor import FixedPositionSensor
from skycast.services.alerts import AlertRuleStore
from skycast.services.controller import WeatherController, formatted_name
from skycast.services.forecast import next_hours
from skycast.services.location import LocationResolver, LocationSearch
from skycast.services.preferences import PreferenceStore
from skycast.services.saved_locations import SavedLocationStore
from skycast.services.weather import WeatherFetcher
from skycast.storage import CacheStore
from skycast.units import UnitSystem, display_round, format_clock


@lru_cache(maxsize=1)
def get_openweather_client() -> OpenWeatherClient:
    return OpenWeatherClient(
        api_key=settings.OPENWEATHER_API_KEY,
        base_url=settings.OPENWEATHER_BASE_URL,
        request_config=RequestConfig(timeout=settings.SKYCAST_HTTP_TIMEOUT),
    )


def build_controller() -> WeatherController:
    """Wire a controller from settings; state is per controller instance."""
    timeout = settings.SKYCAST_HTTP_TIMEOUT
    store = CacheStore(caches[settings.SKYCAST_STORE_ALIAS])
    openweather = get_openweather_client()
    fetcher = WeatherFetcher(openweather)
    default = settings.SKYCAST_DEFAULT_LOCATION
    device = settings.SKYCAST_DEVICE_POSITION
    sensor = None
    if device["lat"] is not None and device["lon"] is not None:
        sensor = FixedPositionSensor(device["lat"], device["lon"])
    resolver = LocationResolver(
        sensor=sensor,
        reverse_geocoder=NominatimGeocoder(
            base_url=settings.NOMINATIM_URL, request_config=RequestConfig(timeout=timeout)
        ),
        ip_service=IpApiLocator(base_url=settings.IPAPI_URL, request_config=RequestConfig(timeout=timeout)),
        default=ResolvedLocation(Coordinate(default["lat"], default["lon"]), default["name"]),
    )
    return WeatherController(
        resolver=resolver,
        fetcher=fetcher,
        preferences=PreferenceStore(store),
        saved_locations=SavedLocationStore(store, temperature_source=fetcher),
        alert_rules=AlertRuleStore(store),
        search=LocationSearch(openweather),
    )


def serialize_snapshot(snapshot: WeatherSnapshot) -> Dict[str, Any]:
    location = snapshot.location
    payload: Dict[str, Any] = {
        "location": None,
        "error": snapshot.error,
    }
    if location is not None:
        payload["location"] = {
            "name": location.display_name,
            "lat": location.coordinate.lat,
            "lon": location.coordinate.lon,
        }
    report = snapshot.report
    if report is None:
        return payload

    units = UnitSystem.for_mode(report.unit_mode)
    current = report.current
    offset = report.utc_offset_seconds
    payload.update(
        {
            "units": report.unit_mode.value,
            "unit_labels": units.labels(),
            "current": {
                "name": formatted_name(location, current) if location else current.location_name,
                "temperature": current.temp_raw,
                "feels_like": current.feels_like_raw,
                "description": current.description,
                "icon": current.icon_code,
                "wind_speed": current.wind_speed_raw,
                "visibility": units.visibility_value(current.visibility_meters),
                "humidity": current.humidity_pct,
                "pressure": current.pressure_hpa,
                "clouds": current.clouds_pct,
                "sunrise": format_clock(current.sunrise, offset),
                "sunset": format_clock(current.sunset, offset),
                "country": current.country_code,
            },
            "display": {
                "temperature": units.format_temperature(current.temp_raw),
                "feels_like": units.format_temperature(current.feels_like_raw),
                "wind_speed": units.format_wind(current.wind_speed_raw),
                "visibility": units.format_visibility(current.visibility_meters),
            },
            "hourly": [
                {
                    "dt": sample.dt,
                    "time": format_clock(sample.dt, offset),
                    "temperature": sample.temp_raw,
                    "humidity": sample.humidity_pct,
                    "wind_speed": sample.wind_speed_raw,
                    "visibility": sample.visibility_meters,
                    "pressure": sample.pressure_hpa,
                    "clouds": sample.clouds_pct,
                }
                for sample in next_hours(report.hourly, cadence_hours=settings.SKYCAST_FORECAST_CADENCE_HOURS)
            ],
            "daily": [
                {
                    "date": bucket.date_key.isoformat(),
                    "day": bucket.day_label,
                    "label": bucket.date_label,
                    "icon": bucket.representative_icon,
                    "description": bucket.representative_description,
                    "temperature": display_round(bucket.mean_temp),
                    "samples": len(bucket.samples),
                }
                for bucket in snapshot.daily
            ],
            "suggestion": snapshot.suggestion,
            "triggered_alerts": list(snapshot.triggered_alerts),
        }
    )
    return payload


def parse_location(params: Any) -> Optional[ResolvedLocation]:
    """Build a location from ``lat``/``lon``/``name`` query values.

    Returns ``None`` when no coordinate is given; raises ``ValueError`` for
    values that are present but invalid.
    """
    raw_lat = params.get("lat")
    raw_lon = params.get("lon")
    if raw_lat in (None, "") and raw_lon in (None, ""):
        return None
    if raw_lat in (None, "") or raw_lon in (None, ""):
        raise ValueError("lat and lon must be provided together")
    coordinate = Coordinate(float(raw_lat), float(raw_lon))
    name = params.get("name") or f"Lat: {coordinate.lat:.4f}, Lon: {coordinate.lon:.4f}"
    return ResolvedLocation(coordinate, name)


def parse_units(raw: Optional[str]) -> Optional[UnitMode]:
    if not raw:
        return None
    try:
        return UnitMode(raw)
    except ValueError as exc:
        raise ValueError("units must be 'metric' or 'imperial'") from exc


async def run_pipeline(
    controller: WeatherController,
    location: Optional[ResolvedLocation],
    unit_mode: Optional[UnitMode],
) -> WeatherSnapshot:
    if location is None:
        location = await controller.resolver.resolve()
    return await controller.select_location(location, unit_mode)


class WeatherView(APIView):
    """Derived weather for a coordinate, or for the resolved location."""

    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):  # noqa: D401
        """Return the weather snapshot for the requested location."""
        try:
            location = parse_location(request.query_params)
            unit_mode = parse_units(request.query_params.get("units"))
        except (TypeError, ValueError) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        snapshot = async_to_sync(run_pipeline)(build_controller(), location, unit_mode)
        payload = serialize_snapshot(snapshot)
        if snapshot.error:
            return Response(payload, status=status.HTTP_502_BAD_GATEWAY)
        return Response(payload, status=status.HTTP_200_OK)


SEARCH_LIMIT_MAX = 10


def parse_limit(raw: Optional[str]) -> int:
    if raw in (None, ""):
        return 5
    limit = int(raw)
    if not 1 <= limit <= SEARCH_LIMIT_MAX:
        raise ValueError(f"limit must be between 1 and {SEARCH_LIMIT_MAX}")
    return limit


class LocationSearchView(APIView):
    """Forward geocoding for the location search box."""

    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):
        try:
            limit = parse_limit(request.query_params.get("limit"))
        except ValueError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        query = request.query_params.get("q", "")
        candidates = async_to_sync(build_controller().search_locations)(query, limit)
        return Response(
            [
                {
                    "name": candidate.name,
                    "country": candidate.country,
                    "state": candidate.state,
                    "lat": candidate.lat,
                    "lon": candidate.lon,
                    "label": candidate.to_resolved().display_name,
                }
                for candidate in candidates
            ],
            status=status.HTTP_200_OK,
        )
