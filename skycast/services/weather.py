"""Fetch current conditions and the forecast series for one coordinate."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Mapping, Optional, Protocol, Tuple

from ..entities import (
    Coordinate,
    CurrentConditions,
    HourlySample,
    LiveTemperature,
    SavedLocation,
    UnitMode,
    WeatherReport,
    WeatherSummary,
)
from ..providers.base import ProviderError


logger = logging.getLogger(__name__)

FETCH_FAILED_MESSAGE = "Failed to fetch weather data. Please try again."


class FetchFailed(RuntimeError):
    """Raised when either weather request fails; no partial result exists."""

    def __init__(self, detail: str = "") -> None:
        super().__init__(FETCH_FAILED_MESSAGE)
        self.detail = detail


class MalformedPayload(ProviderError):
    """The upstream answer lacks fields every observation must carry."""


class WeatherAPI(Protocol):
    def current_conditions(self, lat: float, lon: float, unit_mode: UnitMode) -> Dict[str, Any]:
        ...

    def current_conditions_by_name(self, name: str, unit_mode: UnitMode) -> Dict[str, Any]:
        ...

    def forecast(self, lat: float, lon: float, unit_mode: UnitMode) -> Dict[str, Any]:
        ...


class WeatherFetcher:
    """Issue the current and forecast requests and normalize both answers.

    Nothing is cached: every call goes to the network.
    """

    def __init__(self, api: WeatherAPI, logger: Optional[logging.Logger] = None) -> None:
        self.api = api
        self._log = logger or logging.getLogger(self.__class__.__name__)

    async def fetch_weather(self, coordinate: Coordinate, unit_mode: UnitMode) -> WeatherReport:
        unit_mode = UnitMode(unit_mode)
        try:
            current_raw, forecast_raw = await asyncio.gather(
                asyncio.to_thread(self.api.current_conditions, coordinate.lat, coordinate.lon, unit_mode),
                asyncio.to_thread(self.api.forecast, coordinate.lat, coordinate.lon, unit_mode),
            )
            current = parse_current(current_raw)
            hourly, offset = parse_forecast(forecast_raw)
        except ProviderError as exc:
            self._log.error("Weather fetch for %s failed: %s", coordinate, exc)
            raise FetchFailed(str(exc)) from exc
        return WeatherReport(current=current, hourly=hourly, unit_mode=unit_mode, utc_offset_seconds=offset)

    async def fetch_temperature(self, location: SavedLocation, unit_mode: UnitMode) -> LiveTemperature:
        """Current temperature by coordinate, or by name when it has none.

        A by-name lookup also reports where the name resolved to, so a location
        saved without coordinates can still be shown.
        """
        unit_mode = UnitMode(unit_mode)
        coordinate = location.coordinate
        try:
            if coordinate is not None:
                raw = await asyncio.to_thread(self.api.current_conditions, coordinate.lat, coordinate.lon, unit_mode)
            else:
                raw = await asyncio.to_thread(self.api.current_conditions_by_name, location.name, unit_mode)
            temp = _require_number(_section(raw, "main"), "temp")
        except ProviderError as exc:
            raise FetchFailed(str(exc)) from exc
        return LiveTemperature(temp_raw=temp, coordinate=coordinate or parse_coordinate(raw))


# Normalization ----------------------------------------------------------
def parse_current(data: Mapping[str, Any]) -> CurrentConditions:
    main = _section(data, "main")
    wind = _optional_section(data, "wind")
    clouds = _optional_section(data, "clouds")
    sys_info = _optional_section(data, "sys")
    summary = _summary(data)
    return CurrentConditions(
        temp_raw=_require_number(main, "temp"),
        feels_like_raw=_number(main.get("feels_like"), _require_number(main, "temp")),
        description=summary.description,
        icon_code=summary.icon_code,
        wind_speed_raw=_number(wind.get("speed")),
        visibility_meters=_number(data.get("visibility")),
        humidity_pct=_number(main.get("humidity")),
        pressure_hpa=_number(main.get("pressure")),
        clouds_pct=_number(clouds.get("all")),
        sunrise=int(_number(sys_info.get("sunrise"))),
        sunset=int(_number(sys_info.get("sunset"))),
        country_code=str(sys_info.get("country") or ""),
        location_name=str(data.get("name") or ""),
    )


def parse_forecast(data: Mapping[str, Any]) -> Tuple[Tuple[HourlySample, ...], int]:
    """Return the samples in feed order and the location's UTC offset."""
    items = data.get("list") if isinstance(data, Mapping) else None
    if not isinstance(items, list):
        raise MalformedPayload("forecast without list")
    samples: List[HourlySample] = []
    for item in items:
        main = _section(item, "main")
        samples.append(
            HourlySample(
                dt=int(_require_number(item, "dt")),
                temp_raw=_require_number(main, "temp"),
                wind_speed_raw=_number(_optional_section(item, "wind").get("speed")),
                visibility_meters=_number(item.get("visibility")),
                humidity_pct=_number(main.get("humidity")),
                pressure_hpa=_number(main.get("pressure")),
                clouds_pct=_number(_optional_section(item, "clouds").get("all")),
                weather=_summary(item),
            )
        )
    offset = int(_number(_optional_section(data, "city").get("timezone")))
    return tuple(samples), offset


def _summary(data: Mapping[str, Any]) -> WeatherSummary:
    weather = data.get("weather")
    if not isinstance(weather, list) or not weather or not isinstance(weather[0], Mapping):
        raise MalformedPayload("missing weather summary")
    first = weather[0]
    return WeatherSummary(icon_code=str(first.get("icon") or ""), description=str(first.get("description") or ""))


def parse_coordinate(data: Mapping[str, Any]) -> Optional[Coordinate]:
    """The `coord` block of a current-weather answer, if usable."""
    coord = _optional_section(data, "coord")
    try:
        return Coordinate(float(coord["lat"]), float(coord["lon"]))
    except (KeyError, TypeError, ValueError):
        return None


def _optional_section(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    section = data.get(name)
    return section if isinstance(section, Mapping) else {}


def _section(data: Any, name: str) -> Mapping[str, Any]:
    section = data.get(name) if isinstance(data, Mapping) else None
    if not isinstance(section, Mapping):
        raise MalformedPayload(f"missing {name}")
    return section


def _require_number(data: Mapping[str, Any], key: str) -> float:
    value = data.get(key)
    if value is None:
        raise MalformedPayload(f"missing {key}")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise MalformedPayload(f"invalid {key}") from exc


def _number(value: Optional[object], default: float = 0.0) -> float:
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


__all__ = [
    "FETCH_FAILED_MESSAGE",
    "FetchFailed",
    "WeatherFetcher",
    "parse_coordinate",
    "parse_current",
    "parse_forecast",
]
