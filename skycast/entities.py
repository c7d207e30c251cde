from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional, Tuple


class UnitMode(str, Enum):
    METRIC = "metric"
    IMPERIAL = "imperial"


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"


class Metric(str, Enum):
    TEMPERATURE = "temperature"
    WIND = "wind"
    VISIBILITY = "visibility"
    HUMIDITY = "humidity"
    PRESSURE = "pressure"
    UV = "uv"
    CLOUDS = "clouds"


class Comparison(str, Enum):
    ABOVE = "above"
    BELOW = "below"


@dataclass(frozen=True)
class Coordinate:
    lat: float
    lon: float

    def __post_init__(self) -> None:
        if not -90.0 <= self.lat <= 90.0:
            raise ValueError("Latitude must be between -90 and 90")
        if not -180.0 <= self.lon <= 180.0:
            raise ValueError("Longitude must be between -180 and 180")


@dataclass(frozen=True)
class ResolvedLocation:
    coordinate: Coordinate
    display_name: str


@dataclass(frozen=True)
class LocationCandidate:
    """A forward-geocoder hit offered to the user for selection."""

    name: str
    country: str
    lat: float
    lon: float
    state: Optional[str] = None

    def to_resolved(self) -> ResolvedLocation:
        return ResolvedLocation(Coordinate(self.lat, self.lon), f"{self.name}, {self.country}")


@dataclass(frozen=True)
class CurrentConditions:
    """Normalized current-weather snapshot.

    Temperature and wind values are in whatever unit the upstream API used for
    the requested unit mode. Visibility is always metres, regardless of mode.
    """

    temp_raw: float
    feels_like_raw: float
    description: str
    icon_code: str
    wind_speed_raw: float
    visibility_meters: float
    humidity_pct: float
    pressure_hpa: float
    clouds_pct: float
    sunrise: int
    sunset: int
    country_code: str
    location_name: str = ""
    uv_index: Optional[float] = None


@dataclass(frozen=True)
class WeatherSummary:
    icon_code: str
    description: str


@dataclass(frozen=True)
class HourlySample:
    dt: int
    temp_raw: float
    wind_speed_raw: float
    visibility_meters: float
    humidity_pct: float
    pressure_hpa: float
    clouds_pct: float
    weather: WeatherSummary


@dataclass(frozen=True)
class DailyBucket:
    date_key: date
    day_label: str
    date_label: str
    representative_icon: str
    representative_description: str
    mean_temp: float
    samples: Tuple[HourlySample, ...]


@dataclass(frozen=True)
class WeatherReport:
    """Result of one fetch, tagged with the unit mode it was requested under."""

    current: CurrentConditions
    hourly: Tuple[HourlySample, ...]
    unit_mode: UnitMode
    utc_offset_seconds: int = 0


@dataclass(frozen=True)
class SavedLocation:
    name: str
    lat: Optional[float] = None
    lon: Optional[float] = None

    @property
    def coordinate(self) -> Optional[Coordinate]:
        if self.lat is None or self.lon is None:
            return None
        return Coordinate(self.lat, self.lon)


@dataclass(frozen=True)
class LiveTemperature:
    """Current temperature of a saved location and the coordinate the lookup reported."""

    temp_raw: float
    coordinate: Optional[Coordinate] = None


@dataclass(frozen=True)
class AlertRule:
    id: str
    metric: Metric
    threshold: float
    comparison: Comparison
    activity_label: str
    enabled: bool = True


@dataclass(frozen=True)
class Preferences:
    unit_mode: UnitMode = UnitMode.METRIC
    theme: Theme = Theme.DARK


@dataclass
class WeatherSnapshot:
    """Everything the presentation layer needs for the active location."""

    location: Optional[ResolvedLocation] = None
    report: Optional[WeatherReport] = None
    daily: Tuple[DailyBucket, ...] = ()
    suggestion: Optional[str] = None
    triggered_alerts: Tuple[str, ...] = ()
    error: Optional[str] = None
    loading: bool = False
    sequence: int = 0


__all__ = [
    "AlertRule",
    "Comparison",
    "Coordinate",
    "CurrentConditions",
    "DailyBucket",
    "HourlySample",
    "LocationCandidate",
    "Metric",
    "Preferences",
    "ResolvedLocation",
    "SavedLocation",
    "Theme",
    "UnitMode",
    "WeatherReport",
    "WeatherSnapshot",
    "WeatherSummary",
]
