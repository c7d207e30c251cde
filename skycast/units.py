"""Unit labels and display conversions for the two supported unit modes.

Temperature and wind speed arrive already converted by the upstream API (the
unit mode is part of the request), so they are only labelled here. Visibility
is always reported in metres and is converted for display only; converting it
anywhere else would apply the conversion twice.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Union

from .entities import Metric, UnitMode


METRES_PER_KILOMETRE = 1000.0
METRES_PER_MILE = 1609.0


@dataclass(frozen=True)
class UnitSystem:
    mode: UnitMode
    temperature: str
    wind_speed: str
    visibility: str
    hourly_visibility: str
    visibility_divisor: float

    @classmethod
    def for_mode(cls, mode: Union[UnitMode, str]) -> "UnitSystem":
        return _SYSTEMS[UnitMode(mode)]

    def metric_unit(self, metric: Union[Metric, str]) -> str:
        metric = Metric(metric)
        return {
            Metric.TEMPERATURE: self.temperature,
            Metric.WIND: self.wind_speed,
            Metric.VISIBILITY: self.visibility,
            Metric.HUMIDITY: "%",
            Metric.PRESSURE: "hPa",
            Metric.UV: "",
            Metric.CLOUDS: "%",
        }[metric]

    def visibility_value(self, meters: float) -> float:
        return round(meters / self.visibility_divisor, 1)

    def format_visibility(self, meters: float) -> str:
        return f"{meters / self.visibility_divisor:.1f} {self.visibility}"

    def format_temperature(self, value: Union[float, str]) -> str:
        if isinstance(value, str):
            return f"{value}{self.temperature}"
        return f"{display_round(value)}{self.temperature}"

    def format_wind(self, value: float) -> str:
        return f"{value} {self.wind_speed}"

    def labels(self) -> Dict[str, str]:
        return {
            "temperature": self.temperature,
            "wind_speed": self.wind_speed,
            "visibility": self.visibility,
            "hourly_visibility": self.hourly_visibility,
            "humidity": "%",
            "pressure": "hPa",
            "clouds": "%",
        }


_SYSTEMS: Dict[UnitMode, UnitSystem] = {
    UnitMode.METRIC: UnitSystem(
        mode=UnitMode.METRIC,
        temperature="°C",
        wind_speed="m/s",
        visibility="km",
        hourly_visibility="m",
        visibility_divisor=METRES_PER_KILOMETRE,
    ),
    UnitMode.IMPERIAL: UnitSystem(
        mode=UnitMode.IMPERIAL,
        temperature="°F",
        wind_speed="mph",
        visibility="mi",
        hourly_visibility="ft",
        visibility_divisor=METRES_PER_MILE,
    ),
}


def display_round(value: float) -> int:
    """Round half up, the way temperatures are shown to the user."""
    return int(math.floor(value + 0.5))


def format_clock(epoch_seconds: int, utc_offset_seconds: int = 0) -> str:
    tz = timezone(timedelta(seconds=utc_offset_seconds))
    return datetime.fromtimestamp(epoch_seconds, tz=tz).strftime("%H:%M")


__all__ = ["UnitSystem", "display_round", "format_clock"]
