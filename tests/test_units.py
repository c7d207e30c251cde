from __future__ import annotations

import pytest

from skycast.entities import Metric, UnitMode
from skycast.units import UnitSystem, display_round, format_clock


def test_metric_labels() -> None:
    units = UnitSystem.for_mode("metric")

    assert units.temperature == "°C"
    assert units.wind_speed == "m/s"
    assert units.metric_unit(Metric.VISIBILITY) == "km"
    assert units.metric_unit("uv") == ""


def test_imperial_labels() -> None:
    units = UnitSystem.for_mode(UnitMode.IMPERIAL)

    assert units.temperature == "°F"
    assert units.wind_speed == "mph"
    assert units.metric_unit(Metric.PRESSURE) == "hPa"
    assert units.hourly_visibility == "ft"


def test_visibility_is_converted_only_for_display() -> None:
    assert UnitSystem.for_mode("metric").format_visibility(10000) == "10.0 km"
    assert UnitSystem.for_mode("imperial").format_visibility(10000) == "6.2 mi"
    assert UnitSystem.for_mode("imperial").visibility_value(16090) == 10.0


def test_display_round_rounds_half_up() -> None:
    assert display_round(2.5) == 3
    assert display_round(-2.5) == -2
    assert display_round(11.49) == 11


def test_format_temperature_keeps_sentinel() -> None:
    units = UnitSystem.for_mode("metric")

    assert units.format_temperature(12.6) == "13°C"
    assert units.format_temperature("N/A") == "N/A°C"


def test_format_clock_uses_offset() -> None:
    assert format_clock(0) == "00:00"
    assert format_clock(0, 3600) == "01:00"


def test_unknown_mode_rejected() -> None:
    with pytest.raises(ValueError):
        UnitSystem.for_mode("kelvin")


def test_format_wind_uses_mode_label() -> None:
    assert UnitSystem.for_mode("metric").format_wind(4.1) == "4.1 m/s"
    assert UnitSystem.for_mode("imperial").format_wind(9.2) == "9.2 mph"
