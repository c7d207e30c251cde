"""OpenWeather current, forecast and direct geocoding endpoints."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from .base import HttpProvider, NetworkError
from ..entities import UnitMode


class OpenWeatherClient(HttpProvider):
    """Raw access to OpenWeather; responses are returned undecoded into entities."""

    base_url = "https://api.openweathermap.org"

    def __init__(self, api_key: str, base_url: Optional[str] = None, **kwargs) -> None:
        super().__init__(**kwargs)
        self.api_key = api_key
        self.base_url = (base_url or self.base_url).rstrip("/")
        self._log = logging.getLogger(self.__class__.__name__)

    # Weather ------------------------------------------------------------
    def current_conditions(self, lat: float, lon: float, unit_mode: UnitMode) -> Dict[str, Any]:
        return self._weather_call("/data/2.5/weather", {"lat": lat, "lon": lon}, unit_mode)

    def current_conditions_by_name(self, name: str, unit_mode: UnitMode) -> Dict[str, Any]:
        return self._weather_call("/data/2.5/weather", {"q": name}, unit_mode)

    def forecast(self, lat: float, lon: float, unit_mode: UnitMode) -> Dict[str, Any]:
        return self._weather_call("/data/2.5/forecast", {"lat": lat, "lon": lon}, unit_mode)

    # Geocoding ----------------------------------------------------------
    def search(self, query: str, limit: int = 5) -> List[Dict[str, Any]]:
        params = {"q": query, "limit": limit, "appid": self.api_key}
        data = self._get_json(f"{self.base_url}/geo/1.0/direct", params=params)
        if not isinstance(data, list):
            raise NetworkError("unexpected geocoding payload")
        return data

    # helpers ------------------------------------------------------------
    def _weather_call(self, path: str, params: Dict[str, Any], unit_mode: UnitMode) -> Dict[str, Any]:
        query = dict(params, appid=self.api_key, units=UnitMode(unit_mode).value)
        self._log.debug("GET %s %s", path, {k: v for k, v in query.items() if k != "appid"})
        data = self._get_json(f"{self.base_url}{path}", params=query)
        if not isinstance(data, dict):
            raise NetworkError("unexpected weather payload")
        return data


__all__ = ["OpenWeatherClient"]
