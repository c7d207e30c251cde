from __future__ import annotations

import logging
from typing import Optional

from .base import HttpProvider, NotFound, RequestConfig


class NominatimGeocoder(HttpProvider):
    """Reverse geocoding through OpenStreetMap Nominatim."""

    base_url = "https://nominatim.openstreetmap.org/reverse"
    user_agent = "skycast/1.0"

    def __init__(self, base_url: Optional[str] = None, request_config: Optional[RequestConfig] = None, **kwargs) -> None:
        base = request_config or RequestConfig()
        config = RequestConfig(timeout=base.timeout, headers={"User-Agent": self.user_agent, **base.headers})
        super().__init__(request_config=config, **kwargs)
        self.base_url = base_url or self.base_url
        self._log = logging.getLogger(self.__class__.__name__)

    def reverse_geocode(self, lat: float, lon: float) -> str:
        """Return the full place string for the coordinate."""
        params = {"lat": lat, "lon": lon, "format": "json"}
        data = self._get_json(self.base_url, params=params)
        display_name = data.get("display_name") if isinstance(data, dict) else None
        if not display_name:
            raise NotFound("no place for coordinate")
        return str(display_name)


__all__ = ["NominatimGeocoder"]
