from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .base import HttpProvider, NetworkError


@dataclass(frozen=True)
class IpLocation:
    lat: float
    lon: float
    city: str
    country: str


class IpApiLocator(HttpProvider):
    """IP based geolocation through ipapi.co."""

    base_url = "https://ipapi.co/json/"

    def __init__(self, base_url: Optional[str] = None, **kwargs) -> None:
        super().__init__(**kwargs)
        self.base_url = base_url or self.base_url
        self._log = logging.getLogger(self.__class__.__name__)

    def locate(self) -> IpLocation:
        data = self._get_json(self.base_url)
        if not isinstance(data, dict) or data.get("error"):
            raise NetworkError(f"ip lookup refused: {data.get('reason') if isinstance(data, dict) else data}")
        try:
            return IpLocation(
                lat=float(data["latitude"]),
                lon=float(data["longitude"]),
                city=str(data.get("city") or ""),
                country=str(data.get("country") or ""),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise NetworkError("incomplete ip location payload") from exc


__all__ = ["IpApiLocator", "IpLocation"]
