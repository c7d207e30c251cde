"""Device position sources."""
from __future__ import annotations

from typing import Optional, Protocol

from .base import PermissionDenied, PositionUnavailable
from ..entities import Coordinate


class GeolocationSensor(Protocol):
    def get_current_position(self) -> Coordinate:
        """Return the device position or raise :class:`SensorUnavailable`."""
        ...


class FixedPositionSensor:
    """Reports a position configured for the host (e.g. a home station).

    ``allowed=False`` models a user who refused location access.
    """

    def __init__(self, lat: Optional[float], lon: Optional[float], allowed: bool = True) -> None:
        self.lat = lat
        self.lon = lon
        self.allowed = allowed

    def get_current_position(self) -> Coordinate:
        if not self.allowed:
            raise PermissionDenied("location access denied")
        if self.lat is None or self.lon is None:
            raise PositionUnavailable("no device position configured")
        return Coordinate(self.lat, self.lon)


__all__ = ["FixedPositionSensor", "GeolocationSensor"]
