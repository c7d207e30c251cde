"""Location resolution: device sensor, then IP lookup, then a fixed default."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Sequence

from ..entities import Coordinate, LocationCandidate, ResolvedLocation
from ..providers.base import ProviderError, SensorUnavailable
from ..providers.ipapi import IpLocation
from ..providers.sensor import GeolocationSensor


logger = logging.getLogger(__name__)

UNKNOWN_LOCATION = "Unknown Location"
DEFAULT_LOCATION = ResolvedLocation(Coordinate(51.5074, -0.1278), "London")

Strategy = Callable[[], Awaitable[Optional[ResolvedLocation]]]


class ReverseGeocoder(Protocol):
    def reverse_geocode(self, lat: float, lon: float) -> str:
        ...


class IpGeolocationService(Protocol):
    def locate(self) -> IpLocation:
        ...


class ForwardGeocoder(Protocol):
    def search(self, query: str, limit: int = 5) -> List[Dict[str, Any]]:
        ...


def short_place_name(place: str) -> str:
    """Keep the first two comma separated parts of a full place string."""
    parts = [part.strip() for part in place.split(",")[:2]]
    return ", ".join(parts)


class LocationResolver:
    """Resolve the location that drives the pipeline on start-up.

    Each strategy is tried once, in order; a strategy returning ``None`` or
    raising hands over to the next one. The default location is the terminal
    case, so :meth:`resolve` always returns a location.
    """

    def __init__(
        self,
        *,
        sensor: Optional[GeolocationSensor] = None,
        reverse_geocoder: Optional[ReverseGeocoder] = None,
        ip_service: Optional[IpGeolocationService] = None,
        default: ResolvedLocation = DEFAULT_LOCATION,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.sensor = sensor
        self.reverse_geocoder = reverse_geocoder
        self.ip_service = ip_service
        self.default = default
        self._log = logger or logging.getLogger(self.__class__.__name__)

    @property
    def strategies(self) -> Sequence[Strategy]:
        return (self.from_sensor, self.from_ip)

    async def resolve(self) -> ResolvedLocation:
        for strategy in self.strategies:
            try:
                location = await strategy()
            except Exception as exc:  # noqa: BLE001 - any failure advances the chain
                self._log.warning("Location strategy %s failed: %s", strategy.__name__, exc)
                continue
            if location is not None:
                self._log.info("Resolved location %s via %s", location.display_name, strategy.__name__)
                return location
        self._log.warning("Falling back to default location %s", self.default.display_name)
        return self.default

    async def locate_device(self) -> Optional[ResolvedLocation]:
        """Run only the sensor step; ``None`` when the device cannot say."""
        try:
            return await self.from_sensor()
        except Exception as exc:  # noqa: BLE001 - reported to the caller as "no position"
            self._log.warning("Device location failed: %s", exc)
            return None

    # Strategies ---------------------------------------------------------
    async def from_sensor(self) -> Optional[ResolvedLocation]:
        if self.sensor is None:
            self._log.info("No location sensor available")
            return None
        try:
            coordinate = await asyncio.to_thread(self.sensor.get_current_position)
        except SensorUnavailable as exc:
            self._log.warning("Location sensor unavailable: %s", exc)
            return None
        label = await self._reverse_label(coordinate)
        return ResolvedLocation(coordinate, label)

    async def from_ip(self) -> Optional[ResolvedLocation]:
        if self.ip_service is None:
            return None
        found = await asyncio.to_thread(self.ip_service.locate)
        label = ", ".join(part for part in (found.city, found.country) if part)
        if not label:
            self._log.warning("IP lookup returned a position without a place name")
            return None
        return ResolvedLocation(Coordinate(found.lat, found.lon), label)

    # Labels -------------------------------------------------------------
    async def label_for_point(self, lat: float, lon: float) -> str:
        """Full place name for a clicked point, or its formatted coordinates."""
        try:
            return await self._full_place(lat, lon)
        except ProviderError as exc:
            self._log.warning("Reverse geocoding failed for map point: %s", exc)
            return f"Lat: {lat:.4f}, Lon: {lon:.4f}"

    async def _reverse_label(self, coordinate: Coordinate) -> str:
        try:
            place = await self._full_place(coordinate.lat, coordinate.lon)
        except ProviderError as exc:
            self._log.warning("Reverse geocoding failed: %s", exc)
            return UNKNOWN_LOCATION
        return short_place_name(place)

    async def _full_place(self, lat: float, lon: float) -> str:
        if self.reverse_geocoder is None:
            raise ProviderError("no reverse geocoder configured")
        return await asyncio.to_thread(self.reverse_geocoder.reverse_geocode, lat, lon)


class LocationSearch:
    """Autocomplete style search; any failure is an empty result."""

    def __init__(self, geocoder: ForwardGeocoder, limit: int = 5) -> None:
        self.geocoder = geocoder
        self.limit = limit

    async def search(self, query: str, limit: Optional[int] = None) -> List[LocationCandidate]:
        query = (query or "").strip()
        if not query:
            return []
        try:
            hits = await asyncio.to_thread(self.geocoder.search, query, limit or self.limit)
        except ProviderError as exc:
            logger.warning("Location search for %r failed: %s", query, exc)
            return []
        candidates: List[LocationCandidate] = []
        for hit in hits:
            try:
                candidates.append(
                    LocationCandidate(
                        name=str(hit["name"]),
                        country=str(hit.get("country") or ""),
                        state=hit.get("state"),
                        lat=float(hit["lat"]),
                        lon=float(hit["lon"]),
                    )
                )
            except (KeyError, TypeError, ValueError):
                logger.debug("Skipping malformed search hit %r", hit)
        return candidates


__all__ = [
    "DEFAULT_LOCATION",
    "LocationResolver",
    "LocationSearch",
    "UNKNOWN_LOCATION",
    "short_place_name",
]
