"""Saved locations and their live temperatures."""
from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional, Protocol, Union

from ..entities import Coordinate, LiveTemperature, SavedLocation, UnitMode
from ..schemas import saved_locations_from_payload, saved_locations_to_payload
from ..storage import KeyValueStore, load_document, save_document
from .weather import FetchFailed


logger = logging.getLogger(__name__)

SAVED_LOCATIONS_KEY = "saved_locations"
NOT_AVAILABLE = "N/A"

Temperature = Union[float, str]


class TemperatureSource(Protocol):
    async def fetch_temperature(self, location: SavedLocation, unit_mode: UnitMode) -> LiveTemperature:
        ...


class SavedLocationStore:
    """Name-unique persisted locations plus a per-location temperature map.

    Lookups by name also remember the coordinate the name resolved to.
    Temperatures belong to one unit mode at a time. Changing the mode drops
    every cached value and starts a new generation; lookups started under an
    older generation are discarded when they complete.
    """

    def __init__(self, store: KeyValueStore, temperature_source: Optional[TemperatureSource] = None) -> None:
        self._store = store
        self._source = temperature_source
        self._temperatures: Dict[str, Temperature] = {}
        self._coordinates: Dict[str, Coordinate] = {}
        self._generation = 0
        self._unit_mode: Optional[UnitMode] = None

    # Persistence --------------------------------------------------------
    def list(self) -> List[SavedLocation]:
        return load_document(
            self._store,
            SAVED_LOCATIONS_KEY,
            saved_locations_from_payload,
            list,
            saved_locations_to_payload,
        )

    def save(self, name: str, coordinate: Optional[Coordinate]) -> bool:
        """Append a location unless the name is empty or already taken."""
        if not name:
            return False
        locations = self.list()
        if any(location.name == name for location in locations):
            logger.info("Location %s is already saved", name)
            return False
        locations.append(
            SavedLocation(
                name=name,
                lat=coordinate.lat if coordinate else None,
                lon=coordinate.lon if coordinate else None,
            )
        )
        self._save(locations)
        return True

    def remove(self, name: str) -> bool:
        locations = self.list()
        remaining = [location for location in locations if location.name != name]
        self._temperatures.pop(name, None)
        self._coordinates.pop(name, None)
        if len(remaining) == len(locations):
            return False
        self._save(remaining)
        return True

    def clear(self) -> None:
        self._save([])
        self._temperatures.clear()
        self._coordinates.clear()

    def get(self, name: str) -> Optional[SavedLocation]:
        for location in self.list():
            if location.name == name:
                return location
        return None

    def coordinate_for(self, name: str) -> Optional[Coordinate]:
        """Stored coordinate, else the one a live lookup reported for the name."""
        location = self.get(name)
        if location is None:
            return None
        return location.coordinate or self._coordinates.get(name)

    # Live temperatures --------------------------------------------------
    @property
    def temperatures(self) -> Dict[str, Temperature]:
        return dict(self._temperatures)

    @property
    def generation(self) -> int:
        return self._generation

    async def lookup_live_temperature(self, location: SavedLocation, unit_mode: UnitMode) -> Temperature:
        reading = await self._lookup(location, unit_mode)
        return NOT_AVAILABLE if reading is None else reading.temp_raw

    async def _lookup(self, location: SavedLocation, unit_mode: UnitMode) -> Optional[LiveTemperature]:
        if self._source is None:
            return None
        try:
            return await self._source.fetch_temperature(location, unit_mode)
        except FetchFailed as exc:
            logger.warning("Temperature lookup for %s failed: %s", location.name, exc.detail or exc)
            return None

    def invalidate(self, unit_mode: UnitMode) -> int:
        self._generation += 1
        self._unit_mode = UnitMode(unit_mode)
        self._temperatures.clear()
        return self._generation

    async def refresh_temperatures(self, unit_mode: UnitMode) -> Dict[str, Temperature]:
        """Drop every cached temperature and look all of them up again."""
        generation = self.invalidate(unit_mode)
        await self._lookup_all(self.list(), UnitMode(unit_mode), generation)
        return self.temperatures

    async def ensure_temperatures(self, unit_mode: UnitMode) -> Dict[str, Temperature]:
        """Look up only the locations that have no temperature yet."""
        unit_mode = UnitMode(unit_mode)
        if self._unit_mode != unit_mode:
            return await self.refresh_temperatures(unit_mode)
        missing = [location for location in self.list() if location.name not in self._temperatures]
        await self._lookup_all(missing, unit_mode, self._generation)
        return self.temperatures

    async def _lookup_all(self, locations: List[SavedLocation], unit_mode: UnitMode, generation: int) -> None:
        await asyncio.gather(*(self._lookup_and_apply(location, unit_mode, generation) for location in locations))

    async def _lookup_and_apply(self, location: SavedLocation, unit_mode: UnitMode, generation: int) -> None:
        reading = await self._lookup(location, unit_mode)
        if generation != self._generation:
            logger.debug("Discarding stale temperature for %s (generation %s)", location.name, generation)
            return
        if self.get(location.name) is None:
            return
        if reading is None:
            self._temperatures[location.name] = NOT_AVAILABLE
            return
        self._temperatures[location.name] = reading.temp_raw
        if reading.coordinate is not None:
            self._coordinates[location.name] = reading.coordinate

    def _save(self, locations: List[SavedLocation]) -> None:
        save_document(self._store, SAVED_LOCATIONS_KEY, saved_locations_to_payload(locations))


__all__ = ["NOT_AVAILABLE", "SAVED_LOCATIONS_KEY", "SavedLocationStore"]
