from __future__ import annotations

import asyncio
import json

from skycast.entities import Coordinate, LiveTemperature, SavedLocation, UnitMode
from skycast.services.saved_locations import NOT_AVAILABLE, SAVED_LOCATIONS_KEY, SavedLocationStore
from skycast.services.weather import FetchFailed


PARIS = Coordinate(48.85, 2.35)


class StubTemperatures:
    """Async temperature source; lookups for a gated name wait for the event."""

    def __init__(self, values=None, failing=()):
        self.values = values or {UnitMode.METRIC: 20.0, UnitMode.IMPERIAL: 68.0}
        self.failing = set(failing)
        self.gates = {}
        self.places = {}
        self.calls = []

    async def fetch_temperature(self, location: SavedLocation, unit_mode: UnitMode) -> LiveTemperature:
        self.calls.append((location.name, unit_mode))
        gate = self.gates.get((location.name, unit_mode))
        if gate is not None:
            await gate.wait()
        if location.name in self.failing:
            raise FetchFailed("boom")
        return LiveTemperature(self.values[unit_mode], location.coordinate or self.places.get(location.name))


def test_duplicate_name_keeps_first_entry(memory_store):
    saved = SavedLocationStore(memory_store)

    assert saved.save("Paris", PARIS) is True
    assert saved.save("Paris", Coordinate(1.0, 1.0)) is False

    assert saved.list() == [SavedLocation("Paris", 48.85, 2.35)]


def test_empty_name_is_ignored(memory_store):
    saved = SavedLocationStore(memory_store)

    assert saved.save("", PARIS) is False
    assert saved.list() == []


def test_remove_unknown_name_is_noop(memory_store):
    saved = SavedLocationStore(memory_store)
    saved.save("Paris", PARIS)
    before = memory_store.get(SAVED_LOCATIONS_KEY)

    assert saved.remove("Nowhere") is False
    assert memory_store.get(SAVED_LOCATIONS_KEY) == before


def test_locations_persist_in_insertion_order(memory_store):
    SavedLocationStore(memory_store).save("Paris", PARIS)
    SavedLocationStore(memory_store).save("Oslo", None)

    names = [location.name for location in SavedLocationStore(memory_store).list()]
    stored = json.loads(memory_store.get(SAVED_LOCATIONS_KEY))

    assert names == ["Paris", "Oslo"]
    assert stored[1] == {"name": "Oslo", "lat": None, "lon": None}


def test_clear_drops_everything(memory_store):
    saved = SavedLocationStore(memory_store, StubTemperatures())
    saved.save("Paris", PARIS)
    asyncio.run(saved.refresh_temperatures(UnitMode.METRIC))

    saved.clear()

    assert saved.list() == []
    assert saved.temperatures == {}


def test_failed_lookup_is_not_available(memory_store):
    saved = SavedLocationStore(memory_store, StubTemperatures(failing={"Atlantis"}))
    saved.save("Atlantis", Coordinate(0.0, 0.0))
    saved.save("Paris", PARIS)

    temperatures = asyncio.run(saved.refresh_temperatures(UnitMode.METRIC))

    assert temperatures == {"Atlantis": NOT_AVAILABLE, "Paris": 20.0}


def test_without_source_everything_is_not_available(memory_store):
    saved = SavedLocationStore(memory_store)
    saved.save("Paris", PARIS)

    assert asyncio.run(saved.ensure_temperatures(UnitMode.METRIC)) == {"Paris": NOT_AVAILABLE}


def test_ensure_only_fetches_missing_entries(memory_store):
    source = StubTemperatures()
    saved = SavedLocationStore(memory_store, source)
    saved.save("Paris", PARIS)
    asyncio.run(saved.ensure_temperatures(UnitMode.METRIC))
    saved.save("Oslo", Coordinate(59.91, 10.75))

    asyncio.run(saved.ensure_temperatures(UnitMode.METRIC))

    assert source.calls == [("Paris", UnitMode.METRIC), ("Oslo", UnitMode.METRIC)]


def test_unit_change_refreshes_every_entry(memory_store):
    source = StubTemperatures()
    saved = SavedLocationStore(memory_store, source)
    saved.save("Paris", PARIS)
    asyncio.run(saved.ensure_temperatures(UnitMode.METRIC))
    generation = saved.generation

    temperatures = asyncio.run(saved.ensure_temperatures(UnitMode.IMPERIAL))

    assert temperatures == {"Paris": 68.0}
    assert saved.generation == generation + 1


def test_stale_generation_is_discarded(memory_store):
    source = StubTemperatures()
    saved = SavedLocationStore(memory_store, source)
    saved.save("Paris", PARIS)

    async def scenario():
        gate = asyncio.Event()
        source.gates[("Paris", UnitMode.METRIC)] = gate
        slow = asyncio.create_task(saved.refresh_temperatures(UnitMode.METRIC))
        await asyncio.sleep(0)
        await saved.refresh_temperatures(UnitMode.IMPERIAL)
        gate.set()
        await slow

    asyncio.run(scenario())

    assert saved.temperatures == {"Paris": 68.0}


def test_removed_location_result_is_dropped(memory_store):
    source = StubTemperatures()
    saved = SavedLocationStore(memory_store, source)
    saved.save("Paris", PARIS)

    async def scenario():
        gate = asyncio.Event()
        source.gates[("Paris", UnitMode.METRIC)] = gate
        lookup = asyncio.create_task(saved.ensure_temperatures(UnitMode.METRIC))
        await asyncio.sleep(0)
        saved.remove("Paris")
        gate.set()
        await lookup

    asyncio.run(scenario())

    assert saved.temperatures == {}


def test_corrupt_document_resets_to_empty(memory_store):
    memory_store.set(SAVED_LOCATIONS_KEY, json.dumps([{"name": "Bad", "lat": 123, "lon": 0}]))

    assert SavedLocationStore(memory_store).list() == []
    assert memory_store.get(SAVED_LOCATIONS_KEY) == "[]"


def test_name_only_location_takes_coordinate_from_lookup(memory_store):
    source = StubTemperatures()
    source.places["Oslo"] = Coordinate(59.91, 10.75)
    saved = SavedLocationStore(memory_store, source)
    saved.save("Oslo", None)

    assert saved.coordinate_for("Oslo") is None

    asyncio.run(saved.ensure_temperatures(UnitMode.METRIC))

    assert saved.temperatures == {"Oslo": 20.0}
    assert saved.coordinate_for("Oslo") == Coordinate(59.91, 10.75)
    assert saved.get("Oslo").coordinate is None

    saved.remove("Oslo")
    assert saved.coordinate_for("Oslo") is None


def test_lookup_live_temperature_returns_bare_value(memory_store):
    saved = SavedLocationStore(memory_store, StubTemperatures(failing={"Atlantis"}))

    assert asyncio.run(saved.lookup_live_temperature(SavedLocation("Paris", 48.85, 2.35), UnitMode.IMPERIAL)) == 68.0
    assert asyncio.run(saved.lookup_live_temperature(SavedLocation("Atlantis"), UnitMode.METRIC)) == NOT_AVAILABLE
