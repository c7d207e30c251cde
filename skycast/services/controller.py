"""Application state for the active location.

Every weather fetch takes a sequence number when it starts. A result (or
failure) is applied only if no fetch was started after it, so the state always
reflects the most recently initiated request. Superseded results are dropped
silently; the underlying HTTP calls are idempotent reads and are left to
finish.

The snapshot only ever pairs a location with that location's own result: a
newly selected location is held as the pending selection and enters the
snapshot together with its report (or its failure).
"""
from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional, Union

from ..entities import (
    AlertRule,
    Comparison,
    Coordinate,
    CurrentConditions,
    LocationCandidate,
    Metric,
    ResolvedLocation,
    UnitMode,
    WeatherReport,
    WeatherSnapshot,
)
from .alerts import AlertRuleStore, evaluate
from .forecast import group_by_day, offset_timezone
from .location import LocationResolver, LocationSearch
from .preferences import PreferenceStore
from .saved_locations import SavedLocationStore, Temperature
from .suggestions import suggest
from .weather import FetchFailed, WeatherFetcher


logger = logging.getLogger(__name__)


def formatted_name(location: ResolvedLocation, current: CurrentConditions) -> str:
    """Header name: the resolved label (or upstream city) with the country code."""
    name = location.display_name or current.location_name
    if not current.country_code:
        return name
    return f"{name}, {current.country_code}"


class WeatherController:
    def __init__(
        self,
        *,
        resolver: LocationResolver,
        fetcher: WeatherFetcher,
        preferences: PreferenceStore,
        saved_locations: SavedLocationStore,
        alert_rules: AlertRuleStore,
        search: Optional[LocationSearch] = None,
    ) -> None:
        self.resolver = resolver
        self.fetcher = fetcher
        self.preferences = preferences
        self.saved_locations = saved_locations
        self.alert_rules = alert_rules
        self.search = search
        self.snapshot = WeatherSnapshot()
        self._selected: Optional[ResolvedLocation] = None
        self._sequence = 0

    @property
    def unit_mode(self) -> UnitMode:
        return self.preferences.get().unit_mode

    @property
    def sequence(self) -> int:
        return self._sequence

    @property
    def selected_location(self) -> Optional[ResolvedLocation]:
        """The most recently selected location, which may still be loading."""
        return self._selected

    # Location selection -------------------------------------------------
    async def start(self) -> WeatherSnapshot:
        """Resolve the start-up location through the fallback chain and fetch."""
        location = await self.resolver.resolve()
        return await self.select_location(location)

    async def select_location(
        self, location: ResolvedLocation, unit_mode: Optional[UnitMode] = None
    ) -> WeatherSnapshot:
        self._selected = location
        return await self.refresh(unit_mode)

    async def select_point(self, lat: float, lon: float, name: Optional[str] = None) -> WeatherSnapshot:
        """Map click: label the point unless the caller already has a name."""
        coordinate = Coordinate(lat, lon)
        label = name or await self.resolver.label_for_point(lat, lon)
        return await self.select_location(ResolvedLocation(coordinate, label))

    async def select_candidate(self, candidate: LocationCandidate) -> WeatherSnapshot:
        return await self.select_location(candidate.to_resolved())

    async def select_saved(self, name: str) -> WeatherSnapshot:
        coordinate = self.saved_locations.coordinate_for(name)
        if coordinate is None:
            logger.info("Saved location %s has no coordinate to show", name)
            return self.snapshot
        return await self.select_location(ResolvedLocation(coordinate, name))

    async def reset_to_device(self) -> WeatherSnapshot:
        location = await self.resolver.locate_device()
        if location is None:
            return self.snapshot
        return await self.select_location(location)

    async def search_locations(self, query: str, limit: int = 5) -> List[LocationCandidate]:
        if self.search is None:
            return []
        return await self.search.search(query, limit)

    # Fetching -----------------------------------------------------------
    async def refresh(self, unit_mode: Optional[UnitMode] = None) -> WeatherSnapshot:
        """Fetch for the selected location; ``unit_mode`` overrides the preference for this call."""
        location = self._selected
        if location is None:
            location = await self.resolver.resolve()
            self._selected = location
        self._sequence += 1
        token = self._sequence
        unit_mode = UnitMode(unit_mode) if unit_mode else self.unit_mode
        self.snapshot.loading = True
        try:
            report = await self.fetcher.fetch_weather(location.coordinate, unit_mode)
        except FetchFailed as exc:
            if token != self._sequence:
                logger.debug("Discarding failure of superseded fetch %s", token)
                return self.snapshot
            self.snapshot = WeatherSnapshot(location=location, error=str(exc), sequence=token)
            return self.snapshot
        if token != self._sequence:
            logger.debug("Discarding superseded fetch %s (latest is %s)", token, self._sequence)
            return self.snapshot
        self.snapshot = self._derive(location, report, token)
        return self.snapshot

    def _derive(self, location: ResolvedLocation, report: WeatherReport, token: int) -> WeatherSnapshot:
        current = report.current
        return WeatherSnapshot(
            location=location,
            report=report,
            daily=group_by_day(report.hourly, offset_timezone(report.utc_offset_seconds)),
            suggestion=suggest(current.description, current.temp_raw, current.wind_speed_raw, current.humidity_pct),
            triggered_alerts=evaluate(self.alert_rules.list(), current, report.unit_mode),
            sequence=token,
        )

    # Preferences --------------------------------------------------------
    async def set_unit_mode(self, unit_mode: Union[UnitMode, str]) -> WeatherSnapshot:
        """Persist the mode, then re-run the main fetch and every saved lookup."""
        unit_mode = UnitMode(unit_mode)
        if not self.preferences.set_unit_mode(unit_mode):
            return self.snapshot
        if self._selected is None:
            await self.saved_locations.refresh_temperatures(unit_mode)
            return self.snapshot
        await asyncio.gather(self.refresh(), self.saved_locations.refresh_temperatures(unit_mode))
        return self.snapshot

    # Saved locations ----------------------------------------------------
    def save_current_location(self, name: Optional[str] = None) -> bool:
        """Save the location shown in the snapshot, named as in the header."""
        location = self.snapshot.location
        if location is None:
            return False
        if not name:
            report = self.snapshot.report
            name = formatted_name(location, report.current) if report else location.display_name
        return self.saved_locations.save(name, location.coordinate)

    def remove_saved_location(self, name: str) -> bool:
        return self.saved_locations.remove(name)

    async def saved_temperatures(self) -> Dict[str, Temperature]:
        return await self.saved_locations.ensure_temperatures(self.unit_mode)

    # Alerts -------------------------------------------------------------
    def add_alert(
        self,
        metric: Union[Metric, str],
        threshold: float,
        comparison: Union[Comparison, str],
        activity_label: str,
    ) -> AlertRule:
        rule = self.alert_rules.add(metric, threshold, comparison, activity_label)
        self._reevaluate_alerts()
        return rule

    def remove_alert(self, rule_id: str) -> None:
        self.alert_rules.remove(rule_id)
        self._reevaluate_alerts()

    def toggle_alert(self, rule_id: str) -> Optional[AlertRule]:
        rule = self.alert_rules.toggle(rule_id)
        self._reevaluate_alerts()
        return rule

    def _reevaluate_alerts(self) -> None:
        report = self.snapshot.report
        if report is None:
            return
        self.snapshot.triggered_alerts = evaluate(self.alert_rules.list(), report.current, report.unit_mode)


__all__ = ["WeatherController", "formatted_name"]
