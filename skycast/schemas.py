"""Schemas of the documents kept in the key-value store."""
from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from .entities import AlertRule, Comparison, Metric, Preferences, SavedLocation, Theme, UnitMode

__all__ = [
    "AlertRuleDocument",
    "PreferencesDocument",
    "SavedLocationDocument",
    "alert_rules_from_payload",
    "alert_rules_to_payload",
    "preferences_from_payload",
    "preferences_to_payload",
    "saved_locations_from_payload",
    "saved_locations_to_payload",
]


class SavedLocationDocument(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = Field(min_length=1)
    lat: Optional[float] = Field(default=None, ge=-90, le=90)
    lon: Optional[float] = Field(default=None, ge=-180, le=180)

    def to_entity(self) -> SavedLocation:
        return SavedLocation(name=self.name, lat=self.lat, lon=self.lon)


class AlertRuleDocument(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    metric: Metric
    threshold: float
    comparison: Comparison
    activity_label: str = ""
    enabled: bool = True

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        # Older records used numeric millisecond timestamps as ids.
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    def to_entity(self) -> AlertRule:
        return AlertRule(
            id=self.id,
            metric=self.metric,
            threshold=self.threshold,
            comparison=self.comparison,
            activity_label=self.activity_label,
            enabled=self.enabled,
        )


class PreferencesDocument(BaseModel):
    model_config = ConfigDict(extra="ignore")

    unit_mode: UnitMode = UnitMode.METRIC
    theme: Theme = Theme.DARK

    def to_entity(self) -> Preferences:
        return Preferences(unit_mode=self.unit_mode, theme=self.theme)


_saved_locations = TypeAdapter(List[SavedLocationDocument])
_alert_rules = TypeAdapter(List[AlertRuleDocument])


def saved_locations_from_payload(payload: Any) -> List[SavedLocation]:
    return [doc.to_entity() for doc in _saved_locations.validate_python(payload)]


def saved_locations_to_payload(locations: List[SavedLocation]) -> List[dict]:
    return [{"name": loc.name, "lat": loc.lat, "lon": loc.lon} for loc in locations]


def alert_rules_from_payload(payload: Any) -> List[AlertRule]:
    return [doc.to_entity() for doc in _alert_rules.validate_python(payload)]


def alert_rules_to_payload(rules: List[AlertRule]) -> List[dict]:
    return [
        {
            "id": rule.id,
            "metric": rule.metric.value,
            "threshold": rule.threshold,
            "comparison": rule.comparison.value,
            "activity_label": rule.activity_label,
            "enabled": rule.enabled,
        }
        for rule in rules
    ]


def preferences_from_payload(payload: Any) -> Preferences:
    return PreferencesDocument.model_validate(payload).to_entity()


def preferences_to_payload(preferences: Preferences) -> dict:
    return {"unit_mode": preferences.unit_mode.value, "theme": preferences.theme.value}
