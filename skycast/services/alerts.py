"""User defined threshold alerts."""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Union
from uuid import uuid4

from ..entities import AlertRule, Comparison, CurrentConditions, Metric, UnitMode
from ..schemas import alert_rules_from_payload, alert_rules_to_payload
from ..storage import KeyValueStore, load_document, save_document
from ..units import UnitSystem


logger = logging.getLogger(__name__)

ALERT_RULES_KEY = "alert_rules"

_EXTRACTORS: Dict[Metric, Callable[[CurrentConditions], Optional[float]]] = {
    Metric.TEMPERATURE: lambda c: c.temp_raw,
    Metric.WIND: lambda c: c.wind_speed_raw,
    Metric.VISIBILITY: lambda c: c.visibility_meters,
    Metric.HUMIDITY: lambda c: c.humidity_pct,
    Metric.PRESSURE: lambda c: c.pressure_hpa,
    Metric.UV: lambda c: c.uv_index,
    Metric.CLOUDS: lambda c: c.clouds_pct,
}


def metric_value(
    metric: Metric, current: CurrentConditions, unit_mode: UnitMode = UnitMode.METRIC
) -> Optional[float]:
    """Reading in the unit a rule threshold is entered in.

    Visibility arrives in metres but thresholds use the display unit (km or mi),
    so it is converted here; every other metric is compared as received.
    """
    metric = Metric(metric)
    value = _EXTRACTORS[metric](current)
    if metric is Metric.VISIBILITY and value is not None:
        return UnitSystem.for_mode(unit_mode).visibility_value(value)
    return value


def is_triggered(rule: AlertRule, current: CurrentConditions, unit_mode: UnitMode = UnitMode.METRIC) -> bool:
    if not rule.enabled:
        return False
    value = metric_value(rule.metric, current, unit_mode)
    if value is None:
        return False
    if rule.comparison == Comparison.ABOVE:
        return value > rule.threshold
    return value < rule.threshold


def evaluate(
    rules: Iterable[AlertRule], current: CurrentConditions, unit_mode: UnitMode = UnitMode.METRIC
) -> Tuple[str, ...]:
    """IDs of the enabled rules the snapshot satisfies, in rule order."""
    return tuple(rule.id for rule in rules if is_triggered(rule, current, unit_mode))


class AlertRuleStore:
    """Persisted list of alert rules; every change rewrites the document."""

    def __init__(self, store: KeyValueStore, id_factory: Callable[[], str] = lambda: uuid4().hex) -> None:
        self._store = store
        self._id_factory = id_factory

    def list(self) -> List[AlertRule]:
        return load_document(self._store, ALERT_RULES_KEY, alert_rules_from_payload, list, alert_rules_to_payload)

    def add(
        self,
        metric: Union[Metric, str],
        threshold: float,
        comparison: Union[Comparison, str],
        activity_label: str,
    ) -> AlertRule:
        rule = AlertRule(
            id=self._id_factory(),
            metric=Metric(metric),
            threshold=float(threshold),
            comparison=Comparison(comparison),
            activity_label=activity_label,
        )
        rules = self.list()
        rules.append(rule)
        self._save(rules)
        logger.info("Added alert %s: %s %s %s", rule.id, rule.metric.value, rule.comparison.value, rule.threshold)
        return rule

    def remove(self, rule_id: str) -> None:
        rules = self.list()
        remaining = [rule for rule in rules if rule.id != rule_id]
        if len(remaining) != len(rules):
            self._save(remaining)

    def toggle(self, rule_id: str) -> Optional[AlertRule]:
        rules = self.list()
        toggled: Optional[AlertRule] = None
        for index, rule in enumerate(rules):
            if rule.id == rule_id:
                toggled = replace(rule, enabled=not rule.enabled)
                rules[index] = toggled
        if toggled is not None:
            self._save(rules)
        return toggled

    def _save(self, rules: List[AlertRule]) -> None:
        save_document(self._store, ALERT_RULES_KEY, alert_rules_to_payload(rules))


__all__ = ["ALERT_RULES_KEY", "AlertRuleStore", "evaluate", "is_triggered", "metric_value"]
