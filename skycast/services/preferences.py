from __future__ import annotations

import logging
from dataclasses import replace
from typing import Union

from ..entities import Preferences, Theme, UnitMode
from ..schemas import preferences_from_payload, preferences_to_payload
from ..storage import KeyValueStore, load_document, save_document


logger = logging.getLogger(__name__)

PREFERENCES_KEY = "preferences"


class PreferenceStore:
    """Unit mode and theme; setting an unchanged value writes nothing."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def get(self) -> Preferences:
        return load_document(self._store, PREFERENCES_KEY, preferences_from_payload, Preferences, preferences_to_payload)

    def set_unit_mode(self, unit_mode: Union[UnitMode, str]) -> bool:
        """Persist the unit mode; returns whether it changed."""
        current = self.get()
        unit_mode = UnitMode(unit_mode)
        if current.unit_mode == unit_mode:
            return False
        self._save(replace(current, unit_mode=unit_mode))
        logger.info("Unit mode changed to %s", unit_mode.value)
        return True

    def set_theme(self, theme: Union[Theme, str]) -> bool:
        current = self.get()
        theme = Theme(theme)
        if current.theme == theme:
            return False
        self._save(replace(current, theme=theme))
        return True

    def _save(self, preferences: Preferences) -> None:
        save_document(self._store, PREFERENCES_KEY, preferences_to_payload(preferences))


__all__ = ["PREFERENCES_KEY", "PreferenceStore"]
