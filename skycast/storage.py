"""Key-value persistence for preferences, saved locations and alert rules."""
from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, Optional, Protocol, TypeVar

from django.core.cache.backends.base import BaseCache
from pydantic import ValidationError


logger = logging.getLogger(__name__)

T = TypeVar("T")


class DocumentCorrupt(ValueError):
    """Raised when a stored document cannot be decoded or validated."""


class KeyValueStore(Protocol):
    """String key-value capability backing every persisted document."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...


class MemoryStore:
    """Process-local store, used when nothing should outlive the process."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def clear(self) -> None:
        self._data.clear()


class CacheStore:
    """Adapter exposing a Django cache backend as a :class:`KeyValueStore`.

    Documents are written without expiry; pick a persistent backend
    (file-based or Redis) when they should survive restarts.
    """

    key_prefix = "skycast"

    def __init__(self, cache: BaseCache) -> None:
        self._cache = cache

    def get(self, key: str) -> Optional[str]:
        value = self._cache.get(self._key(key))
        if value is None:
            return None
        return str(value)

    def set(self, key: str, value: str) -> None:
        self._cache.set(self._key(key), value, timeout=None)

    def _key(self, key: str) -> str:
        return f"{self.key_prefix}:{key}"


def load_document(
    store: KeyValueStore,
    key: str,
    parse: Callable[[Any], T],
    default: Callable[[], T],
    encode: Callable[[T], Any],
) -> T:
    """Read and validate ``key``; a corrupt record is reset to ``default``."""
    raw = store.get(key)
    if raw is None:
        return default()
    try:
        return _decode(raw, parse)
    except DocumentCorrupt as exc:
        logger.warning("Stored document %s is corrupt, resetting it: %s", key, exc)
        value = default()
        save_document(store, key, encode(value))
        return value


def save_document(store: KeyValueStore, key: str, payload: Any) -> None:
    store.set(key, json.dumps(payload, separators=(",", ":"), ensure_ascii=False))


def _decode(raw: str, parse: Callable[[Any], T]) -> T:
    try:
        payload = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise DocumentCorrupt("invalid json") from exc
    try:
        return parse(payload)
    except (ValidationError, TypeError, ValueError) as exc:
        raise DocumentCorrupt(str(exc)) from exc


__all__ = [
    "CacheStore",
    "DocumentCorrupt",
    "KeyValueStore",
    "MemoryStore",
    "load_document",
    "save_document",
]
