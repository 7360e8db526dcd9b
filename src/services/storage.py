"""Key-value persistence for cycle history and settings.

The client app keeps its state as JSON strings under a handful of keys.
This module mirrors that layout over any store offering ``get``, ``set``
and ``remove``, and converts the blobs to and from the pydantic models.

Every user action is a scoped read → mutate → write.  Hold ``store_lock``
for the whole sequence::

    with store_lock:
        history = load_history(store)
        result = record_period_event(history, event)
        if result.accepted:
            save_history(store, result.history)
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Protocol, TypeVar

from pydantic import BaseModel, ValidationError

from src.models.cycles import CycleHistory, ReminderSettings, UserPreferences

logger = logging.getLogger("cyclesense.storage")

CYCLE_DATA_KEY = "cycleData"
REMINDER_SETTINGS_KEY = "reminderSettings"
USER_PREFERENCES_KEY = "userPreferences"
ONBOARDING_KEY = "hasCompletedOnboarding"

DATA_KEYS = (CYCLE_DATA_KEY, REMINDER_SETTINGS_KEY, USER_PREFERENCES_KEY)

# Serializes read-modify-write sequences across request threads.
store_lock = threading.RLock()

ModelT = TypeVar("ModelT", bound=BaseModel)


class StorageError(RuntimeError):
    """Raised when a stored blob cannot be read back."""


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, keys: Iterable[str]) -> None: ...


# ---------------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------------


class MemoryStore:
    """Dict-backed store for tests and ephemeral sessions."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, keys: Iterable[str]) -> None:
        for key in keys:
            self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)


class JsonFileStore:
    """Store backed by a single JSON object on disk.

    Each write replaces the file atomically (temp file + ``os.replace``),
    so a crash mid-write leaves the previous snapshot intact.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (json.JSONDecodeError, OSError) as exc:
            raise StorageError(f"Cannot read store {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise StorageError(f"Store {self.path} does not contain a JSON object")
        return data

    def _write(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2, sort_keys=True)
            os.replace(tmp, self.path)
        except OSError:
            Path(tmp).unlink(missing_ok=True)
            raise

    def get(self, key: str) -> str | None:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove(self, keys: Iterable[str]) -> None:
        data = self._read()
        removed = [k for k in keys if data.pop(k, None) is not None]
        if removed:
            self._write(data)
            logger.info("Removed %d key(s) from %s", len(removed), self.path)


# ---------------------------------------------------------------------------
# Typed accessors
# ---------------------------------------------------------------------------


def _load(store: KeyValueStore, key: str, model: type[ModelT]) -> ModelT:
    blob = store.get(key)
    if blob is None:
        return model()
    try:
        return model.model_validate_json(blob)
    except ValidationError as exc:
        raise StorageError(f"Stored '{key}' is invalid: {exc}") from exc


def _save(store: KeyValueStore, key: str, value: BaseModel) -> None:
    store.set(key, value.model_dump_json(by_alias=True))


def load_history(store: KeyValueStore) -> CycleHistory:
    """Return the stored history, or an empty one with default averages."""
    return _load(store, CYCLE_DATA_KEY, CycleHistory)


def save_history(store: KeyValueStore, history: CycleHistory) -> None:
    _save(store, CYCLE_DATA_KEY, history)


def load_reminder_settings(store: KeyValueStore) -> ReminderSettings:
    return _load(store, REMINDER_SETTINGS_KEY, ReminderSettings)


def save_reminder_settings(store: KeyValueStore, settings: ReminderSettings) -> None:
    _save(store, REMINDER_SETTINGS_KEY, settings)


def load_preferences(store: KeyValueStore) -> UserPreferences:
    return _load(store, USER_PREFERENCES_KEY, UserPreferences)


def save_preferences(store: KeyValueStore, preferences: UserPreferences) -> None:
    _save(store, USER_PREFERENCES_KEY, preferences)


def is_onboarding_complete(store: KeyValueStore) -> bool:
    return store.get(ONBOARDING_KEY) == "true"


def complete_onboarding(store: KeyValueStore) -> None:
    store.set(ONBOARDING_KEY, "true")


def export_data(store: KeyValueStore, exported_at: datetime) -> dict[str, Any]:
    """Return every stored snapshot as plain JSON data.

    Missing snapshots are exported as ``None``.

    Raises:
        StorageError: If a stored blob is not valid JSON.
    """
    exported: dict[str, Any] = {}
    for key in DATA_KEYS:
        blob = store.get(key)
        try:
            exported[key] = json.loads(blob) if blob is not None else None
        except json.JSONDecodeError as exc:
            raise StorageError(f"Stored '{key}' is not valid JSON: {exc}") from exc
    exported["exportDate"] = exported_at.isoformat()
    return exported


def clear_data(store: KeyValueStore) -> None:
    """Remove the history and both settings blobs."""
    store.remove(DATA_KEYS)
    logger.info("Cleared cycle data and settings")
