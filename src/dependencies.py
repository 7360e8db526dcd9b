"""Shared FastAPI dependencies injected into route handlers."""

from __future__ import annotations

from datetime import date
from functools import lru_cache
from pathlib import Path
from typing import Annotated

from fastapi import Depends, Query

from src.config import Settings, get_settings
from src.cycles.config_loader import CycleConfig, get_cycle_config, load_cycle_config
from src.services.storage import JsonFileStore, KeyValueStore


@lru_cache
def _file_store(path: str) -> JsonFileStore:
    return JsonFileStore(path)


def get_store() -> KeyValueStore:
    """Return the configured key-value store.  Tests override this dependency."""
    return _file_store(get_settings().storage_path)


@lru_cache
def _config_from(path: str) -> CycleConfig:
    return load_cycle_config(Path(path))


def get_config() -> CycleConfig:
    """Return the cycle config, honouring ``CYCLE_CONFIG_PATH`` when set."""
    override = get_settings().cycle_config_path
    return _config_from(override) if override else get_cycle_config()


def get_today(
    today: date | None = Query(default=None, description="Reference date (defaults to today)"),
) -> date:
    return today or date.today()


# Annotated shortcuts for route signatures
Store = Annotated[KeyValueStore, Depends(get_store)]
Config = Annotated[CycleConfig, Depends(get_config)]
Today = Annotated[date, Depends(get_today)]
AppSettings = Annotated[Settings, Depends(get_settings)]
