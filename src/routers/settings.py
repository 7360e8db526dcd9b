"""Endpoints for reminder settings, preferences, onboarding, export, and reset."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter

from src.dependencies import Store
from src.models.cycles import ReminderSettings, UserPreferences
from src.services.storage import (
    clear_data,
    complete_onboarding,
    export_data,
    is_onboarding_complete,
    load_preferences,
    load_reminder_settings,
    save_preferences,
    save_reminder_settings,
    store_lock,
)

router = APIRouter(prefix="/settings", tags=["settings"])
logger = logging.getLogger("cyclesense.routers.settings")


# ---------- Reminders ----------

@router.get("/reminders", response_model=ReminderSettings, response_model_by_alias=False)
def get_reminders(store: Store) -> Any:
    return load_reminder_settings(store)


@router.put("/reminders", response_model=ReminderSettings, response_model_by_alias=False)
def update_reminders(store: Store, body: ReminderSettings) -> Any:
    with store_lock:
        save_reminder_settings(store, body)
    return body


# ---------- Preferences ----------

@router.get("/preferences", response_model=UserPreferences, response_model_by_alias=False)
def get_preferences(store: Store) -> Any:
    return load_preferences(store)


@router.put("/preferences", response_model=UserPreferences, response_model_by_alias=False)
def update_preferences(store: Store, body: UserPreferences) -> Any:
    with store_lock:
        save_preferences(store, body)
    return body


# ---------- Onboarding ----------

@router.get("/onboarding")
def get_onboarding(store: Store) -> dict[str, bool]:
    return {"completed": is_onboarding_complete(store)}


@router.post("/onboarding")
def finish_onboarding(store: Store) -> dict[str, bool]:
    with store_lock:
        complete_onboarding(store)
    return {"completed": True}


# ---------- Data ----------

@router.get("/export")
def export_all(store: Store) -> dict[str, Any]:
    with store_lock:
        data = export_data(store, exported_at=datetime.now(timezone.utc))
    logger.info("Exported stored data")
    return data


@router.delete("/data", status_code=204)
def delete_all(store: Store) -> None:
    with store_lock:
        clear_data(store)
