"""Endpoints for period logging, cycle status, predictions, and insights."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Query

from src.cycles.aggregation import current_cycle_status, record_period_event
from src.cycles.insights import build_insights, calendar_markers
from src.cycles.predictor import fertile_window, upcoming_periods
from src.dependencies import Config, Store, Today
from src.models.base import ErrorDetail
from src.models.cycles import KNOWN_SYMPTOMS, CycleHistory, PeriodEvent
from src.services.storage import (
    load_history,
    load_preferences,
    save_history,
    store_lock,
)

router = APIRouter(prefix="/cycles", tags=["cycles"])


@router.get("", response_model=CycleHistory, response_model_by_alias=False)
def get_history(store: Store) -> Any:
    return load_history(store)


@router.post(
    "/events",
    response_model=CycleHistory,
    response_model_by_alias=False,
    status_code=201,
    responses={409: {"model": ErrorDetail}},
)
def record_event(store: Store, config: Config, body: PeriodEvent) -> Any:
    with store_lock:
        history = load_history(store)
        result = record_period_event(history, body, config)
        if not result.accepted:
            raise HTTPException(status_code=409, detail=result.reason)
        save_history(store, result.history)
    return result.history


@router.get("/status")
def get_status(store: Store, config: Config, today: Today) -> Any:
    return current_cycle_status(load_history(store), today, config)


@router.get("/predictions")
def get_predictions(
    store: Store,
    config: Config,
    count: int | None = Query(default=None, ge=1, le=12),
) -> dict[str, Any]:
    history = load_history(store)
    preferences = load_preferences(store)
    latest = history.latest
    if latest is None or not preferences.show_predictions:
        return {"next_periods": [], "fertile_window": None}

    window = None
    if preferences.show_fertile_window:
        window = fertile_window(latest.start_date, history.average_cycle_length, config)
    return {
        "next_periods": upcoming_periods(
            latest.start_date, history.average_cycle_length, count, config
        ),
        "fertile_window": window,
    }


@router.get("/insights")
def get_insights(store: Store, config: Config) -> dict[str, Any]:
    insights = build_insights(load_history(store), config)
    if insights is None:
        return {"available": False, "insights": None}
    return {"available": True, "insights": insights}


@router.get("/calendar")
def get_calendar(store: Store, config: Config) -> dict[str, Any]:
    history = load_history(store)
    preferences = load_preferences(store)
    markers = calendar_markers(
        history,
        include_fertile_window=preferences.show_fertile_window,
        config=config,
    )
    return {"markers": markers}


@router.get("/symptoms")
def list_symptoms() -> dict[str, list[str]]:
    """Symptom tags the client offers when logging a period."""
    return {"symptoms": sorted(KNOWN_SYMPTOMS)}
