"""Shared fixtures for cycle engine, storage, and API tests."""

from __future__ import annotations

from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient

from src.cycles.aggregation import rebuild_history
from src.cycles.config_loader import CycleConfig, load_cycle_config
from src.dependencies import get_store
from src.main import create_app
from src.models.cycles import CycleHistory, PeriodLog
from src.services.storage import MemoryStore


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def cycle_config() -> CycleConfig:
    """Load the bundled cycle config for tests."""
    return load_cycle_config()


# ---------------------------------------------------------------------------
# History fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def regular_logs() -> list[PeriodLog]:
    """Three closed 5-day periods exactly 28 days apart, then an open one."""
    logs = []
    start = date(2024, 1, 1)
    for _ in range(3):
        logs.append(PeriodLog(start_date=start, end_date=start + timedelta(days=4)))
        start += timedelta(days=28)
    logs.append(PeriodLog(start_date=start))
    return logs


@pytest.fixture
def regular_history(regular_logs: list[PeriodLog], cycle_config: CycleConfig) -> CycleHistory:
    return rebuild_history(regular_logs, config=cycle_config)


@pytest.fixture
def bleeding_history(cycle_config: CycleConfig) -> CycleHistory:
    """One closed 5-day period and a period that started on 2024-01-29."""
    return rebuild_history(
        [
            PeriodLog(start_date=date(2024, 1, 1), end_date=date(2024, 1, 5)),
            PeriodLog(start_date=date(2024, 1, 29)),
        ],
        config=cycle_config,
    )


# ---------------------------------------------------------------------------
# Storage / API fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def client(memory_store: MemoryStore) -> TestClient:
    """TestClient whose store is an in-memory MemoryStore."""
    app = create_app()
    app.dependency_overrides[get_store] = lambda: memory_store
    return TestClient(app)
