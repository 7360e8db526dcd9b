"""Health check endpoint."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter

from src.dependencies import AppSettings, Config

router = APIRouter(tags=["system"])
logger = logging.getLogger("cyclesense.health")


@router.get("/health")
def health_check(settings: AppSettings, config: Config) -> dict:
    """Liveness probe. Returns 200 if the API process is up and the cycle config loaded."""
    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.environment,
        "cycle_config_version": config.version,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
