"""Cycle insights and calendar markers.

Insights summarize a history once at least two periods are logged: the
average lengths with a normal/unusual label, regularity, and the next
predicted starts.  Calendar markers tag each date that should be
highlighted as a logged period day or a predicted fertile day.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum

from src.cycles.config_loader import CycleConfig, get_cycle_config
from src.cycles.cycle_statistics import (
    cycle_lengths,
    is_cycle_length_normal,
    is_irregular_cycle,
    is_period_length_normal,
    period_lengths,
)
from src.cycles.date_math import date_range, iso_date
from src.cycles.predictor import FertileWindow, fertile_window, upcoming_periods
from src.models.cycles import CycleHistory

logger = logging.getLogger("cyclesense.cycles.insights")


class DayMarker(str, Enum):
    period = "period"
    fertile = "fertile"


@dataclass
class CycleInsights:
    """Summary shown once enough periods are logged.

    Attributes:
        average_cycle_length:  Cached average from the history.
        average_period_length: Cached average from the history.
        cycle_length_status:   'Normal' or 'Unusual'.
        period_length_status:  'Normal' or 'Unusual'.
        regularity:            'Regular' or 'Irregular'.
        cycle_lengths:         Retained cycle-length samples.
        period_lengths:        Retained period-length samples.
        next_periods:          Upcoming predicted period starts.
    """

    average_cycle_length: int
    average_period_length: int
    cycle_length_status: str
    period_length_status: str
    regularity: str
    cycle_lengths: list[int] = field(default_factory=list)
    period_lengths: list[int] = field(default_factory=list)
    next_periods: list[date] = field(default_factory=list)


def _label(normal: bool) -> str:
    return "Normal" if normal else "Unusual"


def build_insights(
    history: CycleHistory, config: CycleConfig | None = None
) -> CycleInsights | None:
    """Return insights for ``history``, or None with fewer than two logs."""
    cfg = config or get_cycle_config()
    if len(history.period_logs) < cfg.insights_min_logs:
        logger.debug(
            "Insights need %d logs, history has %d",
            cfg.insights_min_logs,
            len(history.period_logs),
        )
        return None

    cycles = cycle_lengths(history.period_logs, cfg)
    periods = period_lengths(history.period_logs, cfg)
    return CycleInsights(
        average_cycle_length=history.average_cycle_length,
        average_period_length=history.average_period_length,
        cycle_length_status=_label(
            is_cycle_length_normal(history.average_cycle_length, cfg)
        ),
        period_length_status=_label(
            is_period_length_normal(history.average_period_length, cfg)
        ),
        regularity="Irregular" if is_irregular_cycle(cycles, cfg) else "Regular",
        cycle_lengths=cycles,
        period_lengths=periods,
        next_periods=upcoming_periods(
            history.latest.start_date, history.average_cycle_length, config=cfg
        ),
    )


def calendar_markers(
    history: CycleHistory,
    include_fertile_window: bool = True,
    config: CycleConfig | None = None,
) -> dict[str, DayMarker]:
    """Map ISO dates to the marker a calendar should show.

    Closed logs mark every day from start to end; an open log marks only
    its start day.  The fertile window of the latest cycle marks the days
    not already marked as period days.
    """
    markers: dict[str, DayMarker] = {}
    for log in history.period_logs:
        last_day = log.end_date or log.start_date
        for d in date_range(log.start_date, last_day):
            markers[iso_date(d)] = DayMarker.period

    latest = history.latest
    if include_fertile_window and latest is not None:
        window: FertileWindow | None = fertile_window(
            latest.start_date, history.average_cycle_length, config
        )
        if window is not None:
            for d in date_range(window.start, window.end):
                markers.setdefault(iso_date(d), DayMarker.fertile)
    return markers
