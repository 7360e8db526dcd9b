"""Fold period events into a cycle history and derive the current status.

The history keeps one invariant: logs are ordered by start date and only
the most recent log may be open (no end date yet).  ``record_period_event``
checks it on every event and returns a rejected result instead of mutating
the wrong log.

Usage::

    result = record_period_event(history, PeriodEvent(start_date=date(2026, 3, 2)))
    if not result.accepted:
        logger.warning(result.reason)
    status = current_cycle_status(result.history, today=date(2026, 3, 4))
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable

from src.cycles.config_loader import CycleConfig, get_cycle_config
from src.cycles.cycle_statistics import summarize
from src.cycles.date_math import day_difference
from src.cycles.predictor import cycle_phase, next_period_date
from src.models.cycles import (
    NOT_ENOUGH_DATA,
    CycleHistory,
    CyclePhase,
    PeriodEvent,
    PeriodLog,
)

logger = logging.getLogger("cyclesense.cycles.aggregation")


class PeriodEventRejected(ValueError):
    """Raised by ``RecordResult.unwrap()`` for an event the history refused."""


@dataclass
class RecordResult:
    """Outcome of folding one event into a history.

    Attributes:
        accepted: False when the event broke the history invariants.
        history:  The updated history, or the untouched input when rejected.
        reason:   Why the event was rejected.
    """

    accepted: bool
    history: CycleHistory
    reason: str | None = None

    def unwrap(self) -> CycleHistory:
        if not self.accepted:
            raise PeriodEventRejected(self.reason)
        return self.history


@dataclass
class CycleStatus:
    """Where today falls in the current cycle.

    Attributes:
        current_phase:          A CyclePhase value, or NOT_ENOUGH_DATA.
        cycle_day:              1-indexed day since the latest period start.
        days_until_next_period: Whole days until the predicted start; 0 while bleeding.
        next_period_date:       Predicted start, None while bleeding or without data.
    """

    current_phase: str
    cycle_day: int | None = None
    days_until_next_period: int | None = None
    next_period_date: date | None = None


def _reject(history: CycleHistory, reason: str) -> RecordResult:
    logger.warning("Rejected period event: %s", reason)
    return RecordResult(accepted=False, history=history, reason=reason)


def _refresh_averages(history: CycleHistory, config: CycleConfig) -> None:
    summary = summarize(
        history.period_logs,
        previous_cycle=history.average_cycle_length,
        previous_period=history.average_period_length,
        config=config,
    )
    history.average_cycle_length = summary.average_cycle_length
    history.average_period_length = summary.average_period_length


def record_period_event(
    history: CycleHistory,
    event: PeriodEvent,
    config: CycleConfig | None = None,
) -> RecordResult:
    """Merge a "period started" or "period ended" event into ``history``.

    End events close the open latest log in place (end date, flow and
    symptoms).  Start events append a new open log.  Averages are
    recomputed from the whole history after every accepted event.

    Rejected, with ``history`` untouched:
    - an end event when there is no open log;
    - an end date before the open log's start date;
    - a start event while the latest log is still open;
    - a start date on or before the latest start date.
    """
    cfg = config or get_cycle_config()
    latest = history.latest

    if event.is_end:
        if latest is None or not latest.is_open:
            return _reject(history, "no period in progress to end")
        if event.end_date < latest.start_date:
            return _reject(
                history,
                f"end date {event.end_date.isoformat()} is before the period "
                f"start {latest.start_date.isoformat()}",
            )
        latest.end_date = event.end_date
        latest.flow = event.flow
        latest.symptoms = set(event.symptoms)
        logger.info(
            "Closed period started %s (%d days)",
            latest.start_date.isoformat(),
            day_difference(latest.start_date, latest.end_date) + 1,
        )
    else:
        if latest is not None and latest.is_open:
            return _reject(
                history,
                f"period started {latest.start_date.isoformat()} is still in progress",
            )
        if latest is not None and event.start_date <= latest.start_date:
            return _reject(
                history,
                f"start date {event.start_date.isoformat()} is not after the latest "
                f"period start {latest.start_date.isoformat()}",
            )
        history.period_logs.append(
            PeriodLog(
                start_date=event.start_date,
                flow=event.flow,
                symptoms=set(event.symptoms),
            )
        )
        logger.info("Started period on %s", event.start_date.isoformat())

    _refresh_averages(history, cfg)
    logger.debug(
        "Averages now cycle=%d period=%d over %d log(s)",
        history.average_cycle_length,
        history.average_period_length,
        len(history.period_logs),
    )
    return RecordResult(accepted=True, history=history)


def rebuild_history(
    logs: Iterable[PeriodLog],
    previous: CycleHistory | None = None,
    config: CycleConfig | None = None,
) -> CycleHistory:
    """Build a history from raw logs with freshly computed averages.

    Args:
        logs:      Period logs in any order.
        previous:  History whose averages are kept when no samples survive.
        config:    Override config.

    Raises:
        pydantic.ValidationError: If the logs break the open-log invariant.
    """
    cfg = config or get_cycle_config()
    history = CycleHistory(
        period_logs=[log.model_copy(deep=True) for log in logs],
        average_cycle_length=(
            previous.average_cycle_length if previous else cfg.defaults.cycle_length
        ),
        average_period_length=(
            previous.average_period_length if previous else cfg.defaults.period_length
        ),
    )
    _refresh_averages(history, cfg)
    return history


def current_cycle_status(
    history: CycleHistory,
    today: date,
    config: CycleConfig | None = None,
) -> CycleStatus:
    """Return phase, cycle day and next-period countdown for ``today``.

    Reads ``history`` without mutating it.

    Args:
        history: Period history with its cached averages.
        today:   Reference date, passed in so results are reproducible.
        config:  Override config.
    """
    latest = history.latest
    if latest is None:
        return CycleStatus(current_phase=NOT_ENOUGH_DATA)

    days_since_start = day_difference(latest.start_date, today)
    cycle_day = days_since_start + 1

    # Still bleeding: the period is open and shorter than the usual length.
    if latest.is_open and days_since_start < history.average_period_length:
        return CycleStatus(
            current_phase=CyclePhase.period.value,
            cycle_day=cycle_day,
            days_until_next_period=0,
        )

    cycle_length = history.average_cycle_length
    predicted = next_period_date(latest.start_date, cycle_length)
    return CycleStatus(
        current_phase=cycle_phase(cycle_day, cycle_length, config).value,
        cycle_day=cycle_day,
        days_until_next_period=day_difference(today, predicted),
        next_period_date=predicted,
    )
