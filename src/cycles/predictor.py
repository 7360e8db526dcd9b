"""Calendar-method cycle predictions.

Given the most recent period start and a cycle length:
- Next period start date(s)
- Ovulation date and fertile window
- Phase label for any cycle day

The luteal phase is assumed to last 14 days, so ovulation falls on cycle
day ``cycle_length - 14``.  Cycles too short for that assumption have no
fertile window; callers get ``None`` rather than an exception.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date

from src.cycles.config_loader import CycleConfig, get_cycle_config
from src.cycles.date_math import add_days, day_difference
from src.models.cycles import CyclePhase

logger = logging.getLogger("cyclesense.cycles.predictor")


@dataclass(frozen=True)
class FertileWindow:
    """Estimated fertile days around ovulation (both ends inclusive).

    Attributes:
        start:          First fertile day.
        end:            Last fertile day.
        ovulation_date: Estimated ovulation day inside the window.
    """

    start: date
    end: date
    ovulation_date: date

    @property
    def length_days(self) -> int:
        return day_difference(self.start, self.end) + 1

    def contains(self, d: date) -> bool:
        return self.start <= d <= self.end


def _ovulation_day(cycle_length: int, config: CycleConfig) -> int:
    return cycle_length - config.prediction.luteal_phase_days


def next_period_date(last_start: date, cycle_length: int) -> date:
    """Return the predicted start of the next period."""
    return add_days(last_start, cycle_length)


def ovulation_date(
    last_start: date, cycle_length: int, config: CycleConfig | None = None
) -> date | None:
    """Return the estimated ovulation date, or None for cycles too short to estimate."""
    cfg = config or get_cycle_config()
    day = _ovulation_day(cycle_length, cfg)
    if day <= 0:
        return None
    return add_days(last_start, day)


def fertile_window(
    last_start: date, cycle_length: int, config: CycleConfig | None = None
) -> FertileWindow | None:
    """Return the fertile window for the cycle starting at ``last_start``.

    The window runs from 5 days before ovulation to 1 day after, inclusive.

    Returns:
        FertileWindow, or None when ``cycle_length`` leaves no room for a
        luteal phase (``cycle_length - 14 <= 0``).
    """
    cfg = config or get_cycle_config()
    ov = ovulation_date(last_start, cycle_length, cfg)
    if ov is None:
        logger.debug("No fertile window for a %d-day cycle", cycle_length)
        return None
    return FertileWindow(
        start=add_days(ov, -cfg.prediction.fertile_days_before_ovulation),
        end=add_days(ov, cfg.prediction.fertile_days_after_ovulation),
        ovulation_date=ov,
    )


def cycle_phase(
    cycle_day: int, cycle_length: int, config: CycleConfig | None = None
) -> CyclePhase:
    """Classify a 1-indexed cycle day.

    For a 28-day cycle (ovulation on day 14): days 1–5 Period, 6–12
    Follicular, 13–15 Ovulation, 16 onwards Luteal.  The day before
    ovulation belongs to Ovulation, not Follicular.
    """
    cfg = config or get_cycle_config()
    ov_day = _ovulation_day(cycle_length, cfg)
    margin = cfg.prediction.ovulation_margin_days

    if cycle_day <= cfg.prediction.period_phase_days:
        return CyclePhase.period
    if cycle_day < ov_day - margin:
        return CyclePhase.follicular
    if ov_day - margin <= cycle_day <= ov_day + margin:
        return CyclePhase.ovulation
    return CyclePhase.luteal


def upcoming_periods(
    last_start: date, cycle_length: int, n: int | None = None,
    config: CycleConfig | None = None,
) -> list[date]:
    """Return the next ``n`` predicted period starts.

    Every prediction is anchored on ``last_start``: the i-th start is
    ``last_start + cycle_length * i``.  ``n`` defaults to the configured
    count (3).
    """
    count = (config or get_cycle_config()).prediction.upcoming_periods if n is None else n
    return [add_days(last_start, cycle_length * i) for i in range(1, count + 1)]
