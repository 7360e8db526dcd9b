"""Cycle statistics with outlier rejection.

Turns a history of period logs into cycle-length and period-length samples,
averages them, and classifies lengths and regularity.  A single mis-logged
date (two starts 400 days apart, an end before its start) is dropped as an
outlier instead of skewing the averages.

Averages follow one rule everywhere: with zero retained samples the
previous value is kept, otherwise the average is recomputed from the full
filtered sample set.
"""

from __future__ import annotations

import logging
import math
import statistics
from dataclasses import dataclass, field
from typing import Iterable

from src.cycles.config_loader import CycleConfig, get_cycle_config
from src.cycles.date_math import day_difference
from src.models.cycles import PeriodLog

logger = logging.getLogger("cyclesense.cycles.cycle_statistics")


@dataclass
class CycleStatisticsSummary:
    """Samples and averages derived from one history.

    Attributes:
        cycle_lengths:          Retained start-to-start gaps, oldest first.
        period_lengths:         Retained inclusive period lengths.
        average_cycle_length:   Rounded mean of cycle_lengths (or the previous value).
        average_period_length:  Rounded mean of period_lengths (or the previous value).
        rejected_cycles:        Gaps discarded as outliers.
        rejected_periods:       Period lengths discarded as outliers.
    """

    cycle_lengths: list[int] = field(default_factory=list)
    period_lengths: list[int] = field(default_factory=list)
    average_cycle_length: int = 28
    average_period_length: int = 5
    rejected_cycles: int = 0
    rejected_periods: int = 0


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _raw_cycle_gaps(logs: Iterable[PeriodLog]) -> list[int]:
    ordered = sorted(logs, key=lambda log: log.start_date)
    return [
        day_difference(previous.start_date, current.start_date)
        for previous, current in zip(ordered, ordered[1:])
    ]


def _raw_period_lengths(logs: Iterable[PeriodLog]) -> list[int]:
    return [
        day_difference(log.start_date, log.end_date) + 1
        for log in logs
        if log.end_date is not None
    ]


def cycle_lengths(
    logs: Iterable[PeriodLog], config: CycleConfig | None = None
) -> list[int]:
    """Return the gaps between consecutive period starts.

    Logs are sorted by start date first.  Gaps ``<= 0`` or at least the
    configured maximum (60 days) are discarded.
    """
    limit = (config or get_cycle_config()).outliers.max_cycle_gap_days
    return [gap for gap in _raw_cycle_gaps(logs) if 0 < gap < limit]


def period_lengths(
    logs: Iterable[PeriodLog], config: CycleConfig | None = None
) -> list[int]:
    """Return the inclusive day count of every closed period.

    Lengths ``<= 0`` or at least the configured maximum (15 days) are
    discarded.
    """
    limit = (config or get_cycle_config()).outliers.max_period_days
    return [length for length in _raw_period_lengths(logs) if 0 < length < limit]


def _average(samples: list[int], previous: int) -> int:
    if not samples:
        return previous
    return _round_half_up(statistics.mean(samples))


def average_cycle_length(
    logs: Iterable[PeriodLog],
    previous: int | None = None,
    config: CycleConfig | None = None,
) -> int:
    """Return the rounded mean cycle length.

    Args:
        logs:      Period logs in any order.
        previous:  Last known average, returned unchanged when no gap
                   survives outlier rejection.  Defaults to the configured
                   default (28).
        config:    Override config.
    """
    cfg = config or get_cycle_config()
    fallback = cfg.defaults.cycle_length if previous is None else previous
    return _average(cycle_lengths(logs, cfg), fallback)


def average_period_length(
    logs: Iterable[PeriodLog],
    previous: int | None = None,
    config: CycleConfig | None = None,
) -> int:
    """Return the rounded mean period length, keeping ``previous`` without samples."""
    cfg = config or get_cycle_config()
    fallback = cfg.defaults.period_length if previous is None else previous
    return _average(period_lengths(logs, cfg), fallback)


def is_cycle_length_normal(length: int, config: CycleConfig | None = None) -> bool:
    """True if ``length`` is within the normal cycle range (21–35 days)."""
    return (config or get_cycle_config()).normal_cycle.contains(length)


def is_period_length_normal(length: int, config: CycleConfig | None = None) -> bool:
    """True if ``length`` is within the normal period range (2–8 days)."""
    return (config or get_cycle_config()).normal_period.contains(length)


def is_irregular_cycle(
    lengths: list[int], config: CycleConfig | None = None
) -> bool:
    """Return True if any cycle length strays too far from the mean.

    Fewer than two samples is never irregular.  Otherwise a sample more
    than ``max_deviation_days`` (7) away from the arithmetic mean makes the
    whole series irregular.
    """
    if len(lengths) < 2:
        return False
    tolerance = (config or get_cycle_config()).max_deviation_days
    mean = statistics.mean(lengths)
    return any(abs(length - mean) > tolerance for length in lengths)


def summarize(
    logs: Iterable[PeriodLog],
    previous_cycle: int | None = None,
    previous_period: int | None = None,
    config: CycleConfig | None = None,
) -> CycleStatisticsSummary:
    """Compute every statistic for a history in one pass.

    Args:
        logs:            Period logs in any order.
        previous_cycle:  Cycle average to keep when there are no gap samples.
        previous_period: Period average to keep when there are no length samples.
        config:          Override config.
    """
    cfg = config or get_cycle_config()
    logs = list(logs)

    cycles = cycle_lengths(logs, cfg)
    periods = period_lengths(logs, cfg)
    summary = CycleStatisticsSummary(
        cycle_lengths=cycles,
        period_lengths=periods,
        average_cycle_length=_average(
            cycles,
            cfg.defaults.cycle_length if previous_cycle is None else previous_cycle,
        ),
        average_period_length=_average(
            periods,
            cfg.defaults.period_length if previous_period is None else previous_period,
        ),
        rejected_cycles=len(_raw_cycle_gaps(logs)) - len(cycles),
        rejected_periods=len(_raw_period_lengths(logs)) - len(periods),
    )

    if summary.rejected_cycles or summary.rejected_periods:
        logger.debug(
            "Rejected %d cycle gap(s) and %d period length(s) as outliers",
            summary.rejected_cycles,
            summary.rejected_periods,
        )
    return summary
