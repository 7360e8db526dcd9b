"""Cyclesense cycle-inference engine.

Pure, synchronous computation over period logs.  No storage access and no wall
clock: callers pass ``today`` explicitly.

Modules:
    date_math        : Calendar-day arithmetic
    cycle_statistics : Averages with outlier rejection, regularity, normality
    predictor        : Next period, fertile window, phase for a cycle day
    aggregation      : Fold start/end events into history, current status
    insights         : Insight summary and calendar markers
    config_loader    : Load/validate/hot-reload cycle_config.yaml

Import the engine modules directly; they depend on ``src.models.cycles``,
which in turn imports this package.
"""

from src.cycles.config_loader import CycleConfig, get_cycle_config
from src.cycles.date_math import add_days, day_difference, iso_date

__all__ = [
    "CycleConfig",
    "get_cycle_config",
    "add_days",
    "day_difference",
    "iso_date",
]
