"""Pydantic models for period logs, cycle history, and user settings."""

from __future__ import annotations

import re
from datetime import date
from enum import Enum
from typing import Any, Literal

from pydantic import Field, field_serializer, field_validator, model_validator

from src.cycles.date_math import to_date
from src.models.base import CycleBase


# ---------- Enums ----------

class FlowIntensity(str, Enum):
    light = "light"
    medium = "medium"
    heavy = "heavy"


class CyclePhase(str, Enum):
    period = "Period"
    follicular = "Follicular"
    ovulation = "Ovulation"
    luteal = "Luteal"


NOT_ENOUGH_DATA = "Not enough data"

KNOWN_SYMPTOMS = frozenset(
    {"cramps", "headache", "bloating", "fatigue", "mood", "acne", "backache", "tender"}
)

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def _coerce_date(value: Any) -> Any:
    # Anything that is not a date or string is left for pydantic to reject.
    if value is None or not isinstance(value, (str, date)):
        return value
    return to_date(value)


# ---------- Period logs ----------

class PeriodLog(CycleBase):
    """One real-world menstruation event."""

    start_date: date
    end_date: date | None = None
    flow: FlowIntensity = FlowIntensity.medium
    symptoms: set[str] = Field(default_factory=set)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _calendar_date(cls, value: Any) -> Any:
        return _coerce_date(value)

    @field_serializer("symptoms")
    def _sorted_symptoms(self, symptoms: set[str]) -> list[str]:
        return sorted(symptoms)

    @property
    def is_open(self) -> bool:
        return self.end_date is None


class CycleHistory(CycleBase):
    """Ordered period logs plus the averages derived from them.

    ``average_cycle_length`` and ``average_period_length`` are caches kept
    in step with ``period_logs`` by ``src.cycles.aggregation``.
    """

    period_logs: list[PeriodLog] = Field(default_factory=list)
    average_cycle_length: int = Field(default=28, gt=0)
    average_period_length: int = Field(default=5, gt=0)

    @model_validator(mode="after")
    def _check_open_log(self) -> CycleHistory:
        self.period_logs.sort(key=lambda log: log.start_date)
        open_positions = [i for i, log in enumerate(self.period_logs) if log.is_open]
        if len(open_positions) > 1:
            raise ValueError(
                f"history has {len(open_positions)} open period logs; at most one is allowed"
            )
        if open_positions and open_positions[0] != len(self.period_logs) - 1:
            raise ValueError("only the most recent period log may be open")
        return self

    @property
    def latest(self) -> PeriodLog | None:
        return self.period_logs[-1] if self.period_logs else None


class PeriodEvent(CycleBase):
    """A user action folded into the history.

    Carries ``end_date`` for "period ended"; otherwise it is a "period
    started" event and needs ``start_date``.
    """

    start_date: date | None = None
    end_date: date | None = None
    flow: FlowIntensity = FlowIntensity.medium
    symptoms: set[str] = Field(default_factory=set)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _calendar_date(cls, value: Any) -> Any:
        return _coerce_date(value)

    @model_validator(mode="after")
    def _needs_a_date(self) -> PeriodEvent:
        if self.start_date is None and self.end_date is None:
            raise ValueError("a period event needs a start_date or an end_date")
        return self

    @property
    def is_end(self) -> bool:
        return self.end_date is not None


# ---------- Settings ----------

class ReminderSettings(CycleBase):
    """Reminder toggles.  Stored for the client; nothing here schedules them."""

    period_reminder: bool = True
    period_reminder_days: int = Field(default=2, ge=0, le=14)
    ovulation_reminder: bool = True
    medication_reminder: bool = False
    medication_times: list[str] = Field(default_factory=list)

    @field_validator("medication_times")
    @classmethod
    def _valid_times(cls, times: list[str]) -> list[str]:
        bad = [t for t in times if not _TIME_RE.match(t)]
        if bad:
            raise ValueError(f"medication times must be HH:MM, got {bad}")
        return times


class UserPreferences(CycleBase):
    theme: Literal["light", "dark", "system"] = "light"
    use_local_storage_only: bool = True
    show_fertile_window: bool = True
    show_predictions: bool = True
