"""Tests for next-period, fertile-window, and phase predictions."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from src.cycles.config_loader import CycleConfig
from src.cycles.date_math import add_days
from src.cycles.predictor import (
    cycle_phase,
    fertile_window,
    next_period_date,
    ovulation_date,
    upcoming_periods,
)
from src.models.cycles import CyclePhase

START = date(2024, 1, 1)


class TestNextPeriod:
    def test_adds_cycle_length(self) -> None:
        assert next_period_date(START, 28) == date(2024, 1, 29)

    def test_crosses_year_boundary(self) -> None:
        assert next_period_date(date(2023, 12, 20), 28) == date(2024, 1, 17)


class TestFertileWindow:
    def test_standard_cycle(self, cycle_config: CycleConfig) -> None:
        window = fertile_window(START, 28, cycle_config)
        assert window is not None
        assert window.ovulation_date == date(2024, 1, 15)
        assert window.start == date(2024, 1, 10)
        assert window.end == date(2024, 1, 16)

    @pytest.mark.parametrize("cycle_length", [15, 21, 28, 35, 45, 59])
    def test_window_is_seven_days_around_ovulation(
        self, cycle_config: CycleConfig, cycle_length: int
    ) -> None:
        window = fertile_window(START, cycle_length, cycle_config)
        assert window is not None
        assert window.length_days == 7
        assert window.end >= add_days(add_days(START, cycle_length - 14), -5)
        assert window.contains(window.ovulation_date)

    @pytest.mark.parametrize("cycle_length", [14, 10, 1, 0])
    def test_short_cycle_has_no_window(
        self, cycle_config: CycleConfig, cycle_length: int
    ) -> None:
        assert fertile_window(START, cycle_length, cycle_config) is None

    def test_shortest_computable_cycle(self, cycle_config: CycleConfig) -> None:
        window = fertile_window(START, 15, cycle_config)
        assert window is not None
        assert window.ovulation_date == date(2024, 1, 2)
        assert window.start == date(2023, 12, 28)

    def test_ovulation_date_none_for_short_cycle(self, cycle_config: CycleConfig) -> None:
        assert ovulation_date(START, 14, cycle_config) is None
        assert ovulation_date(START, 30, cycle_config) == date(2024, 1, 17)


class TestCyclePhase:
    @pytest.mark.parametrize(
        "cycle_day,expected",
        [
            (1, CyclePhase.period),
            (5, CyclePhase.period),
            (6, CyclePhase.follicular),
            (12, CyclePhase.follicular),
            (13, CyclePhase.ovulation),
            (14, CyclePhase.ovulation),
            (15, CyclePhase.ovulation),
            (16, CyclePhase.luteal),
            (20, CyclePhase.luteal),
            (28, CyclePhase.luteal),
        ],
    )
    def test_standard_cycle_table(
        self, cycle_config: CycleConfig, cycle_day: int, expected: CyclePhase
    ) -> None:
        assert cycle_phase(cycle_day, 28, cycle_config) == expected

    def test_day_before_ovulation_belongs_to_ovulation(
        self, cycle_config: CycleConfig
    ) -> None:
        # 35-day cycle: ovulation on day 21, so day 20 is the shared boundary
        assert cycle_phase(19, 35, cycle_config) == CyclePhase.follicular
        assert cycle_phase(20, 35, cycle_config) == CyclePhase.ovulation

    def test_short_cycle_skips_follicular(self, cycle_config: CycleConfig) -> None:
        # 21-day cycle: ovulation on day 7, window 6–8
        assert cycle_phase(5, 21, cycle_config) == CyclePhase.period
        assert cycle_phase(6, 21, cycle_config) == CyclePhase.ovulation
        assert cycle_phase(9, 21, cycle_config) == CyclePhase.luteal

    def test_overdue_day_is_luteal(self, cycle_config: CycleConfig) -> None:
        assert cycle_phase(40, 28, cycle_config) == CyclePhase.luteal

    def test_phase_values_are_display_labels(self) -> None:
        assert [p.value for p in CyclePhase] == ["Period", "Follicular", "Ovulation", "Luteal"]


class TestUpcomingPeriods:
    def test_next_three(self, cycle_config: CycleConfig) -> None:
        assert upcoming_periods(START, 28, 3, cycle_config) == [
            date(2024, 1, 29),
            date(2024, 2, 26),
            date(2024, 3, 25),
        ]

    def test_default_count_from_config(self, cycle_config: CycleConfig) -> None:
        assert len(upcoming_periods(START, 30, config=cycle_config)) == 3

    def test_each_prediction_anchored_on_last_start(self, cycle_config: CycleConfig) -> None:
        predictions = upcoming_periods(START, 31, 6, cycle_config)
        for i, predicted in enumerate(predictions, start=1):
            assert predicted == START + timedelta(days=31 * i)

    def test_zero_requested(self, cycle_config: CycleConfig) -> None:
        assert upcoming_periods(START, 28, 0, cycle_config) == []
