"""Load, validate, and hot-reload the cycle engine configuration.

The config lives in ``cycle_config.yaml`` alongside this module.  At startup
it is loaded once and cached.  Call ``reload_cycle_config()`` to re-read from
disk after an admin update.

Usage::

    from src.cycles.config_loader import get_cycle_config

    config = get_cycle_config()
    config.defaults.cycle_length          # 28
    config.prediction.luteal_phase_days   # 14
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger("cyclesense.cycles.config")

# Path to the YAML file sitting next to this module
_CONFIG_PATH = Path(__file__).parent / "cycle_config.yaml"


# ---------------------------------------------------------------------------
# Typed config sections
# ---------------------------------------------------------------------------


@dataclass
class DefaultsConfig:
    """Averages used before any usable samples exist."""

    cycle_length: int = 28
    period_length: int = 5


@dataclass
class OutlierConfig:
    """Upper bounds (exclusive) for samples kept in the rolling averages."""

    max_cycle_gap_days: int = 60
    max_period_days: int = 15


@dataclass
class LengthRange:
    """Inclusive range of lengths considered normal."""

    min: int
    max: int

    def contains(self, value: int) -> bool:
        return self.min <= value <= self.max


@dataclass
class PredictionConfig:
    """Calendar-method prediction settings."""

    luteal_phase_days: int = 14
    period_phase_days: int = 5
    ovulation_margin_days: int = 1
    fertile_days_before_ovulation: int = 5
    fertile_days_after_ovulation: int = 1
    upcoming_periods: int = 3


@dataclass
class CycleConfig:
    """Complete, validated cycle engine configuration.

    Attributes:
        version:             Config schema version string.
        defaults:            Fallback averages.
        outliers:            Sample rejection bounds.
        normal_cycle:        Cycle lengths reported as normal.
        normal_period:       Period lengths reported as normal.
        max_deviation_days:  Regularity tolerance around the mean.
        prediction:          Phase and fertile window settings.
        insights_min_logs:   Logs required before insights are shown.
    """

    version: str
    defaults: DefaultsConfig
    outliers: OutlierConfig
    normal_cycle: LengthRange
    normal_period: LengthRange
    max_deviation_days: int
    prediction: PredictionConfig
    insights_min_logs: int
    _raw: dict = field(default_factory=dict, repr=False)


# ---------------------------------------------------------------------------
# Loader / validation
# ---------------------------------------------------------------------------


class ConfigValidationError(ValueError):
    """Raised when cycle_config.yaml fails validation."""


def _load_yaml(path: Path) -> dict:
    """Read and parse a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigValidationError: If the YAML is malformed.
    """
    if not path.exists():
        raise FileNotFoundError(f"Cycle config not found: {path}")

    with path.open("r", encoding="utf-8") as fh:
        try:
            return yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ConfigValidationError(f"YAML parse error in {path}: {exc}") from exc


def _validate_and_build(raw: dict) -> CycleConfig:
    """Validate the raw YAML dict and construct a CycleConfig.

    Missing sections fall back to the built-in defaults; present values
    must be positive integers.

    Raises:
        ConfigValidationError: If any value is invalid.
    """
    errors: list[str] = []

    def _int(section: dict, key: str, default: int, path: str, minimum: int = 1) -> int:
        value: Any = section.get(key, default)
        try:
            number = int(value)
        except (TypeError, ValueError):
            errors.append(f"{path}.{key} must be an integer, got {value!r}")
            return default
        if isinstance(value, bool) or number != value:
            errors.append(f"{path}.{key} must be an integer, got {value!r}")
            return default
        if number < minimum:
            errors.append(f"{path}.{key} = {number} must be >= {minimum}")
        return number

    def _section(key: str, parent: dict, path: str) -> dict:
        value = parent.get(key) or {}
        if not isinstance(value, dict):
            errors.append(f"'{path}' must be a mapping")
            return {}
        return value

    version = str(raw.get("version", "1.0"))

    # ── Defaults ──
    d_raw = _section("defaults", raw, "defaults")
    defaults = DefaultsConfig(
        cycle_length=_int(d_raw, "cycle_length", 28, "defaults"),
        period_length=_int(d_raw, "period_length", 5, "defaults"),
    )

    # ── Outliers ──
    o_raw = _section("outliers", raw, "outliers")
    outliers = OutlierConfig(
        max_cycle_gap_days=_int(o_raw, "max_cycle_gap_days", 60, "outliers"),
        max_period_days=_int(o_raw, "max_period_days", 15, "outliers"),
    )

    # ── Normal ranges ──
    nr_raw = _section("normal_ranges", raw, "normal_ranges")
    ranges: dict[str, LengthRange] = {}
    for name, lo, hi in (("cycle_length", 21, 35), ("period_length", 2, 8)):
        r_raw = _section(name, nr_raw, f"normal_ranges.{name}")
        rng = LengthRange(
            min=_int(r_raw, "min", lo, f"normal_ranges.{name}"),
            max=_int(r_raw, "max", hi, f"normal_ranges.{name}"),
        )
        if rng.min > rng.max:
            errors.append(
                f"normal_ranges.{name}: min ({rng.min}) is greater than max ({rng.max})"
            )
        ranges[name] = rng

    # ── Regularity ──
    reg_raw = _section("regularity", raw, "regularity")
    max_deviation = _int(reg_raw, "max_deviation_days", 7, "regularity", minimum=0)

    # ── Prediction ──
    p_raw = _section("prediction", raw, "prediction")
    fw_raw = _section("fertile_window", p_raw, "prediction.fertile_window")
    prediction = PredictionConfig(
        luteal_phase_days=_int(p_raw, "luteal_phase_days", 14, "prediction"),
        period_phase_days=_int(p_raw, "period_phase_days", 5, "prediction"),
        ovulation_margin_days=_int(
            p_raw, "ovulation_margin_days", 1, "prediction", minimum=0
        ),
        fertile_days_before_ovulation=_int(
            fw_raw, "days_before_ovulation", 5, "prediction.fertile_window", minimum=0
        ),
        fertile_days_after_ovulation=_int(
            fw_raw, "days_after_ovulation", 1, "prediction.fertile_window", minimum=0
        ),
        upcoming_periods=_int(p_raw, "upcoming_periods", 3, "prediction"),
    )
    if prediction.period_phase_days >= defaults.cycle_length:
        errors.append(
            f"prediction.period_phase_days ({prediction.period_phase_days}) must be "
            f"shorter than defaults.cycle_length ({defaults.cycle_length})"
        )

    # ── Insights ──
    i_raw = _section("insights", raw, "insights")
    min_logs = _int(i_raw, "min_logs", 2, "insights")

    if errors:
        raise ConfigValidationError(
            f"cycle_config.yaml has {len(errors)} validation error(s):\n"
            + "\n".join(f"  • {e}" for e in errors)
        )

    return CycleConfig(
        version=version,
        defaults=defaults,
        outliers=outliers,
        normal_cycle=ranges["cycle_length"],
        normal_period=ranges["period_length"],
        max_deviation_days=max_deviation,
        prediction=prediction,
        insights_min_logs=min_logs,
        _raw=raw,
    )


def load_cycle_config(path: Path | None = None) -> CycleConfig:
    """Load and validate the cycle config from disk.

    Args:
        path: Override path to YAML. Uses the bundled cycle_config.yaml by default.
    """
    target = path or _CONFIG_PATH
    raw = _load_yaml(target)
    config = _validate_and_build(raw)
    logger.info("Loaded cycle config v%s from %s", config.version, target)
    return config


# ---------------------------------------------------------------------------
# Global singleton with hot-reload support
# ---------------------------------------------------------------------------

_config: CycleConfig | None = None
_config_lock = threading.Lock()


def get_cycle_config() -> CycleConfig:
    """Return the global CycleConfig singleton, loading it on first call.

    Thread-safe.  Use ``reload_cycle_config()`` to refresh after YAML changes.
    """
    global _config
    if _config is None:
        with _config_lock:
            if _config is None:  # double-checked locking
                _config = load_cycle_config()
    return _config


def reload_cycle_config(path: Path | None = None) -> CycleConfig:
    """Reload the cycle config from disk and replace the global singleton.

    If validation fails, the old config is retained and the error is re-raised.

    Raises:
        ConfigValidationError: If the new config is invalid.
        FileNotFoundError:     If the config file is missing.
    """
    global _config
    new_config = load_cycle_config(path)  # validate before acquiring lock
    with _config_lock:
        old_version = _config.version if _config else "none"
        _config = new_config
    logger.info("Reloaded cycle config: %s → %s", old_version, new_config.version)
    return new_config
