"""
Minute rounding and hour conversion.

Rounding always happens on minutes; hours are a plain ``minutes / 60``
of an already-rounded figure.
"""

from __future__ import annotations

import math
from typing import Literal

from pydantic import BaseModel

from site_attendance.core.config import settings

RoundMode = Literal["nearest", "up", "down"]

QUARTER_HOUR = 15


class TimeCalcConfig(BaseModel):
    enabled: bool = True
    round_minutes: int = 15
    round_mode: RoundMode = "nearest"
    break_minutes: int = 0

    model_config = {"frozen": True}


def get_time_calc_config() -> TimeCalcConfig:
    """Build the global rounding/break configuration from settings."""
    return TimeCalcConfig(
        enabled=settings.TIME_CALC_ENABLED,
        round_minutes=settings.TIME_CALC_ROUND_MINUTES,
        round_mode=settings.TIME_CALC_ROUND_MODE,  # type: ignore[arg-type]
        break_minutes=settings.TIME_CALC_BREAK_MINUTES,
    )


def round_half_up(value: float | int) -> int:
    """Nearest whole number, halves rounded up."""
    return math.floor(value + 0.5)


def _safe_minutes(value: float | int | None) -> float:
    if value is None or not math.isfinite(value) or value <= 0:
        return 0.0
    return float(value)


def round_to_step(minutes: float | int | None, step: int, mode: RoundMode = "nearest") -> int:
    """Round *minutes* to a multiple of *step*.

    Negative, zero and non-finite input yields 0.  A non-positive step
    degrades to plain rounding to the whole minute.
    """
    value = _safe_minutes(minutes)
    if value == 0:
        return 0
    if step <= 0:
        return max(0, round_half_up(value))

    units = value / step
    if mode == "up":
        rounded = math.ceil(units)
    elif mode == "down":
        rounded = math.floor(units)
    elif mode == "nearest":
        rounded = round_half_up(units)
    else:
        raise ValueError(f"Unsupported round mode: {mode!r}")
    return max(0, int(rounded) * step)


def round_minutes(value: float | int | None, config: TimeCalcConfig | None = None) -> int:
    """Apply the configured rounding, or whole-minute rounding when disabled."""
    config = config or get_time_calc_config()
    safe = _safe_minutes(value)
    if safe == 0:
        return 0
    if not config.enabled:
        return max(0, round_half_up(safe))
    return round_to_step(safe, config.round_minutes, config.round_mode)


def hours_from_minutes(minutes: float | int) -> float:
    return minutes / 60


def quarter_hour_hours(minutes: float | int | None) -> float:
    """Round to the nearest 15 minutes and express the result in hours."""
    return hours_from_minutes(round_to_step(minutes, QUARTER_HOUR, "nearest"))
