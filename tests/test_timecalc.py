"""Tests for minute rounding and hour conversion."""

import math

import pytest

from site_attendance.services.timecalc import (
    TimeCalcConfig,
    hours_from_minutes,
    quarter_hour_hours,
    round_half_up,
    round_minutes,
    round_to_step,
)


@pytest.mark.parametrize(
    "minutes, mode, expected",
    [
        (7, "nearest", 0),
        (8, "nearest", 15),
        (7.5, "nearest", 15),
        (22, "nearest", 15),
        (1, "up", 15),
        (15, "up", 15),
        (29, "down", 15),
        (480, "nearest", 480),
    ],
)
def test_round_to_step_modes(minutes, mode, expected):
    assert round_to_step(minutes, 15, mode) == expected


@pytest.mark.parametrize("value", [-5, 0, math.nan, math.inf, None])
def test_round_to_step_rejects_non_positive_and_non_finite(value):
    assert round_to_step(value, 15, "nearest") == 0


def test_non_positive_step_rounds_to_whole_minutes():
    assert round_to_step(12.5, 0, "up") == 13
    assert round_to_step(12.4, -15, "down") == 12


def test_unknown_mode_raises():
    with pytest.raises(ValueError):
        round_to_step(10, 15, "sideways")  # type: ignore[arg-type]


@pytest.mark.parametrize("mode", ["nearest", "up", "down"])
@pytest.mark.parametrize("step", [1, 5, 15, 30])
def test_rounding_is_idempotent(mode, step):
    for minutes in (0, 1, 7, 7.5, 14, 61, 449, 451.2, 1000):
        once = round_to_step(minutes, step, mode)
        assert round_to_step(once, step, mode) == once


def test_round_minutes_disabled_uses_whole_minutes():
    config = TimeCalcConfig(enabled=False, round_minutes=15, round_mode="up")
    assert round_minutes(61.4, config) == 61
    assert round_minutes(-3, config) == 0


def test_round_minutes_uses_configured_step():
    config = TimeCalcConfig(enabled=True, round_minutes=30, round_mode="down")
    assert round_minutes(89, config) == 60


def test_hours_are_plain_division():
    assert hours_from_minutes(450) == 7.5
    assert hours_from_minutes(20) == pytest.approx(1 / 3)


def test_quarter_hour_hours_round_trip():
    """Multiples of 15 convert to hours without drift."""
    for minutes in range(0, 24 * 60, 15):
        assert quarter_hour_hours(minutes) == minutes / 60


def test_quarter_hour_hours_rounds_to_nearest_quarter():
    assert quarter_hour_hours(52) == 0.75
    assert quarter_hour_hours(53) == 1.0


@pytest.mark.parametrize("value, expected", [(52.5, 53), (0.5, 1), (2.5, 3), (2.49, 2), (-0.5, 0)])
def test_round_half_up(value, expected):
    assert round_half_up(value) == expected
