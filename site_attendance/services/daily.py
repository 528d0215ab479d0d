"""
Daily attendance for one person on one date.

Sessions are merged into disjoint intervals; the standard break is
only deducted for the part not already covered by an uncovered gap
between sessions, so a split day and a single block with the same
working time produce the same total.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timedelta

from pydantic import BaseModel

from site_attendance.schemas.attendance import AttendanceDaySummary
from site_attendance.schemas.session import AttendanceSession
from site_attendance.services.dates import ensure_utc
from site_attendance.services.timecalc import (
    TimeCalcConfig,
    get_time_calc_config,
    hours_from_minutes,
    round_half_up,
    round_minutes,
)

# (minimum gross minutes, break minutes), largest threshold first
DEFAULT_BREAK_RULES: tuple[tuple[int, int], ...] = (
    (12 * 60, 120),
    (10 * 60, 90),
    (6 * 60, 60),
)


def whole_minutes(delta: timedelta) -> int:
    """Duration in minutes, halves rounded up."""
    return round_half_up(delta.total_seconds() / 60)


class Interval(BaseModel):
    start: datetime
    end: datetime

    @property
    def minutes(self) -> int:
        return whole_minutes(self.end - self.start)


def merge_intervals(intervals: Sequence[Interval]) -> list[Interval]:
    """Merge overlapping or touching intervals into a sorted disjoint list."""
    valid = sorted((i for i in intervals if i.end > i.start), key=lambda i: i.start)
    merged: list[Interval] = []
    for interval in valid:
        if not merged or interval.start > merged[-1].end:
            merged.append(interval.model_copy())
            continue
        if interval.end > merged[-1].end:
            merged[-1] = Interval(start=merged[-1].start, end=interval.end)
    return merged


def default_standard_break_minutes(gross_minutes: float) -> int:
    safe_gross = max(0, round_half_up(gross_minutes))
    for min_minutes, break_minutes in DEFAULT_BREAK_RULES:
        if safe_gross >= min_minutes:
            return break_minutes
    return 0


def standard_break_minutes(gross_minutes: float, config: TimeCalcConfig | None = None) -> int:
    """Fixed configured break when time calculation is on, else the tiered rule."""
    config = config or get_time_calc_config()
    if config.enabled and config.break_minutes > 0:
        return config.break_minutes
    return default_standard_break_minutes(gross_minutes)


def compute_daily_attendance(
    sessions_for_day: Sequence[AttendanceSession],
    *,
    skip_standard_break_deduction: bool = False,
    config: TimeCalcConfig | None = None,
) -> AttendanceDaySummary:
    config = config or get_time_calc_config()
    anomalies: list[str] = []
    intervals: list[Interval] = []

    for session in sessions_for_day:
        if session.status in ("unknown", "other"):
            anomalies.append(f"status:{session.status_raw or session.status}:{session.id}")
        if session.start is None or session.end is None:
            anomalies.append(f"missing-range:{session.id}")
            continue
        start, end = ensure_utc(session.start), ensure_utc(session.end)
        if end <= start:
            anomalies.append(f"invalid-range:{session.id}")
            continue
        intervals.append(Interval(start=start, end=end))

    merged = merge_intervals(intervals)
    gross_minutes = whole_minutes(merged[-1].end - merged[0].start) if merged else 0
    # per-interval rounding must not push active time past the span
    active_minutes = min(gross_minutes, sum(interval.minutes for interval in merged))

    gap_minutes = max(0, gross_minutes - active_minutes)
    standard_break = standard_break_minutes(gross_minutes, config)
    deduct_break = 0 if skip_standard_break_deduction else max(0, standard_break - gap_minutes)
    net_minutes = max(0, active_minutes - deduct_break)
    rounded = round_minutes(net_minutes, config)

    return AttendanceDaySummary(
        date=(sessions_for_day[0].date or "") if sessions_for_day else "",
        active_minutes=active_minutes,
        gross_minutes=gross_minutes,
        gap_minutes=gap_minutes,
        standard_break_minutes=standard_break,
        deduct_break_minutes=deduct_break,
        net_minutes=net_minutes,
        rounded_minutes=rounded,
        rounded_hours=hours_from_minutes(rounded),
        sessions_count=len(sessions_for_day),
        anomalies=anomalies,
        break_policy_applied=not skip_standard_break_deduction,
    )
