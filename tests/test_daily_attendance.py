"""Tests for interval merging and the daily attendance calculator."""

from datetime import datetime, timedelta, timezone

import pytest
from helpers import make_session

from site_attendance.services.daily import (
    Interval,
    compute_daily_attendance,
    default_standard_break_minutes,
    merge_intervals,
    standard_break_minutes,
)
from site_attendance.services.timecalc import TimeCalcConfig

DAY = "2026-02-12"
T0 = datetime(2026, 2, 12, 0, 0, tzinfo=timezone.utc)


def _iv(start_min: int, end_min: int) -> Interval:
    return Interval(start=T0 + timedelta(minutes=start_min), end=T0 + timedelta(minutes=end_min))


def test_merge_overlapping_and_touching():
    merged = merge_intervals([_iv(60, 120), _iv(0, 30), _iv(30, 45), _iv(100, 150)])
    assert [(i.start, i.end) for i in merged] == [
        (T0, T0 + timedelta(minutes=45)),
        (T0 + timedelta(minutes=60), T0 + timedelta(minutes=150)),
    ]


def test_merge_drops_empty_intervals_and_is_idempotent():
    intervals = [_iv(10, 10), _iv(50, 20), _iv(0, 5), _iv(3, 8)]
    merged = merge_intervals(intervals)
    assert len(merged) == 1
    assert merge_intervals(merged) == merged


@pytest.mark.parametrize(
    "gross, expected",
    [(359, 0), (360, 60), (599, 60), (600, 90), (720, 120), (900, 120)],
)
def test_tiered_break(gross, expected):
    assert default_standard_break_minutes(gross) == expected


def test_fixed_break_overrides_tiers_when_enabled():
    assert standard_break_minutes(300, TimeCalcConfig(enabled=True, break_minutes=45)) == 45
    assert standard_break_minutes(300, TimeCalcConfig(enabled=False, break_minutes=45)) == 0


def test_split_day_gap_covers_break(calc_config):
    sessions = [make_session("a", DAY, "09:00", "12:00"), make_session("b", DAY, "13:00", "18:00")]
    result = compute_daily_attendance(sessions, config=calc_config)
    assert result.active_minutes == 480
    assert result.gross_minutes == 540
    assert result.gap_minutes == 60
    assert result.standard_break_minutes == 60
    assert result.deduct_break_minutes == 0
    assert result.net_minutes == 480
    assert result.rounded_hours == 8.0


def test_single_block_matches_split_day(calc_config):
    single = compute_daily_attendance([make_session("a", DAY, "09:00", "18:00")], config=calc_config)
    split = compute_daily_attendance(
        [make_session("a", DAY, "09:00", "12:00"), make_session("b", DAY, "13:00", "18:00")],
        config=calc_config,
    )
    assert single.gap_minutes == 0
    assert single.deduct_break_minutes == 60
    assert single.net_minutes == 480
    assert single.rounded_minutes == split.rounded_minutes


def test_invalid_range_is_anomaly_but_counted(calc_config):
    sessions = [
        make_session("good", DAY, "09:00", "12:00"),
        make_session("bad", DAY, "15:00", "14:00"),
    ]
    result = compute_daily_attendance(sessions, config=calc_config)
    assert "invalid-range:bad" in result.anomalies
    assert result.sessions_count == 2
    assert result.active_minutes == 180


def test_missing_range_and_unknown_status(calc_config):
    sessions = [
        make_session("open1", DAY, "09:00", None, status="other", status_raw="paused"),
        make_session("blank", DAY, None, None, status="unknown", status_raw=None),
    ]
    result = compute_daily_attendance(sessions, config=calc_config)
    assert result.anomalies == [
        "status:paused:open1",
        "missing-range:open1",
        "status:unknown:blank",
        "missing-range:blank",
    ]
    assert result.rounded_minutes == 0


def test_overlapping_sessions_not_double_counted(calc_config):
    sessions = [make_session("a", DAY, "08:00", "12:00"), make_session("b", DAY, "11:00", "13:00")]
    result = compute_daily_attendance(sessions, config=calc_config)
    assert result.active_minutes == 300
    assert result.gross_minutes == 300


def test_skip_deduction_never_lowers_net(calc_config):
    sessions = [make_session("a", DAY, "07:30", "19:45")]
    applied = compute_daily_attendance(sessions, config=calc_config)
    skipped = compute_daily_attendance(sessions, skip_standard_break_deduction=True, config=calc_config)
    assert skipped.net_minutes >= applied.net_minutes
    assert skipped.deduct_break_minutes == 0
    assert skipped.break_policy_applied is False
    assert applied.break_policy_applied is True


def test_empty_day(calc_config):
    result = compute_daily_attendance([], config=calc_config)
    assert result.sessions_count == 0
    assert result.rounded_minutes == 0
    assert result.anomalies == []


def test_minute_ordering_holds_for_mixed_day(calc_config):
    sessions = [
        make_session("a", DAY, "06:10", "09:07"),
        make_session("b", DAY, "09:07", "11:59"),
        make_session("c", DAY, "12:31", "20:02"),
    ]
    result = compute_daily_attendance(sessions, config=calc_config)
    assert result.net_minutes <= result.active_minutes <= result.gross_minutes
    assert result.rounded_minutes % 15 == 0
