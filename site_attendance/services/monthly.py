"""
Monthly user × day attendance matrix.

Sessions are grouped by a stable user key and date, each user-day is
run through the daily calculator, and totals plus per-day column sums
are accumulated.  The break policy belongs to the person, so it is
resolved once per user with a cache shared by the whole run.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Sequence
from datetime import datetime, timezone

from pydantic import BaseModel

from site_attendance.schemas.attendance import (
    DayTotal,
    MonthlyAttendanceResponse,
    MonthlyAttendanceRow,
    MonthlyDayCell,
    MonthlyTotals,
)
from site_attendance.schemas.session import AttendanceSession
from site_attendance.services.break_policy import (
    BreakPolicyIdentity,
    BreakPolicyResolver,
    BreakPolicyResult,
)
from site_attendance.services.daily import compute_daily_attendance
from site_attendance.services.dates import build_month_days
from site_attendance.services.sorting import text_sort_key
from site_attendance.services.timecalc import TimeCalcConfig, get_time_calc_config, hours_from_minutes

logger = logging.getLogger(__name__)

UNREGISTERED_USER = "unregistered user"


class RosterUser(BaseModel):
    user_id: int | None = None
    name: str | None = None
    user_record_id: str | None = None


def resolve_user_key(session: AttendanceSession) -> str:
    """Grouping key: numeric id, then directory reference, then display name."""
    if session.user_id is not None:
        return f"user_id:{session.user_id}"
    if session.user_record_id:
        return f"record:{session.user_record_id}"
    if session.user_name:
        return f"name:{session.user_name}"
    return "unknown"


def build_roster(sessions: Sequence[AttendanceSession]) -> list[RosterUser]:
    """One roster entry per user key, taken from the first session seen."""
    roster: dict[str, RosterUser] = {}
    for session in sessions:
        key = resolve_user_key(session)
        if key not in roster:
            roster[key] = RosterUser(
                user_id=session.user_id,
                name=session.user_name,
                user_record_id=session.user_record_id,
            )
    return list(roster.values())


def _roster_index(users: Sequence[RosterUser]) -> dict[str, RosterUser]:
    index: dict[str, RosterUser] = {}
    for user in users:
        if user.user_id is not None:
            index[f"user_id:{user.user_id}"] = user
        if user.user_record_id:
            index[f"record:{user.user_record_id}"] = user
    return index


def _first(values: Sequence[AttendanceSession], attr: str):
    return next((getattr(s, attr) for s in values if getattr(s, attr) not in (None, "")), None)


async def aggregate_monthly_attendance(
    sessions: Sequence[AttendanceSession],
    users: Sequence[RosterUser],
    year: int,
    month: int,
    *,
    resolver: BreakPolicyResolver,
    config: TimeCalcConfig | None = None,
    overtime_threshold_minutes: int = 450,
) -> MonthlyAttendanceResponse:
    config = config or get_time_calc_config()
    days = build_month_days(year, month)
    month_dates = {day.date for day in days}
    roster = _roster_index(users)
    policy_cache: dict[str, BreakPolicyResult] = {}

    grouped: dict[str, dict[str, list[AttendanceSession]]] = defaultdict(lambda: defaultdict(list))
    for session in sessions:
        if session.date not in month_dates:
            continue
        grouped[resolve_user_key(session)][session.date].append(session)

    day_minutes: dict[str, int] = defaultdict(int)
    rows: list[MonthlyAttendanceRow] = []

    for user_key, by_date in grouped.items():
        user_sessions = [s for day_sessions in by_date.values() for s in day_sessions]
        info = roster.get(user_key)
        user_id = info.user_id if info and info.user_id is not None else _first(user_sessions, "user_id")
        record_id = (info.user_record_id if info else None) or _first(user_sessions, "user_record_id")
        name = (info.name if info else None) or _first(user_sessions, "user_name") or UNREGISTERED_USER

        breaks_apply = await resolver.break_applies(
            BreakPolicyIdentity(
                user_record_id=record_id,
                user_id=user_id,
                user_name=_first(user_sessions, "user_name") or (info.name if info else None),
            ),
            policy_cache,
        )

        daily = {day.date: MonthlyDayCell(break_policy_applied=breaks_apply) for day in days}
        totals = MonthlyTotals()
        overtime_minutes = 0

        for date_key in sorted(by_date):
            summary = compute_daily_attendance(
                by_date[date_key],
                skip_standard_break_deduction=not breaks_apply,
                config=config,
            )
            minutes = summary.rounded_minutes
            daily[date_key] = MonthlyDayCell(
                hours=hours_from_minutes(minutes),
                minutes_rounded=minutes,
                break_deduct_min=summary.deduct_break_minutes,
                sessions_count=summary.sessions_count,
                has_anomaly=bool(summary.anomalies),
                break_policy_applied=summary.break_policy_applied,
            )
            totals.minutes_rounded += minutes
            totals.break_deduct_min += summary.deduct_break_minutes
            if minutes > 0:
                totals.work_days += 1
            overtime_minutes += max(0, minutes - overtime_threshold_minutes)
            day_minutes[date_key] += minutes

        totals.hours = hours_from_minutes(totals.minutes_rounded)
        totals.overtime_hours = hours_from_minutes(overtime_minutes)
        rows.append(
            MonthlyAttendanceRow(
                user_id=user_id,
                user_record_id=record_id,
                name=name,
                daily=daily,
                totals=totals,
            )
        )

    rows.sort(key=lambda row: (text_sort_key(row.name), row.user_id or 0))
    logger.debug("Aggregated %d users for %04d-%02d", len(rows), year, month)

    return MonthlyAttendanceResponse(
        month=f"{year:04d}-{month:02d}",
        days=days,
        rows=rows,
        day_totals={
            day.date: DayTotal(
                minutes_rounded=day_minutes.get(day.date, 0),
                hours=hours_from_minutes(day_minutes.get(day.date, 0)),
            )
            for day in days
        },
        generated_at=datetime.now(timezone.utc),
    )
