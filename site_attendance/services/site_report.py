"""
Site × machine pivot for one month.

Each distinct (user, work description, machine) combination seen on
the site becomes its own column; rows are the calendar days of the
month.  Figures are quarter-hour hours.  The pivot is presentation
oriented, so unusable sessions are dropped silently instead of being
reported as anomalies.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Sequence
from functools import cmp_to_key

from pydantic import BaseModel

from site_attendance.schemas.session import AttendanceSession
from site_attendance.schemas.site_report import DayRow, ReportColumn, SiteReportResponse, SiteSummary
from site_attendance.services.break_policy import BreakPolicyIdentity, BreakPolicyResolver, BreakPolicyResult
from site_attendance.services.dates import build_month_days
from site_attendance.services.sorting import compare_machine_id, compare_text, same_text
from site_attendance.services.timecalc import (
    TimeCalcConfig,
    get_time_calc_config,
    quarter_hour_hours,
    round_half_up,
)

logger = logging.getLogger(__name__)

UNSET = "(unset)"
UNKNOWN_USER = "unknown user"
MAX_SESSION_MINUTES = 24 * 60


class _Column(BaseModel):
    key: str
    user_record_id: str | None = None
    user_name: str
    work_description: str
    machine_id: str | None = None
    machine_name: str | None = None
    skip_break: bool = False


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def session_user_key(session: AttendanceSession) -> str:
    if session.user_record_id:
        return session.user_record_id
    if session.user_id is not None:
        return f"user:{session.user_id}"
    if session.user_name:
        return f"name:{session.user_name}"
    return session.id


def session_minutes(session: AttendanceSession) -> int:
    if session.duration_min is None:
        return 0
    return round_half_up(session.duration_min)


def _matches_site(session: AttendanceSession, site_id: str, site_name: str | None) -> bool:
    if session.site_record_id and session.site_record_id == site_id:
        return True
    return same_text(session.site_name, site_name)


def _matches_machine(session: AttendanceSession, machine_ids: set[str]) -> bool:
    if not machine_ids:
        return True
    candidates = (_clean(session.machine_id), _clean(session.machine_record_id))
    return any(candidate in machine_ids for candidate in candidates if candidate)


def _compare_columns(a: _Column, b: _Column) -> int:
    if a.machine_id and b.machine_id:
        diff = compare_machine_id(a.machine_id, b.machine_id)
        if diff:
            return diff
    elif a.machine_id:
        return -1
    elif b.machine_id:
        return 1
    return compare_text(a.user_name, b.user_name) or compare_text(a.work_description, b.work_description)


def column_hours(total_minutes: int, skip_break: bool, config: TimeCalcConfig) -> float:
    """Quarter-hour hours for one column-day, net of the fixed break when it applies."""
    minutes = total_minutes
    if config.enabled and config.break_minutes > 0 and not skip_break:
        minutes = max(0, minutes - config.break_minutes)
    return quarter_hour_hours(minutes)


async def build_site_report(
    sessions: Iterable[AttendanceSession],
    year: int,
    month: int,
    site: SiteSummary,
    *,
    machine_ids: Sequence[str] = (),
    resolver: BreakPolicyResolver,
    config: TimeCalcConfig | None = None,
) -> SiteReportResponse:
    config = config or get_time_calc_config()
    days = build_month_days(year, month)
    month_dates = {day.date for day in days}
    machine_filter = {m.strip() for m in machine_ids if m and m.strip()}
    policy_cache: dict[str, BreakPolicyResult] = {}

    columns: dict[str, _Column] = {}
    minutes_by_day: dict[tuple[str, str], int] = defaultdict(int)

    for session in sessions:
        if not session.is_completed or session.date not in month_dates:
            continue
        if not _matches_site(session, site.id, site.name):
            continue
        if not _matches_machine(session, machine_filter):
            continue

        minutes = session_minutes(session)
        if minutes <= 0 or minutes >= MAX_SESSION_MINUTES:
            continue

        work = _clean(session.work_description) or UNSET
        machine_id = _clean(session.machine_id)
        machine_name = _clean(session.machine_name)
        machine_key = machine_id or (f"name:{machine_name}" if machine_name else "machine:unknown")
        key = f"{session_user_key(session)}__{work}__{machine_key}"

        column = columns.get(key)
        if column is None:
            # policy looked up by name only, as the printed report always has
            policy_name = session.user_name or (str(session.user_id) if session.user_id is not None else None)
            applies = await resolver.break_applies(BreakPolicyIdentity(user_name=policy_name), policy_cache)
            column = columns[key] = _Column(
                key=key,
                user_record_id=session.user_record_id,
                user_name=_clean(session.user_name) or UNKNOWN_USER,
                work_description=work,
                machine_id=machine_id,
                machine_name=machine_name,
                skip_break=not applies,
            )
        else:
            if not column.machine_id and machine_id:
                column.machine_id = machine_id
            if not column.machine_name and machine_name:
                column.machine_name = machine_name

        minutes_by_day[(session.date, key)] += minutes

    ordered = sorted(columns.values(), key=cmp_to_key(_compare_columns))

    rows: list[DayRow] = []
    column_totals = [0.0] * len(ordered)
    for day in days:
        values = [
            column_hours(minutes_by_day[(day.date, c.key)], c.skip_break, config)
            if (day.date, c.key) in minutes_by_day
            else 0.0
            for c in ordered
        ]
        for index, value in enumerate(values):
            column_totals[index] += value
        rows.append(
            DayRow(
                date=day.date,
                day=day.day,
                dow=day.weekday_ja,
                values=values,
                total=sum(values),
            )
        )

    report_columns = [
        ReportColumn(
            key=c.key,
            user_record_id=c.user_record_id,
            user_name=c.user_name,
            work_description=c.work_description,
            machine_id=c.machine_id,
            machine_name=c.machine_name,
            machine_ids=[c.machine_id] if c.machine_id else [],
            machine_names=[c.machine_name] if c.machine_name else [],
            total_hours=total,
        )
        for c, total in zip(ordered, column_totals)
    ]

    logger.debug("Site report %s %04d-%02d: %d columns", site.id, year, month, len(report_columns))
    return SiteReportResponse(
        year=year,
        month=month,
        site=site,
        columns=report_columns,
        days=rows,
        grand_total=sum(row.total for row in rows),
    )
