"""
Report use cases: validate parameters, fetch sessions through the
collaborators, and hand them to the engine.

If an upstream read fails the whole request fails; no partial report
is ever returned.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from site_attendance.core.config import settings
from site_attendance.core.exceptions import InvalidMonthError, InvalidParamsError, SiteNotFoundError
from site_attendance.repositories.sessions import SessionQuery, fetch_sessions
from site_attendance.repositories.sites import get_site, list_sites
from site_attendance.schemas.attendance import DayDetailResponse, DayDetailUser, MonthlyAttendanceResponse
from site_attendance.schemas.session import AttendanceSession, SessionRead
from site_attendance.schemas.site_report import SiteReportResponse, SiteSummary
from site_attendance.schemas.user_report import ReportItem, UserDaysResponse
from site_attendance.services.break_policy import BreakPolicyIdentity, BreakPolicyResolver
from site_attendance.services.daily import compute_daily_attendance
from site_attendance.services.dates import is_valid_date_key, month_date_range, parse_month
from site_attendance.services.monthly import aggregate_monthly_attendance, build_roster
from site_attendance.services.site_report import build_site_report
from site_attendance.services.timecalc import TimeCalcConfig
from site_attendance.services.user_report import group_report_rows_by_date

logger = logging.getLogger(__name__)


def _first(sessions: Sequence[AttendanceSession], attr: str):
    return next((getattr(s, attr) for s in sessions if getattr(s, attr)), None)


async def resolve_site_name(db: AsyncSession, site_id: str | None, site_name: str | None) -> str | None:
    """Explicit name wins; otherwise the name of the site with *site_id*."""
    if site_name and site_name.strip():
        return site_name.strip()
    if not site_id:
        return None
    site = await get_site(db, site_id)
    if site is None:
        raise SiteNotFoundError(site_id)
    return site.name


# ── Monthly matrix ─────────────────────────────────────────────────
async def get_monthly_attendance(
    db: AsyncSession,
    resolver: BreakPolicyResolver,
    *,
    month: str,
    site_id: str | None = None,
    site_name: str | None = None,
    user_id: int | None = None,
    machine_id: str | None = None,
    config: TimeCalcConfig | None = None,
) -> MonthlyAttendanceResponse:
    parsed = parse_month(month)
    if parsed is None:
        raise InvalidMonthError()
    year, month_number = parsed
    start_date, end_date = month_date_range(year, month_number)

    resolved_site = await resolve_site_name(db, site_id, site_name)
    sessions = await fetch_sessions(
        db,
        SessionQuery(
            start_date=start_date,
            end_date=end_date,
            user_id=user_id,
            site_id=site_id,
            site_name=resolved_site,
            machine_id=machine_id,
        ),
    )
    return await aggregate_monthly_attendance(
        sessions,
        build_roster(sessions),
        year,
        month_number,
        resolver=resolver,
        config=config,
        overtime_threshold_minutes=settings.OVERTIME_THRESHOLD_MINUTES,
    )


# ── Day detail ─────────────────────────────────────────────────────
async def get_day_detail(
    db: AsyncSession,
    resolver: BreakPolicyResolver,
    *,
    date: str,
    user_id: int,
    site_id: str | None = None,
    site_name: str | None = None,
    machine_id: str | None = None,
    config: TimeCalcConfig | None = None,
) -> DayDetailResponse:
    if not is_valid_date_key(date):
        raise InvalidParamsError("date must be YYYY-MM-DD format", code="INVALID_DATE")

    resolved_site = await resolve_site_name(db, site_id, site_name)
    sessions = await fetch_sessions(
        db,
        SessionQuery(
            start_date=date,
            end_date=date,
            user_id=user_id,
            site_id=site_id,
            site_name=resolved_site,
            machine_id=machine_id,
        ),
    )
    breaks_apply = await resolver.break_applies(
        BreakPolicyIdentity(
            user_record_id=_first(sessions, "user_record_id"),
            user_id=user_id,
            user_name=_first(sessions, "user_name"),
        )
    )
    calculation = compute_daily_attendance(
        sessions,
        skip_standard_break_deduction=not breaks_apply,
        config=config,
    )
    calculation.date = date
    return DayDetailResponse(
        user=DayDetailUser(user_id=user_id, name=_first(sessions, "user_name")),
        date=date,
        sessions=[SessionRead.from_session(s) for s in sessions],
        calculation=calculation,
    )


# ── Site pivot ─────────────────────────────────────────────────────
async def get_site_report(
    db: AsyncSession,
    resolver: BreakPolicyResolver,
    *,
    year: int,
    month: int,
    site_id: str,
    machine_ids: Sequence[str] = (),
    config: TimeCalcConfig | None = None,
) -> SiteReportResponse:
    if not 1 <= month <= 12:
        raise InvalidMonthError("month must be between 1 and 12")

    site = SiteSummary(id=site_id)
    try:
        found = await get_site(db, site_id)
    except SQLAlchemyError as exc:
        logger.warning("Site report: failed to load site %s: %s", site_id, exc)
        await db.rollback()
        found = None
    if found is not None:
        site = SiteSummary(id=site_id, name=found.name, client=found.client or "")

    start_date, end_date = month_date_range(year, month)
    sessions = await fetch_sessions(db, SessionQuery(start_date=start_date, end_date=end_date))
    return await build_site_report(
        sessions,
        year,
        month,
        site,
        machine_ids=machine_ids,
        resolver=resolver,
        config=config,
    )


# ── Per-user day groups ────────────────────────────────────────────
def _report_item(session: AttendanceSession, breaks_apply: bool, clients: dict[str, str]) -> ReportItem:
    return ReportItem(
        record_id=session.id,
        date=session.date or "",
        site_name=session.site_name,
        client_name=clients.get(session.site_record_id or ""),
        work_description=session.work_description,
        machine_name=session.machine_name,
        duration_minutes=session.duration_min,
        start=session.start,
        end=session.end,
        break_policy_applied=breaks_apply,
    )


async def get_user_day_groups(
    db: AsyncSession,
    resolver: BreakPolicyResolver,
    *,
    user_id: int | None = None,
    user_name: str | None = None,
    month: str | None = None,
    config: TimeCalcConfig | None = None,
) -> UserDaysResponse:
    if user_id is None and not (user_name and user_name.strip()):
        raise InvalidParamsError("user_id or user_name is required")

    if month:
        parsed = parse_month(month)
        if parsed is None:
            raise InvalidMonthError()
        start_date, end_date = month_date_range(*parsed)
    else:
        start_date, end_date = "0000-01-01", "9999-12-31"

    sessions = await fetch_sessions(
        db,
        SessionQuery(start_date=start_date, end_date=end_date, user_id=user_id, user_name=user_name),
    )
    completed = [s for s in sessions if s.is_completed]

    breaks_apply = await resolver.break_applies(
        BreakPolicyIdentity(
            user_record_id=_first(completed, "user_record_id"),
            user_id=user_id,
            user_name=user_name or _first(completed, "user_name"),
        )
    )
    clients = {site.record_id: site.client for site in await list_sites(db) if site.client}
    groups = group_report_rows_by_date(
        [_report_item(s, breaks_apply, clients) for s in completed],
        config=config,
        break_minutes=settings.REPORT_BREAK_MINUTES,
        standard_workday_minutes=settings.STANDARD_WORKDAY_MINUTES,
    )
    return UserDaysResponse(
        user_id=user_id,
        user_name=user_name or _first(completed, "user_name"),
        month=month,
        break_policy_applied=breaks_apply,
        groups=groups,
    )
