"""
Monthly attendance matrix, single-day detail and the matrix CSV export.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from site_attendance.api.v1.deps import get_break_policy_resolver, get_db, get_time_calc
from site_attendance.schemas.attendance import DayDetailResponse, MonthlyAttendanceResponse
from site_attendance.services.break_policy import BreakPolicyResolver
from site_attendance.services.export import iter_monthly_csv
from site_attendance.services.reports import get_day_detail, get_monthly_attendance
from site_attendance.services.timecalc import TimeCalcConfig

router = APIRouter(tags=["attendance"])


@router.get("/reports/attendance", response_model=MonthlyAttendanceResponse)
async def monthly_attendance(
    month: str = Query(..., description="YYYY-MM"),
    site_id: str | None = Query(default=None),
    site_name: str | None = Query(default=None),
    user_id: int | None = Query(default=None),
    machine_id: str | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
    resolver: BreakPolicyResolver = Depends(get_break_policy_resolver),
    config: TimeCalcConfig = Depends(get_time_calc),
) -> MonthlyAttendanceResponse:
    """User × day matrix with per-user totals and per-day column sums."""
    return await get_monthly_attendance(
        db,
        resolver,
        month=month,
        site_id=site_id,
        site_name=site_name,
        user_id=user_id,
        machine_id=machine_id,
        config=config,
    )


@router.get("/reports/attendance/day", response_model=DayDetailResponse)
async def attendance_day(
    date: str = Query(..., description="YYYY-MM-DD"),
    user_id: int = Query(...),
    site_id: str | None = Query(default=None),
    site_name: str | None = Query(default=None),
    machine_id: str | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
    resolver: BreakPolicyResolver = Depends(get_break_policy_resolver),
    config: TimeCalcConfig = Depends(get_time_calc),
) -> DayDetailResponse:
    """One user's sessions on one date and the calculation behind the figure."""
    return await get_day_detail(
        db,
        resolver,
        date=date,
        user_id=user_id,
        site_id=site_id,
        site_name=site_name,
        machine_id=machine_id,
        config=config,
    )


@router.get("/reports/attendance/csv")
async def monthly_attendance_csv(
    month: str = Query(..., description="YYYY-MM"),
    site_id: str | None = Query(default=None),
    site_name: str | None = Query(default=None),
    user_id: int | None = Query(default=None),
    machine_id: str | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
    resolver: BreakPolicyResolver = Depends(get_break_policy_resolver),
    config: TimeCalcConfig = Depends(get_time_calc),
) -> StreamingResponse:
    """Export the monthly matrix as a CSV file download."""
    report = await get_monthly_attendance(
        db,
        resolver,
        month=month,
        site_id=site_id,
        site_name=site_name,
        user_id=user_id,
        machine_id=machine_id,
        config=config,
    )
    return StreamingResponse(
        iter_monthly_csv(report),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename=attendance_{report.month}.csv"},
    )
