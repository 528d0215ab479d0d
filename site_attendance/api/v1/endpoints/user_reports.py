"""
Per-user daily report rows.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from site_attendance.api.v1.deps import get_break_policy_resolver, get_db, get_time_calc
from site_attendance.schemas.user_report import UserDaysResponse
from site_attendance.services.break_policy import BreakPolicyResolver
from site_attendance.services.reports import get_user_day_groups
from site_attendance.services.timecalc import TimeCalcConfig

router = APIRouter(tags=["user-reports"])


@router.get("/reports/user-days", response_model=UserDaysResponse)
async def user_days(
    user_id: int | None = Query(default=None),
    user_name: str | None = Query(default=None),
    month: str | None = Query(default=None, description="YYYY-MM; all dates when omitted"),
    db: AsyncSession = Depends(get_db),
    resolver: BreakPolicyResolver = Depends(get_break_policy_resolver),
    config: TimeCalcConfig = Depends(get_time_calc),
) -> UserDaysResponse:
    return await get_user_day_groups(
        db,
        resolver,
        user_id=user_id,
        user_name=user_name,
        month=month,
        config=config,
    )
