"""
Site × machine monthly pivot and its CSV export.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from site_attendance.api.v1.deps import get_break_policy_resolver, get_db, get_time_calc
from site_attendance.schemas.site_report import SiteReportResponse
from site_attendance.services.break_policy import BreakPolicyResolver
from site_attendance.services.export import iter_site_report_csv
from site_attendance.services.reports import get_site_report
from site_attendance.services.timecalc import TimeCalcConfig

router = APIRouter(tags=["site-reports"])


def _machine_ids(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


@router.get("/reports/sites", response_model=SiteReportResponse)
async def site_report(
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=1, le=12),
    site_id: str = Query(..., min_length=1),
    machine_ids: str | None = Query(default=None, description="Comma-separated machine ids"),
    db: AsyncSession = Depends(get_db),
    resolver: BreakPolicyResolver = Depends(get_break_policy_resolver),
    config: TimeCalcConfig = Depends(get_time_calc),
) -> SiteReportResponse:
    return await get_site_report(
        db,
        resolver,
        year=year,
        month=month,
        site_id=site_id,
        machine_ids=_machine_ids(machine_ids),
        config=config,
    )


@router.get("/reports/sites/csv")
async def site_report_csv(
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=1, le=12),
    site_id: str = Query(..., min_length=1),
    machine_ids: str | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
    resolver: BreakPolicyResolver = Depends(get_break_policy_resolver),
    config: TimeCalcConfig = Depends(get_time_calc),
) -> StreamingResponse:
    """Export the site pivot as a CSV file download."""
    report = await get_site_report(
        db,
        resolver,
        year=year,
        month=month,
        site_id=site_id,
        machine_ids=_machine_ids(machine_ids),
        config=config,
    )
    return StreamingResponse(
        iter_site_report_csv(report),
        media_type="text/csv",
        headers={
            "Content-Disposition": f"attachment; filename=site_{site_id}_{year:04d}-{month:02d}.csv"
        },
    )
