"""Pydantic schemas for the site × machine monthly pivot."""

from __future__ import annotations

from pydantic import BaseModel, Field


class SiteSummary(BaseModel):
    id: str
    name: str = ""
    client: str = ""


class ReportColumn(BaseModel):
    key: str
    user_record_id: str | None = None
    user_name: str
    work_description: str
    machine_id: str | None = None
    machine_name: str | None = None
    machine_ids: list[str] = Field(default_factory=list)
    machine_names: list[str] = Field(default_factory=list)
    total_hours: float = 0.0


class DayRow(BaseModel):
    date: str
    day: int
    dow: str
    values: list[float]
    total: float = 0.0


class SiteReportResponse(BaseModel):
    year: int
    month: int
    site: SiteSummary
    columns: list[ReportColumn]
    days: list[DayRow]
    grand_total: float = 0.0
