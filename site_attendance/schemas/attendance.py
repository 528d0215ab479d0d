"""Pydantic schemas for daily and monthly attendance reports."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from site_attendance.schemas.session import SessionRead
from site_attendance.services.dates import DaySpec


# ── Daily summary ──────────────────────────────────────────────────
class AttendanceDaySummary(BaseModel):
    date: str
    active_minutes: int
    gross_minutes: int
    gap_minutes: int
    standard_break_minutes: int
    deduct_break_minutes: int
    net_minutes: int
    rounded_minutes: int
    rounded_hours: float
    sessions_count: int
    anomalies: list[str] = Field(default_factory=list)
    break_policy_applied: bool = True


class DayDetailUser(BaseModel):
    user_id: int
    name: str | None


class DayDetailResponse(BaseModel):
    user: DayDetailUser
    date: str
    sessions: list[SessionRead]
    calculation: AttendanceDaySummary


# ── Monthly matrix ─────────────────────────────────────────────────
class MonthlyDayCell(BaseModel):
    hours: float = 0.0
    minutes_rounded: int = 0
    break_deduct_min: int = 0
    sessions_count: int = 0
    has_anomaly: bool = False
    break_policy_applied: bool = True


class MonthlyTotals(BaseModel):
    hours: float = 0.0
    minutes_rounded: int = 0
    work_days: int = 0
    break_deduct_min: int = 0
    overtime_hours: float = 0.0


class MonthlyAttendanceRow(BaseModel):
    user_id: int | None
    user_record_id: str | None = None
    name: str
    daily: dict[str, MonthlyDayCell]
    totals: MonthlyTotals


class DayTotal(BaseModel):
    hours: float = 0.0
    minutes_rounded: int = 0


class MonthlyAttendanceResponse(BaseModel):
    month: str
    days: list[DaySpec]
    rows: list[MonthlyAttendanceRow]
    day_totals: dict[str, DayTotal]
    generated_at: datetime
