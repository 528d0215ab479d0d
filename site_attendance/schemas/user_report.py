"""Pydantic schemas for per-user day groups."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class ReportItem(BaseModel):
    record_id: str
    date: str
    site_name: str | None = None
    client_name: str | None = None
    work_description: str | None = None
    machine_name: str | None = None
    duration_minutes: float | None = None
    minutes: float | None = None
    start: datetime | None = None
    end: datetime | None = None
    break_policy_applied: bool = True


class ReportItemSplit(ReportItem):
    raw_minutes: int = 0
    is_break_target: bool = False
    working_minutes: int = 0
    overtime_minutes: int = 0


class UserDayGroup(BaseModel):
    date: str
    date_label: str
    items: list[ReportItemSplit] = Field(default_factory=list)
    total_working_minutes: int = 0
    total_overtime_minutes: int = 0
    span_start: datetime | None = None
    span_end: datetime | None = None
    span_working_minutes: int = 0
    span_overtime_minutes: int = 0


class UserDaysResponse(BaseModel):
    user_id: int | None = None
    user_name: str | None = None
    month: str | None = None
    break_policy_applied: bool = True
    groups: list[UserDayGroup]
