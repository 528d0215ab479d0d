"""
Calendar helpers for month-based reports.

Every date boundary is computed against an explicit ``tzinfo`` so the
engine can be exercised with synthetic timestamps.
"""

from __future__ import annotations

import calendar
import re
from datetime import date, datetime, timezone, tzinfo

from pydantic import BaseModel

WEEKDAYS_JA = ("月", "火", "水", "木", "金", "土", "日")  # Monday first, as date.weekday()

_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")
_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class DaySpec(BaseModel):
    date: str
    day: int
    weekday_ja: str
    is_weekend: bool
    is_holiday: bool = False


def format_ymd(year: int, month: int, day: int) -> str:
    return f"{year:04d}-{month:02d}-{day:02d}"


def parse_month(value: str) -> tuple[int, int] | None:
    """Parse ``YYYY-MM``; return ``None`` when malformed or out of range."""
    match = _MONTH_RE.match(value.strip()) if value else None
    if not match:
        return None
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        return None
    return year, month


def is_valid_date_key(value: str | None) -> bool:
    if not value or not _DATE_RE.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def month_date_range(year: int, month: int) -> tuple[str, str]:
    return format_ymd(year, month, 1), format_ymd(year, month, days_in_month(year, month))


def build_month_days(year: int, month: int) -> list[DaySpec]:
    days = []
    for day in range(1, days_in_month(year, month) + 1):
        weekday = date(year, month, day).weekday()
        days.append(
            DaySpec(
                date=format_ymd(year, month, day),
                day=day,
                weekday_ja=WEEKDAYS_JA[weekday],
                is_weekend=weekday >= 5,
            )
        )
    return days


def ensure_utc(dt: datetime) -> datetime:
    """Normalise a potentially-naive timestamp to UTC-aware."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def to_utc(dt: datetime, tz: tzinfo) -> datetime:
    """UTC instant of *dt*; a naive value is wall-clock time in *tz*."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=tz)
    return dt.astimezone(timezone.utc)


def to_date_key(dt: datetime, tz: tzinfo) -> str:
    """Site-local calendar date of *dt* as ``YYYY-MM-DD``."""
    return ensure_utc(dt).astimezone(tz).strftime("%Y-%m-%d")
