"""
Per-user daily report rows.

Rows are grouped by date.  Within a day the longest item is treated as
the main work block and absorbs the lunch break; every item then gets
its own working/overtime split.  Separately, the day header is
computed from the span between the earliest start and the latest end.
The two figures are independent and may disagree when items overlap
or leave gaps.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from datetime import date as date_cls
from datetime import datetime

from site_attendance.schemas.user_report import ReportItem, ReportItemSplit, UserDayGroup
from site_attendance.services.daily import whole_minutes
from site_attendance.services.dates import WEEKDAYS_JA, ensure_utc
from site_attendance.services.timecalc import TimeCalcConfig, get_time_calc_config, round_half_up, round_minutes


def raw_item_minutes(item: ReportItem) -> int:
    """Explicit duration, else the start/end difference, else the minutes field."""
    if item.duration_minutes is not None:
        return max(0, round_half_up(item.duration_minutes))
    if item.start is not None and item.end is not None:
        return max(0, whole_minutes(ensure_utc(item.end) - ensure_utc(item.start)))
    if item.minutes is not None:
        return max(0, round_half_up(item.minutes))
    return 0


def split_working_overtime(
    minutes: int,
    standard_workday_minutes: int,
    config: TimeCalcConfig,
) -> tuple[int, int]:
    working_rounded = round_minutes(max(0, minutes), config)
    overtime = round_minutes(max(0, working_rounded - standard_workday_minutes), config)
    working = min(standard_workday_minutes, working_rounded - overtime)
    return max(0, working), overtime


def date_label(date_key: str) -> str:
    try:
        weekday = date_cls.fromisoformat(date_key).weekday()
    except ValueError:
        return date_key
    return f"{date_key} ({WEEKDAYS_JA[weekday]})"


def _break_target(items: list[ReportItem]) -> int | None:
    target, best = None, -1
    for index, item in enumerate(items):
        minutes = raw_item_minutes(item)
        if minutes > best:
            target, best = index, minutes
    return target


def _item_order(item: ReportItem) -> tuple[bool, float, str]:
    # undated items last
    if item.start is None:
        return (True, 0.0, item.record_id)
    return (False, ensure_utc(item.start).timestamp(), item.record_id)


def _day_span(
    items: list[ReportItem],
    break_minutes: int,
) -> tuple[datetime | None, datetime | None, int]:
    starts = [ensure_utc(i.start) for i in items if i.start is not None]
    ends = [ensure_utc(i.end) for i in items if i.end is not None]
    if not starts or not ends:
        return None, None, 0
    span_start, span_end = min(starts), max(ends)
    if span_end <= span_start:
        return span_start, span_end, 0
    return span_start, span_end, max(0, whole_minutes(span_end - span_start) - break_minutes)


def group_report_rows_by_date(
    items: Iterable[ReportItem],
    *,
    config: TimeCalcConfig | None = None,
    break_minutes: int = 90,
    standard_workday_minutes: int = 450,
) -> list[UserDayGroup]:
    config = config or get_time_calc_config()
    by_date: dict[str, list[ReportItem]] = defaultdict(list)
    for item in items:
        by_date[item.date].append(item)

    groups: list[UserDayGroup] = []
    for date_key in sorted(by_date):
        day_items = by_date[date_key]
        target = _break_target(day_items)
        target_applies = target is not None and day_items[target].break_policy_applied

        splits: list[ReportItemSplit] = []
        for index, item in enumerate(day_items):
            raw = raw_item_minutes(item)
            is_target = index == target
            deduct = break_minutes if is_target and item.break_policy_applied else 0
            working, overtime = split_working_overtime(raw - deduct, standard_workday_minutes, config)
            splits.append(
                ReportItemSplit(
                    **item.model_dump(),
                    raw_minutes=raw,
                    is_break_target=is_target,
                    working_minutes=working,
                    overtime_minutes=overtime,
                )
            )
        splits.sort(key=_item_order)

        span_start, span_end, span_minutes = _day_span(
            day_items, break_minutes if target_applies else 0
        )
        span_working, span_overtime = split_working_overtime(span_minutes, standard_workday_minutes, config)

        groups.append(
            UserDayGroup(
                date=date_key,
                date_label=date_label(date_key),
                items=splits,
                total_working_minutes=sum(s.working_minutes for s in splits),
                total_overtime_minutes=sum(s.overtime_minutes for s in splits),
                span_start=span_start,
                span_end=span_end,
                span_working_minutes=span_working,
                span_overtime_minutes=span_overtime,
            )
        )
    return groups
