"""
CSV renderings of the monthly matrix and the site pivot.

Both are generators of text lines so they can be fed straight into a
``StreamingResponse``.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Iterator, Sequence

from site_attendance.schemas.attendance import MonthlyAttendanceResponse
from site_attendance.schemas.site_report import SiteReportResponse


def _line(values: Sequence[object]) -> str:
    buffer = io.StringIO()
    csv.writer(buffer, lineterminator="\n").writerow(values)
    return buffer.getvalue()


def _hours(value: float) -> str:
    return f"{value:.2f}"


def iter_monthly_csv(report: MonthlyAttendanceResponse) -> Iterator[str]:
    yield _line(
        ["user_id", "name"]
        + [day.date for day in report.days]
        + ["total_hours", "work_days", "break_deduct_min", "overtime_hours"]
    )
    for row in report.rows:
        cells = [row.daily[day.date] for day in report.days]
        yield _line(
            [row.user_id if row.user_id is not None else "", row.name]
            + [_hours(cell.hours) + ("!" if cell.has_anomaly else "") for cell in cells]
            + [
                _hours(row.totals.hours),
                row.totals.work_days,
                row.totals.break_deduct_min,
                _hours(row.totals.overtime_hours),
            ]
        )
    yield _line(
        ["", "total"]
        + [_hours(report.day_totals[day.date].hours) for day in report.days]
        + [_hours(sum(row.totals.hours for row in report.rows)), "", "", ""]
    )


def iter_site_report_csv(report: SiteReportResponse) -> Iterator[str]:
    def header(column) -> str:
        parts = [column.user_name, column.work_description]
        if column.machine_id or column.machine_name:
            parts.append(column.machine_id or column.machine_name)
        return " / ".join(parts)

    yield _line(["date", "dow"] + [header(c) for c in report.columns] + ["total"])
    for day in report.days:
        yield _line([day.date, day.dow] + [_hours(v) for v in day.values] + [_hours(day.total)])
    yield _line(["total", ""] + [_hours(c.total_hours) for c in report.columns] + [_hours(report.grand_total)])
