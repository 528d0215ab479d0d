"""
Adapter from loosely-typed tabular-store records to ``AttendanceSession``.

Store records carry fields under several spellings and casings, and
lookup columns arrive as lists or ``{"name": ...}`` objects.  All of
that is resolved here, once; nothing downstream looks at field names.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone, tzinfo
from typing import Any

from site_attendance.schemas.session import AttendanceSession, SessionStatus
from site_attendance.services.dates import is_valid_date_key, to_date_key, to_utc
from site_attendance.services.timecalc import round_half_up

_CLOSED_STATUSES = {"close", "closed"}

_START_FIELDS = ("start", "start (JST)", "startAt")
_END_FIELDS = ("end", "end (JST)", "endAt")
_SITE_NAME_FIELDS = ("siteName", "site name", "name (from site)")
_WORK_FIELDS = (
    "workDescription",
    "work description",
    "workDescription (from work)",
    "description (from work)",
)
_USER_NAME_FIELDS = (
    "name (from user)",
    "user name",
    "userName",
    "username",
    "ユーザー名",
    "ユーザー名 (from user)",
    "display name",
    "displayName",
)
_MACHINE_ID_FIELDS = ("machineId", "machine id", "machineId (from machine)")
_MACHINE_NAME_FIELDS = ("machineName", "machine name", "machineName (from machine)")


def normalize_session_status(value: Any) -> SessionStatus:
    if value is None:
        return "unknown"
    if not isinstance(value, str):
        return "other"
    normalized = value.strip().lower()
    if not normalized:
        return "unknown"
    if normalized in _CLOSED_STATUSES:
        return "closed"
    if normalized == "open":
        return "open"
    return "other"


# ── Primitive coercion ─────────────────────────────────────────────
def as_string(value: Any) -> str | None:
    if isinstance(value, str):
        trimmed = value.strip()
        return trimmed or None
    if isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value):
        return str(int(value)) if float(value).is_integer() else str(value)
    return None


def as_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    if isinstance(value, str) and value.strip():
        try:
            parsed = float(value)
        except ValueError:
            return None
        return parsed if math.isfinite(parsed) else None
    return None


def as_int(value: Any) -> int | None:
    number = as_number(value)
    if number is None or not number.is_integer():
        return None
    return int(number)


def as_datetime(value: Any, tz: tzinfo = timezone.utc) -> datetime | None:
    """Parse an ISO timestamp to UTC; naive values are local to *tz*."""
    if isinstance(value, datetime):
        return to_utc(value, tz)
    text = as_string(value) if isinstance(value, str) else None
    if not text:
        return None
    try:
        return to_utc(datetime.fromisoformat(text.replace("Z", "+00:00")), tz)
    except ValueError:
        return None


# ── Field lookup ───────────────────────────────────────────────────
def _field(fields: dict[str, Any], name: str) -> Any:
    target = name.strip().lower()
    for key, value in fields.items():
        if key.strip().lower() == target:
            return value
    return None


def _lookup_text(value: Any) -> str | None:
    direct = as_string(value) if isinstance(value, str) else None
    if direct:
        return direct
    if isinstance(value, list):
        for entry in value:
            candidate = _lookup_text(entry)
            if candidate:
                return candidate
        return None
    if isinstance(value, dict):
        for key in ("name", "value", "text", "label"):
            if value.get(key) is not None:
                return _lookup_text(value[key])
    return None


def _first_text(fields: dict[str, Any], names: tuple[str, ...]) -> str | None:
    for name in names:
        text = _lookup_text(_field(fields, name))
        if text:
            return text
    return None


def _first_datetime(fields: dict[str, Any], names: tuple[str, ...], tz: tzinfo) -> datetime | None:
    for name in names:
        parsed = as_datetime(_field(fields, name), tz)
        if parsed:
            return parsed
    return None


def _first_id(value: Any) -> str | None:
    if isinstance(value, list):
        for entry in value:
            if isinstance(entry, str) and entry.strip():
                return entry.strip()
        return None
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _user_name(fields: dict[str, Any]) -> str | None:
    direct = _first_text(fields, _USER_NAME_FIELDS)
    if direct:
        return direct
    for key, value in fields.items():
        if not isinstance(value, str):
            continue
        lowered = key.strip().lower()
        if "user" in lowered and ("name" in lowered or "display" in lowered):
            candidate = as_string(value)
            if candidate:
                return candidate
    return None


def session_from_record(
    record_id: str,
    fields: dict[str, Any],
    tz: tzinfo,
) -> AttendanceSession | None:
    """Normalize one raw record; ``None`` when no calendar date can be found."""
    start = _first_datetime(fields, _START_FIELDS, tz)
    end = _first_datetime(fields, _END_FIELDS, tz)

    date_key = as_string(_field(fields, "date"))
    if date_key and "T" in date_key:
        parsed = as_datetime(date_key, tz)
        date_key = to_date_key(parsed, tz) if parsed else None
    if not is_valid_date_key(date_key):
        date_key = to_date_key(start, tz) if start else None
    if date_key is None:
        return None

    duration = as_number(_field(fields, "durationMin"))
    if duration is None and start and end and end > start:
        duration = float(round_half_up((end - start).total_seconds() / 60))

    user_field = _field(fields, "user")
    user_id = as_int(user_field)
    if user_id is None:
        user_id = as_int(_field(fields, "userId"))
    user_record_id = _first_id(user_field) if not isinstance(user_field, (int, float)) else None
    if user_record_id is not None and as_int(user_record_id) is not None:
        # a bare numeric string in the link column is an id, not a reference
        user_id = user_id if user_id is not None else as_int(user_record_id)
        user_record_id = None

    machine_id = _first_text(fields, _MACHINE_ID_FIELDS)
    if machine_id is None:
        machine_id = as_string(_field(fields, "machineId"))

    raw_status = _field(fields, "status")
    status_text = _lookup_text(raw_status)

    return AttendanceSession(
        id=record_id,
        date=date_key,
        start=start,
        end=end,
        duration_min=duration,
        user_id=user_id,
        user_record_id=user_record_id,
        user_name=_user_name(fields),
        site_record_id=_first_id(_field(fields, "site")),
        site_name=_first_text(fields, _SITE_NAME_FIELDS),
        machine_id=machine_id,
        machine_record_id=_first_id(_field(fields, "machine")),
        machine_name=_first_text(fields, _MACHINE_NAME_FIELDS),
        work_description=_first_text(fields, _WORK_FIELDS),
        status=normalize_session_status(status_text if status_text is not None else raw_status),
        status_raw=status_text,
    )
