"""Builders and in-memory collaborators shared by the engine tests."""

from datetime import datetime
from zoneinfo import ZoneInfo

from sqlalchemy.exc import OperationalError

from site_attendance.schemas.session import AttendanceSession
from site_attendance.services.break_policy import DirectoryEntry

JST = ZoneInfo("Asia/Tokyo")


class InMemoryDirectory:
    """UserDirectory backed by a list; records every lookup."""

    def __init__(self, entries: list[DirectoryEntry] | None = None, failing: set[str] | None = None) -> None:
        self.entries = list(entries or [])
        self.failing = set(failing or ())
        self.calls: list[tuple[str, object]] = []
        self.resets = 0

    async def find_by_record_id(self, record_id: str) -> DirectoryEntry | None:
        self.calls.append(("record_id", record_id))
        return next((e for e in self.entries if e.record_id == record_id), None)

    async def find_by_user_id(self, user_id: int) -> DirectoryEntry | None:
        self.calls.append(("user_id", user_id))
        return next((e for e in self.entries if e.user_id == user_id), None)

    async def find_by_user_name(self, user_name: str) -> list[DirectoryEntry]:
        self.calls.append(("user_name", user_name))
        wanted = user_name.strip().lower()
        return [e for e in self.entries if (e.name or "").strip().lower() == wanted]

    async def find_many_by_record_id(self, record_ids) -> list[DirectoryEntry]:
        self.calls.append(("record_ids", tuple(record_ids)))
        if any(record_id in self.failing for record_id in record_ids):
            raise OperationalError("SELECT directory_users", {}, ConnectionError("connection reset"))
        return [e for e in self.entries if e.record_id in record_ids]

    async def reset(self) -> None:
        self.resets += 1


def jst(date: str, hhmm: str) -> datetime:
    hour, minute = (int(part) for part in hhmm.split(":"))
    return datetime.fromisoformat(date).replace(hour=hour, minute=minute, tzinfo=JST)


def make_session(
    session_id: str,
    date: str,
    start: str | None = None,
    end: str | None = None,
    **overrides,
) -> AttendanceSession:
    """Closed session on *date* from *start* to *end* (HH:MM, site-local)."""
    start_dt = jst(date, start) if start else None
    end_dt = jst(date, end) if end else None
    duration = None
    if start_dt and end_dt and end_dt > start_dt:
        duration = (end_dt - start_dt).total_seconds() / 60
    fields = {
        "id": session_id,
        "date": date,
        "start": start_dt,
        "end": end_dt,
        "duration_min": duration,
        "status": "closed",
        "status_raw": "close",
    }
    fields.update(overrides)
    return AttendanceSession(**fields)
