"""Pydantic schemas for normalized work sessions and raw record import."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

SessionStatus = Literal["closed", "open", "unknown", "other"]


# ── Normalized session (engine input) ──────────────────────────────
class AttendanceSession(BaseModel):
    id: str
    date: str | None
    start: datetime | None = None
    end: datetime | None = None
    duration_min: float | None = None

    user_id: int | None = None
    user_record_id: str | None = None
    user_name: str | None = None

    site_record_id: str | None = None
    site_name: str | None = None
    machine_id: str | None = None
    machine_record_id: str | None = None
    machine_name: str | None = None
    work_description: str | None = None

    status: SessionStatus = "unknown"
    status_raw: str | None = None

    @property
    def is_completed(self) -> bool:
        return self.status == "closed"


class SessionRead(BaseModel):
    session_id: str
    start: datetime | None
    end: datetime | None
    duration_min: float | None
    site_name: str | None
    machine_id: str | None
    machine_name: str | None
    work_description: str | None
    status: SessionStatus
    status_raw: str | None

    @classmethod
    def from_session(cls, session: AttendanceSession) -> SessionRead:
        return cls(
            session_id=session.id,
            start=session.start,
            end=session.end,
            duration_min=session.duration_min,
            site_name=session.site_name,
            machine_id=session.machine_id,
            machine_name=session.machine_name,
            work_description=session.work_description,
            status=session.status,
            status_raw=session.status_raw,
        )


# ── Raw tabular-store records ──────────────────────────────────────
class RawSessionRecord(BaseModel):
    id: str
    fields: dict[str, Any] = Field(default_factory=dict)

    @field_validator("id")
    @classmethod
    def _id(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Record id must not be empty")
        if len(v) > 64:
            raise ValueError("Record id must not exceed 64 characters")
        return v


class SessionImportRequest(BaseModel):
    records: list[RawSessionRecord]


class SessionImportResponse(BaseModel):
    success: bool
    imported: int
    skipped: list[str]
