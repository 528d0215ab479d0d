"""
WorkSession model: one clock-in → clock-out record as kept by the
tabular store.  Rows are written by the import endpoint and read by the
session collaborator; the engine never mutates them.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Float, Index, Integer, String

from site_attendance.db.base import Base


class WorkSession(Base):
    __tablename__ = "work_sessions"
    __table_args__ = (Index("ix_work_sessions_date_user", "date", "user_id"),)

    id: str = Column(String(64), primary_key=True)  # type: ignore[assignment]
    date: str = Column(String(10), nullable=False, index=True)  # type: ignore[assignment]  # YYYY-MM-DD
    start: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]
    end: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]
    duration_min: float | None = Column(Float, nullable=True)  # type: ignore[assignment]
    status: str | None = Column(String(30), nullable=True)  # type: ignore[assignment]

    user_id: int | None = Column(Integer, nullable=True, index=True)  # type: ignore[assignment]
    user_record_id: str | None = Column(String(64), nullable=True)  # type: ignore[assignment]
    user_name: str | None = Column(String(200), nullable=True)  # type: ignore[assignment]

    site_record_id: str | None = Column(String(64), nullable=True)  # type: ignore[assignment]
    site_name: str | None = Column(String(200), nullable=True)  # type: ignore[assignment]
    machine_id: str | None = Column(String(64), nullable=True)  # type: ignore[assignment]
    machine_record_id: str | None = Column(String(64), nullable=True)  # type: ignore[assignment]
    machine_name: str | None = Column(String(200), nullable=True)  # type: ignore[assignment]
    work_description: str | None = Column(String(500), nullable=True)  # type: ignore[assignment]

    imported_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
