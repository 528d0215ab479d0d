"""
Session collaborator: reads work sessions from the store, re-checks
every filter locally, and fills in missing user names and ids from the
directory.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from pydantic import BaseModel
from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from site_attendance.core.config import settings
from site_attendance.core.retry import with_retry
from site_attendance.models.work_session import WorkSession
from site_attendance.repositories.directory import SqlUserDirectory
from site_attendance.schemas.session import AttendanceSession
from site_attendance.services.break_policy import DirectoryEntry
from site_attendance.services.dates import ensure_utc
from site_attendance.services.records import normalize_session_status
from site_attendance.services.sorting import same_text

logger = logging.getLogger(__name__)


class SessionQuery(BaseModel):
    start_date: str
    end_date: str
    user_id: int | None = None
    user_name: str | None = None
    site_id: str | None = None
    site_name: str | None = None
    machine_id: str | None = None


# ── Conversion ─────────────────────────────────────────────────────
def to_attendance_session(row: WorkSession) -> AttendanceSession:
    return AttendanceSession(
        id=row.id,
        date=row.date,
        start=row.start,
        end=row.end,
        duration_min=row.duration_min,
        user_id=row.user_id,
        user_record_id=row.user_record_id,
        user_name=row.user_name,
        site_record_id=row.site_record_id,
        site_name=row.site_name,
        machine_id=row.machine_id,
        machine_record_id=row.machine_record_id,
        machine_name=row.machine_name,
        work_description=row.work_description,
        status=normalize_session_status(row.status),
        status_raw=row.status,
    )


def to_work_session(session: AttendanceSession) -> WorkSession:
    return WorkSession(
        id=session.id,
        date=session.date,
        start=session.start,
        end=session.end,
        duration_min=session.duration_min,
        status=session.status_raw,
        user_id=session.user_id,
        user_record_id=session.user_record_id,
        user_name=session.user_name,
        site_record_id=session.site_record_id,
        site_name=session.site_name,
        machine_id=session.machine_id,
        machine_record_id=session.machine_record_id,
        machine_name=session.machine_name,
        work_description=session.work_description,
    )


# ── Local filtering ────────────────────────────────────────────────
def matches_query(session: AttendanceSession, query: SessionQuery) -> bool:
    if not session.date or not (query.start_date <= session.date <= query.end_date):
        return False
    if query.user_id is not None and session.user_id != query.user_id:
        return False
    if query.user_name and not same_text(session.user_name, query.user_name):
        return False
    if query.site_id or query.site_name:
        by_id = bool(query.site_id) and session.site_record_id == query.site_id
        if not by_id and not same_text(session.site_name, query.site_name):
            return False
    if query.machine_id:
        wanted = query.machine_id.strip()
        if wanted not in (session.machine_id, session.machine_record_id):
            return False
    return True


def _sort_key(session: AttendanceSession) -> tuple[str, float, str]:
    start = ensure_utc(session.start).timestamp() if session.start else float("inf")
    return (session.date or "", start, session.id)


# ── Hydration ──────────────────────────────────────────────────────
def _batches(items: Sequence[str], size: int) -> Iterable[Sequence[str]]:
    for index in range(0, len(items), size):
        yield items[index : index + size]


async def hydrate_identities(
    sessions: list[AttendanceSession],
    directory: SqlUserDirectory,
    batch_size: int | None = None,
) -> list[AttendanceSession]:
    """Fill missing names/ids from the directory; failed batches are skipped."""
    batch_size = batch_size or settings.DIRECTORY_BATCH_SIZE
    pending = sorted(
        {
            s.user_record_id
            for s in sessions
            if s.user_record_id and (not s.user_name or s.user_id is None)
        }
    )
    if not pending:
        return sessions

    found: dict[str, DirectoryEntry] = {}
    for batch in _batches(pending, batch_size):
        try:
            entries = await directory.find_many_by_record_id(batch)
        except SQLAlchemyError as exc:
            logger.warning("Directory hydration failed for %d users: %s", len(batch), exc)
            await directory.reset()
            continue
        found.update((entry.record_id, entry) for entry in entries)

    hydrated = []
    for session in sessions:
        entry = found.get(session.user_record_id or "")
        if entry is None:
            hydrated.append(session)
            continue
        hydrated.append(
            session.model_copy(
                update={
                    "user_name": session.user_name or entry.name,
                    "user_id": session.user_id if session.user_id is not None else entry.user_id,
                }
            )
        )
    return hydrated


# ── Fetch / persist ────────────────────────────────────────────────
async def fetch_sessions(db: AsyncSession, query: SessionQuery) -> list[AttendanceSession]:
    stmt = select(WorkSession).where(
        WorkSession.date >= query.start_date,
        WorkSession.date <= query.end_date,
    )
    if query.user_id is not None:
        # rows without an id may still match once hydrated
        stmt = stmt.where(or_(WorkSession.user_id == query.user_id, WorkSession.user_id.is_(None)))
    if query.user_name and query.user_name.strip():
        # nameless rows may still match once hydrated; exact matching happens below
        wanted = query.user_name.strip().lower()
        stmt = stmt.where(
            or_(func.lower(func.trim(WorkSession.user_name)) == wanted, WorkSession.user_name.is_(None))
        )
    if query.machine_id:
        stmt = stmt.where(
            or_(
                WorkSession.machine_id == query.machine_id,
                WorkSession.machine_record_id == query.machine_id,
            )
        )

    result = await with_retry(lambda: db.execute(stmt), label="session fetch", on_retry=db.rollback)
    sessions = [to_attendance_session(row) for row in result.scalars().all()]
    sessions = await hydrate_identities(sessions, SqlUserDirectory(db))
    sessions = [s for s in sessions if matches_query(s, query)]
    sessions.sort(key=_sort_key)
    logger.debug("Fetched %d sessions for %s..%s", len(sessions), query.start_date, query.end_date)
    return sessions


async def save_sessions(db: AsyncSession, sessions: Sequence[AttendanceSession]) -> int:
    """Insert or replace sessions by id."""
    for session in sessions:
        await db.merge(to_work_session(session))
    await db.commit()
    return len(sessions)
