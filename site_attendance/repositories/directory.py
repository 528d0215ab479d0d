"""
SQL-backed user directory for break-policy resolution and name
hydration.
"""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from site_attendance.core.retry import with_retry
from site_attendance.models.directory_user import DirectoryUser
from site_attendance.services.break_policy import DirectoryEntry


def _entry(row: DirectoryUser) -> DirectoryEntry:
    return DirectoryEntry(
        record_id=row.record_id,
        user_id=row.user_id,
        name=row.name,
        exclude_break_deduction=bool(row.exclude_break_deduction),
    )


class SqlUserDirectory:
    """``UserDirectory`` over the ``directory_users`` table."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def reset(self) -> None:
        await self._db.rollback()

    async def _scalars(self, stmt) -> list[DirectoryUser]:
        result = await with_retry(
            lambda: self._db.execute(stmt),
            label="directory lookup",
            on_retry=self._db.rollback,
        )
        return list(result.scalars().all())

    async def find_by_record_id(self, record_id: str) -> DirectoryEntry | None:
        rows = await self._scalars(select(DirectoryUser).where(DirectoryUser.record_id == record_id))
        return _entry(rows[0]) if rows else None

    async def find_by_user_id(self, user_id: int) -> DirectoryEntry | None:
        rows = await self._scalars(
            select(DirectoryUser).where(DirectoryUser.user_id == user_id).order_by(DirectoryUser.record_id).limit(1)
        )
        return _entry(rows[0]) if rows else None

    async def find_by_user_name(self, user_name: str) -> list[DirectoryEntry]:
        name = user_name.strip().lower()
        if not name:
            return []
        rows = await self._scalars(
            select(DirectoryUser).where(func.lower(func.trim(DirectoryUser.name)) == name)
        )
        return [_entry(row) for row in rows]

    async def find_many_by_record_id(self, record_ids: Sequence[str]) -> list[DirectoryEntry]:
        if not record_ids:
            return []
        rows = await self._scalars(select(DirectoryUser).where(DirectoryUser.record_id.in_(list(record_ids))))
        return [_entry(row) for row in rows]
