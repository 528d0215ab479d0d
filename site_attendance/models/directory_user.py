"""
DirectoryUser model: the user directory consulted for display names,
numeric ids and the per-person break-deduction exemption.
"""

from __future__ import annotations

from sqlalchemy import Boolean, Column, Integer, String

from site_attendance.db.base import Base


class DirectoryUser(Base):
    __tablename__ = "directory_users"

    record_id: str = Column(String(64), primary_key=True)  # type: ignore[assignment]
    user_id: int | None = Column(Integer, nullable=True, index=True)  # type: ignore[assignment]
    name: str | None = Column(String(200), nullable=True, index=True)  # type: ignore[assignment]
    username: str | None = Column(String(100), nullable=True)  # type: ignore[assignment]
    exclude_break_deduction: bool = Column(  # type: ignore[assignment]
        Boolean, nullable=False, default=False, server_default="false"
    )
