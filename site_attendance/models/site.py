"""
Site model: construction sites sessions are attributed to.
"""

from __future__ import annotations

from sqlalchemy import Column, String

from site_attendance.db.base import Base


class Site(Base):
    __tablename__ = "sites"

    record_id: str = Column(String(64), primary_key=True)  # type: ignore[assignment]
    name: str = Column(String(200), nullable=False)  # type: ignore[assignment]
    client: str | None = Column(String(200), nullable=True)  # type: ignore[assignment]
