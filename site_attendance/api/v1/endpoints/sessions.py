"""
Bulk import of raw tabular-store session records.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from site_attendance.api.v1.deps import get_db, get_site_cache
from site_attendance.core.config import settings
from site_attendance.repositories.sessions import save_sessions
from site_attendance.schemas.session import SessionImportRequest, SessionImportResponse
from site_attendance.schemas.site import SiteRead
from site_attendance.services.listing_cache import ListingCache
from site_attendance.services.records import session_from_record

router = APIRouter(tags=["sessions"])
logger = logging.getLogger(__name__)


@router.post("/sessions/import", response_model=SessionImportResponse)
async def import_sessions(
    payload: SessionImportRequest,
    db: AsyncSession = Depends(get_db),
    cache: ListingCache[list[SiteRead]] = Depends(get_site_cache),
) -> SessionImportResponse:
    """Normalize raw records once and store them; undatable records are skipped."""
    sessions = []
    skipped: list[str] = []
    for record in payload.records:
        session = session_from_record(record.id, record.fields, settings.tz)
        if session is None:
            skipped.append(record.id)
            continue
        sessions.append(session)

    imported = await save_sessions(db, sessions)
    cache.invalidate()
    logger.info("Imported %d sessions (%d skipped)", imported, len(skipped))
    return SessionImportResponse(success=True, imported=imported, skipped=skipped)
