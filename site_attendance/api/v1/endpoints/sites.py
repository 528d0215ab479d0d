"""
Site listing (cached) and site creation.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from site_attendance.api.v1.deps import get_db, get_site_cache
from site_attendance.repositories.sites import create_site, get_site, list_sites
from site_attendance.schemas.site import SiteCreate, SiteRead
from site_attendance.services.listing_cache import ListingCache

router = APIRouter(tags=["sites"])
logger = logging.getLogger(__name__)


@router.get("/sites", response_model=list[SiteRead])
async def sites_list(
    db: AsyncSession = Depends(get_db),
    cache: ListingCache[list[SiteRead]] = Depends(get_site_cache),
) -> list[SiteRead]:
    return await cache.get(lambda: list_sites(db))


@router.post("/sites", response_model=SiteRead, status_code=status.HTTP_201_CREATED)
async def sites_create(
    payload: SiteCreate,
    db: AsyncSession = Depends(get_db),
    cache: ListingCache[list[SiteRead]] = Depends(get_site_cache),
) -> SiteRead:
    if await get_site(db, payload.record_id) is not None:
        raise HTTPException(status_code=409, detail="Site already exists")
    try:
        site = await create_site(db, payload)
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail="Site already exists")
    cache.invalidate()
    logger.info("Site created: %s (%s)", site.name, site.record_id)
    return site
