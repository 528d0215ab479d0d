"""
Site collaborator: lookup by record id, full listing and creation.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from site_attendance.core.retry import with_retry
from site_attendance.models.site import Site
from site_attendance.schemas.site import SiteCreate, SiteRead


async def get_site(db: AsyncSession, record_id: str) -> SiteRead | None:
    site = await with_retry(lambda: db.get(Site, record_id), label="site lookup", on_retry=db.rollback)
    return SiteRead.model_validate(site) if site else None


async def list_sites(db: AsyncSession) -> list[SiteRead]:
    result = await with_retry(
        lambda: db.execute(select(Site).order_by(Site.name, Site.record_id)),
        label="site listing",
        on_retry=db.rollback,
    )
    return [SiteRead.model_validate(site) for site in result.scalars().all()]


async def create_site(db: AsyncSession, payload: SiteCreate) -> SiteRead:
    site = Site(record_id=payload.record_id, name=payload.name, client=payload.client)
    db.add(site)
    await db.commit()
    await db.refresh(site)
    return SiteRead.model_validate(site)
