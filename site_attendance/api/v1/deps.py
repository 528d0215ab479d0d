"""
FastAPI dependencies: database session, break-policy resolver,
time-calculation config and the site listing cache.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from site_attendance.core.config import settings
from site_attendance.db.session import async_session_factory
from site_attendance.repositories.directory import SqlUserDirectory
from site_attendance.schemas.site import SiteRead
from site_attendance.services.break_policy import BreakPolicyResolver
from site_attendance.services.listing_cache import ListingCache
from site_attendance.services.timecalc import TimeCalcConfig, get_time_calc_config

site_cache: ListingCache[list[SiteRead]] = ListingCache(ttl_seconds=settings.SITE_CACHE_TTL_SECONDS)


# ── Database session ────────────────────────────────────────────────
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


# ── Engine collaborators ────────────────────────────────────────────
def break_policy_enabled() -> bool:
    return settings.ENABLE_BREAK_POLICY


async def get_break_policy_resolver(
    db: AsyncSession = Depends(get_db),
) -> BreakPolicyResolver:
    return BreakPolicyResolver(SqlUserDirectory(db), is_enabled=break_policy_enabled)


def get_time_calc() -> TimeCalcConfig:
    return get_time_calc_config()


def get_site_cache() -> ListingCache[list[SiteRead]]:
    return site_cache
