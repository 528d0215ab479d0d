"""Tests for the TTL listing cache."""

import pytest

from site_attendance.services.listing_cache import ListingCache


class _Clock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.mark.asyncio
async def test_cache_hits_until_ttl_expires():
    clock = _Clock()
    cache: ListingCache[list[str]] = ListingCache(ttl_seconds=60, clock=clock)
    loads = []

    async def loader():
        loads.append(clock.now)
        return [f"v{len(loads)}"]

    assert await cache.get(loader) == ["v1"]
    clock.now += 59
    assert await cache.get(loader) == ["v1"]
    clock.now += 2
    assert await cache.get(loader) == ["v2"]
    assert len(loads) == 2


@pytest.mark.asyncio
async def test_invalidate_forces_reload():
    cache: ListingCache[int] = ListingCache(ttl_seconds=3600, clock=_Clock())
    values = iter([1, 2])

    async def loader():
        return next(values)

    assert await cache.get(loader) == 1
    assert cache.is_fresh
    cache.invalidate()
    assert not cache.is_fresh
    assert await cache.get(loader) == 2


@pytest.mark.asyncio
async def test_zero_ttl_never_caches():
    cache: ListingCache[str] = ListingCache(ttl_seconds=0, clock=_Clock())
    calls = []

    async def loader():
        calls.append(1)
        return "x"

    await cache.get(loader)
    await cache.get(loader)
    assert len(calls) == 2
