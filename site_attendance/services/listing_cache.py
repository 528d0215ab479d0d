"""
Time-bounded cache for slow-changing listings (the site list).

Staleness is explicit: entries expire after ``ttl_seconds`` and every
endpoint that mutates the underlying data must call ``invalidate()``.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ListingCache(Generic[T]):
    def __init__(
        self,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._value: T | None = None
        self._loaded_at: float | None = None
        self._lock = asyncio.Lock()

    @property
    def is_fresh(self) -> bool:
        if self._loaded_at is None:
            return False
        return (self._clock() - self._loaded_at) < self._ttl

    async def get(self, loader: Callable[[], Awaitable[T]]) -> T:
        """Return the cached value, calling *loader* when missing or expired."""
        async with self._lock:
            if self.is_fresh:
                return self._value  # type: ignore[return-value]
            value = await loader()
            self._value = value
            self._loaded_at = self._clock()
            logger.info("Listing cache refreshed")
            return value

    def invalidate(self) -> None:
        self._value = None
        self._loaded_at = None
