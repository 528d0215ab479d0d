"""
Exponential-backoff retry for upstream reads.

Only transient connection failures are retried; anything else, and
the last failure once attempts run out, propagates to the caller.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from sqlalchemy.exc import OperationalError

from site_attendance.core.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_ERRORS: tuple[type[BaseException], ...] = (OperationalError, ConnectionError, TimeoutError)


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    *,
    attempts: int | None = None,
    base_delay: float | None = None,
    label: str = "upstream call",
    on_retry: Callable[[], Awaitable[None]] | None = None,
) -> T:
    attempts = attempts or settings.UPSTREAM_RETRY_ATTEMPTS
    delay = settings.UPSTREAM_RETRY_BASE_DELAY if base_delay is None else base_delay

    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except RETRYABLE_ERRORS as exc:
            if attempt >= attempts:
                logger.error("%s failed after %d attempts: %s", label, attempts, exc)
                raise
            wait = delay * (2 ** (attempt - 1))
            logger.warning("%s failed (attempt %d/%d), retrying in %.2fs: %s", label, attempt, attempts, wait, exc)
            if on_retry is not None:
                await on_retry()
            await asyncio.sleep(wait)
    raise RuntimeError("unreachable")  # pragma: no cover
