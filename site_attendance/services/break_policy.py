"""
Per-person break-deduction policy.

A directory entry may exempt a worker from the standard break
deduction.  Identity resolution follows a strict precedence
(record reference → numeric id → display name) and every ambiguity
falls back to the default, which APPLIES the deduction.  That default
is a business choice: on dirty data a worker is paid for less time
rather than more.

Caching is keyed only by the identifier that actually drove the
resolution, so two people who merely share a display name never
contaminate each other's cached result.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, MutableMapping
from typing import Literal, Protocol

from pydantic import BaseModel

from site_attendance.services.records import as_int, as_string

logger = logging.getLogger(__name__)

BreakPolicySource = Literal["record_id", "user_id", "user_name", "default"]


class BreakPolicyResult(BaseModel):
    exclude_break_deduction: bool = False
    source: BreakPolicySource = "default"

    model_config = {"frozen": True}


class BreakPolicyIdentity(BaseModel):
    user_record_id: str | None = None
    user_id: int | str | None = None
    user_name: str | None = None


class DirectoryEntry(BaseModel):
    record_id: str
    user_id: int | None = None
    name: str | None = None
    exclude_break_deduction: bool = False


class UserDirectory(Protocol):
    async def find_by_record_id(self, record_id: str) -> DirectoryEntry | None: ...

    async def find_by_user_id(self, user_id: int) -> DirectoryEntry | None: ...

    async def find_by_user_name(self, user_name: str) -> list[DirectoryEntry]: ...


PolicyCache = MutableMapping[str, BreakPolicyResult]

DEFAULT_POLICY = BreakPolicyResult()


def normalize_name(value: str) -> str:
    return value.strip().casefold()


def _from_entry(entry: DirectoryEntry | None, source: BreakPolicySource) -> BreakPolicyResult:
    if entry is None:
        return DEFAULT_POLICY
    return BreakPolicyResult(
        exclude_break_deduction=bool(entry.exclude_break_deduction),
        source=source,
    )


class BreakPolicyResolver:
    """Resolve whether a person is exempt from the standard break deduction."""

    def __init__(self, directory: UserDirectory, is_enabled: Callable[[], bool]) -> None:
        self._directory = directory
        self._is_enabled = is_enabled

    def is_enabled(self) -> bool:
        return self._is_enabled()

    async def resolve(
        self,
        identity: BreakPolicyIdentity,
        cache: PolicyCache | None = None,
    ) -> BreakPolicyResult:
        if not self._is_enabled():
            return DEFAULT_POLICY

        record_id = as_string(identity.user_record_id)
        user_id = as_int(identity.user_id)
        user_name = as_string(identity.user_name)

        if record_id:
            key = f"record:{record_id}"
        elif user_id is not None:
            key = f"user_id:{user_id}"
        elif user_name:
            key = f"user_name:{normalize_name(user_name)}"
        else:
            return DEFAULT_POLICY

        if cache is not None and key in cache:
            return cache[key]

        if record_id:
            policy = _from_entry(await self._directory.find_by_record_id(record_id), "record_id")
        elif user_id is not None:
            policy = _from_entry(await self._directory.find_by_user_id(user_id), "user_id")
        else:
            matches = await self._directory.find_by_user_name(user_name or "")
            if len(matches) == 1:
                policy = _from_entry(matches[0], "user_name")
            else:
                if len(matches) > 1:
                    logger.warning(
                        "Break policy: %d directory users match name %r; applying default deduction",
                        len(matches),
                        user_name,
                    )
                policy = DEFAULT_POLICY

        if cache is not None:
            cache[key] = policy
        return policy

    async def break_applies(
        self,
        identity: BreakPolicyIdentity,
        cache: PolicyCache | None = None,
    ) -> bool:
        """True when the standard break deduction should be applied."""
        policy = await self.resolve(identity, cache)
        return not policy.exclude_break_deduction
