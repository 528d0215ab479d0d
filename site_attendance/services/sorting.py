"""Ordering helpers shared by the report builders."""

from __future__ import annotations

import re
import unicodedata

_NUMERIC_RUN = re.compile(r"\d+")


def text_sort_key(value: str | None) -> str:
    """Width- and case-insensitive key for display strings."""
    return unicodedata.normalize("NFKC", value or "").casefold()


def compare_text(a: str | None, b: str | None) -> int:
    left, right = text_sort_key(a), text_sort_key(b)
    return (left > right) - (left < right)


def _last_number(value: str) -> int | None:
    runs = _NUMERIC_RUN.findall(value)
    return int(runs[-1]) if runs else None


def compare_machine_id(a: str | None, b: str | None) -> int:
    """Natural order for machine ids: trailing number first, then text.

    ``M-2`` sorts before ``M-10``; ids without digits fall back to a
    case-insensitive string comparison.
    """
    left, right = a or "", b or ""
    left_num, right_num = _last_number(left), _last_number(right)
    if left_num is not None and right_num is not None and left_num != right_num:
        return -1 if left_num < right_num else 1
    return compare_text(left, right)


def same_text(a: str | None, b: str | None) -> bool:
    """Equality of two trimmed, non-empty display strings ignoring case and width."""
    a, b = (a or "").strip(), (b or "").strip()
    if not a or not b:
        return False
    return text_sort_key(a) == text_sort_key(b)
