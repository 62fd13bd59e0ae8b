"""Utility helpers for walking loosely-typed JSON payloads."""

from __future__ import annotations

import math
from typing import Any, Sequence

ERROR_SNIPPET_LENGTH = 200


def dig(payload: Any, path: Sequence[str]) -> Any:
    """Follow ``path`` through nested mappings, returning ``None`` on any miss."""

    current = payload
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def clean_text(value: Any) -> str:
    """Return a trimmed string, or an empty string for non-string values."""

    if isinstance(value, str):
        return value.strip()
    return ""


def is_number(value: Any) -> bool:
    """Return ``True`` for finite ints and floats (booleans excluded)."""

    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and math.isfinite(value)


def truncate(text: str | None, limit: int = ERROR_SNIPPET_LENGTH) -> str:
    """Clip response bodies before they end up in error messages."""

    return (text or "")[:limit]
