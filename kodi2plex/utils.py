"""Utility helpers for reading Kodi export values."""

from __future__ import annotations

import re
from datetime import datetime, timezone

LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


def parse_kodi_datetime(value: str | None) -> datetime | None:
    """Parse a Kodi ``lastplayed`` value, returning ``None`` when unusable."""

    if not value or not value.strip():
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_int(value: str | None, default: int = 0) -> int:
    """Return the leading integer of ``value`` or ``default`` when there is none."""

    if not value:
        return default
    match = LEADING_INT_RE.match(value)
    if not match:
        return default
    return int(match.group(1))
