# Overview: UTC clock and ISO-8601 conversions for ledger timestamps.

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

# Timestamps are stored as naive UTC; the API always speaks "...Z" strings.


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Read a query-string timestamp such as 2026-01-31T08:00:00Z.

    Blank input gives None. Offsets are folded into UTC; a value without an
    offset is taken to be UTC already. Raises ValueError on malformed input.
    """
    text = (value or "").strip()
    if not text:
        return None
    if text[-1] in "zZ":
        text = f"{text[:-1]}+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """Render a stored timestamp with millisecond precision and a Z suffix."""
    if dt is None:
        return None
    aware = dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)
    stamp = aware.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return stamp[: -len("+00:00")] + "Z"
