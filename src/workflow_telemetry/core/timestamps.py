# src/workflow_telemetry/core/timestamps.py
"""Lenient timestamp parsing for API-supplied instants.

The API returns RFC 3339 strings, null, or occasionally garbage. Anything
that does not parse is treated as absent: callers get None, never an
exception.
"""

from __future__ import annotations

import re
from datetime import UTC, datetime, timedelta

_ONE_MS = timedelta(milliseconds=1)
# Job logs carry 7 fractional digits; datetime holds at most 6
_EXCESS_FRACTION = re.compile(r"(\.\d{6})\d+")


def parse_timestamp(value: str | datetime | None) -> datetime | None:
    """Parse an RFC 3339 timestamp into a UTC-aware datetime.

    Naive values are assumed to be UTC. Empty, non-string or malformed
    values yield None.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    if not isinstance(value, str) or value.strip() == "":
        return None

    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _EXCESS_FRACTION.sub(r"\1", text)
    try:
        parsed = datetime.fromisoformat(text)
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=UTC)
        return parsed.astimezone(UTC)
    except (ValueError, OverflowError):
        # OverflowError: offset pushes the instant outside datetime's range
        return None


def elapsed_ms(started_at: datetime | None, completed_at: datetime | None) -> int:
    """Milliseconds between two instants; 0 if either is missing or the span is negative."""
    if started_at is None or completed_at is None:
        return 0
    return max(0, (completed_at - started_at) // _ONE_MS)
