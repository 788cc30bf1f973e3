"""Helpers for working with timezone-aware datetimes."""

from __future__ import annotations

import re
from datetime import datetime, timezone

# Earlier service generations wrote RFC 3339 timestamps with nanosecond
# precision; Python datetimes stop at microseconds.
_EXCESS_FRACTION = re.compile(r"(\.\d{6})\d+")


def utcnow() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""

    return datetime.now(timezone.utc)


def coerce_utc(value: datetime | None) -> datetime | None:
    """Return a UTC-normalized datetime, assuming naive values are already UTC."""

    if value is None:
        return None

    if value.tzinfo is None or value.utcoffset() is None:
        return value.replace(tzinfo=timezone.utc)

    return value.astimezone(timezone.utc)


def trim_fractional_seconds(value: str) -> str:
    """Truncate the fractional part of an ISO timestamp to six digits."""

    return _EXCESS_FRACTION.sub(r"\1", value, count=1)
