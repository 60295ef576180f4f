"""
Time Source

UTC clock used for staleness checks and server clock offsets.
Injected everywhere so tests can control time.
"""

from datetime import datetime, timezone
from typing import Protocol


class Clock(Protocol):
    def now_utc(self) -> datetime:
        """Return the current instant as a timezone-aware UTC datetime."""
        ...


class SystemClock:
    """Wall-clock implementation of Clock"""

    def now_utc(self) -> datetime:
        return datetime.now(timezone.utc)


def to_utc(ts: datetime) -> datetime:
    """
    Normalize a datetime to UTC.

    Naive datetimes are assumed to already be UTC.
    """
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def parse_iso(ts_iso: str) -> datetime:
    """Parse an ISO timestamp (accepts a trailing 'Z') into a UTC datetime"""
    return to_utc(datetime.fromisoformat(ts_iso.replace("Z", "+00:00")))
