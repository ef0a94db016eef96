"""UTC clock with millisecond precision.

Stored timestamps are truncated to whole milliseconds so that durations
computed as ``end - start`` in milliseconds are exact integers.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable

Clock = Callable[[], datetime]

_ONE_MS = timedelta(milliseconds=1)


def utc_now() -> datetime:
    """Current UTC time truncated to milliseconds."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def millis_between(start: datetime, end: datetime) -> int:
    return (end - start) // _ONE_MS
