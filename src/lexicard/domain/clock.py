"""Epoch-millisecond time helpers.

Timestamps are stored as integer epoch milliseconds; calendar dates are
UTC ``YYYY-MM-DD`` strings.
"""

import time
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

Clock = Callable[[], int]


def now_ms() -> int:
    return int(time.time() * 1000)


def to_datetime(ms: int) -> datetime:
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc)


def date_str(ms: int) -> str:
    """UTC calendar date of an epoch-millis timestamp."""
    return to_datetime(ms).strftime("%Y-%m-%d")


def iso_str(ms: int) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a trailing Z."""
    return to_datetime(ms).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def previous_date(day: str) -> str:
    d = datetime.strptime(day, "%Y-%m-%d") - timedelta(days=1)
    return d.strftime("%Y-%m-%d")
