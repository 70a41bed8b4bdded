"""Current time and calendar-day helpers.

Every service receives a clock callable instead of reading the wall clock
directly, so streak and edit-window rules can be exercised with fixed times.
"""

from datetime import date, datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current timestamp, timezone-aware UTC."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Normalize a datetime to aware UTC. Naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def calendar_day(value: datetime) -> date:
    """UTC calendar day a timestamp falls on."""
    return ensure_utc(value).date()


def get_clock() -> Clock:
    """FastAPI dependency; overridden in tests."""
    return utc_now
