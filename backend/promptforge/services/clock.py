"""Time helpers shared by the workflows.

SQLite hands back naive datetimes even for timezone-aware columns, so every
comparison goes through ``as_utc`` first.
"""
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

Clock = Callable[[], datetime]

_TICK = timedelta(microseconds=1)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def advance(previous: Optional[datetime], clock: Clock = utcnow) -> datetime:
    """A timestamp strictly later than ``previous``."""
    now = as_utc(clock())
    previous = as_utc(previous)
    if previous is not None and now <= previous:
        return previous + _TICK
    return now
