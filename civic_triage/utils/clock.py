"""Clocks and calendar-day keys for streak comparisons.

Streaks are compared at day granularity on the caller's local calendar, so
every timestamp produced here is timezone-aware in local time.
"""

from datetime import datetime, timedelta
from typing import Protocol


class Clock(Protocol):
    """Source of the current time."""

    def now(self) -> datetime: ...


class SystemClock:
    """Wall clock in the local timezone."""

    def now(self) -> datetime:
        return datetime.now().astimezone()


class FrozenClock:
    """A clock that only moves when told to (tests and the offline demo)."""

    def __init__(self, at: datetime):
        self._now = at if at.tzinfo else at.astimezone()

    def now(self) -> datetime:
        return self._now

    def set(self, at: datetime) -> None:
        self._now = at if at.tzinfo else at.astimezone()

    def advance(self, **delta) -> datetime:
        """Move forward by a ``timedelta(**delta)`` and return the new time."""
        self._now = self._now + timedelta(**delta)
        return self._now


def date_key(moment: datetime) -> str:
    """Calendar-day key (YYYY-MM-DD) of a timestamp."""
    return moment.date().isoformat()


def previous_date_key(moment: datetime) -> str:
    """Calendar-day key of the day before ``moment``."""
    return date_key(moment - timedelta(days=1))
