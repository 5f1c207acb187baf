"""
Clocks for FruitFlow

Order dates, document timestamps, login times and recompute records all read
the time from an injected clock, so a test or walkthrough can pin the
marketplace to a given day and step it forward.
"""

from datetime import datetime, timedelta, timezone
from typing import Protocol


class TimeProvider(Protocol):
    def now(self) -> datetime:
        """Current time, timezone-aware UTC"""
        ...


class RealTimeProvider:
    """Wall clock"""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class TestTimeProvider:
    """
    Frozen clock that only moves when told to

    Starts at the Unix epoch unless given a start time. Naive datetimes are
    read as UTC.
    """

    __test__ = False

    def __init__(self, initial_time: datetime | None = None) -> None:
        self._now = datetime(1970, 1, 1, tzinfo=timezone.utc)
        if initial_time is not None:
            self.set_time(initial_time)

    def now(self) -> datetime:
        return self._now

    def set_time(self, dt: datetime) -> None:
        self._now = dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)

    def advance(self, delta: timedelta) -> datetime:
        self._now += delta
        return self._now

    def advance_seconds(self, seconds: int) -> None:
        self.advance(timedelta(seconds=seconds))

    def advance_days(self, days: int) -> None:
        self.advance(timedelta(days=days))
