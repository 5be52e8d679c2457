"""
Clock abstraction for time-window checks.
"""

from datetime import datetime, tzinfo
from typing import Optional, Protocol
from zoneinfo import ZoneInfo


class Clock(Protocol):
    def now(self) -> datetime:
        ...


class SystemClock:
    """Wall-clock time in a fixed timezone."""

    def __init__(self, tz: Optional[tzinfo] = None):
        self.tz = tz or ZoneInfo("UTC")

    def now(self) -> datetime:
        return datetime.now(self.tz)


class FixedClock:
    """Clock pinned to a given instant; used by tests and replay tooling."""

    def __init__(self, instant: datetime):
        self.instant = instant

    @classmethod
    def at_hour(cls, hour: int, day: Optional[datetime] = None) -> "FixedClock":
        base = day or datetime(2024, 1, 1, tzinfo=ZoneInfo("UTC"))
        return cls(base.replace(hour=hour, minute=0, second=0, microsecond=0))

    def now(self) -> datetime:
        return self.instant
