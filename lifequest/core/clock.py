"""Clock collaborator.

Services never read the wall clock directly; they ask the injected Clock so
that generation dates and timestamps are deterministic under test.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo


class Clock(ABC):
    """Source of the current time."""

    @abstractmethod
    def now(self) -> datetime:
        """Current timezone-aware datetime."""
        ...

    def today(self) -> date:
        """Current calendar date in the clock's timezone."""
        return self.now().date()


class SystemClock(Clock):
    """Wall clock in a configured IANA timezone."""

    def __init__(self, tz_name: str = "UTC") -> None:
        self._tz = ZoneInfo(tz_name)

    def now(self) -> datetime:
        return datetime.now(self._tz)


class FixedClock(Clock):
    """Clock frozen at a given instant. ``advance`` moves it forward."""

    def __init__(self, instant: datetime) -> None:
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        self._instant = instant

    def now(self) -> datetime:
        return self._instant

    def set(self, instant: datetime) -> None:
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        self._instant = instant

    def advance(self, delta) -> None:
        self._instant = self._instant + delta
