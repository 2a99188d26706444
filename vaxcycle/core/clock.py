"""Clock abstraction so date-dependent logic can be pinned in tests."""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta, tzinfo
from typing import Protocol


class Clock(Protocol):
    """Source of the current instant."""

    def now(self) -> datetime: ...

    def today(self) -> date: ...


class SystemClock:
    """Wall clock reading in the shelter's time zone."""

    def __init__(self, tz: tzinfo = UTC) -> None:
        self.tz = tz

    def now(self) -> datetime:
        return datetime.now(self.tz)

    def today(self) -> date:
        return self.now().date()


class FixedClock:
    """Clock frozen at a given instant; ``advance`` moves it forward."""

    def __init__(self, instant: datetime) -> None:
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=UTC)
        self._instant = instant

    @classmethod
    def on(cls, day: date, tz: tzinfo = UTC) -> "FixedClock":
        return cls(datetime(day.year, day.month, day.day, 12, tzinfo=tz))

    def now(self) -> datetime:
        return self._instant

    def today(self) -> date:
        return self._instant.date()

    def advance(self, *, days: int = 0, seconds: float = 0) -> None:
        self._instant = self._instant + timedelta(days=days, seconds=seconds)


__all__ = ["Clock", "FixedClock", "SystemClock"]
