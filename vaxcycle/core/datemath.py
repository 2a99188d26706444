"""Calendar arithmetic used by the protocol scheduler."""

from __future__ import annotations

import calendar
from datetime import UTC, date, datetime, time, timedelta


def add_days(value: date, days: int) -> date:
    return value + timedelta(days=days)


def add_years(value: date, years: int) -> date:
    """Shift ``value`` by whole years.

    29 February lands on 28 February when the target year is not a leap year.
    """

    target_year = value.year + years
    if value.month == 2 and value.day == 29 and not calendar.isleap(target_year):
        return value.replace(year=target_year, day=28)
    return value.replace(year=target_year)


def day_window(today: date, *, start: int, end: int) -> tuple[date, date]:
    """Return the inclusive ``(today + start, today + end)`` date range."""

    if end < start:
        raise ValueError("window end must not precede its start")
    return add_days(today, start), add_days(today, end)


def is_past_due(due: date | None, today: date) -> bool:
    """True when ``due`` is strictly before the calendar day ``today``."""

    return due is not None and due < today


def seconds_until(now: datetime, at: time) -> float:
    """Seconds from ``now`` until the next wall-clock occurrence of ``at``.

    ``now`` must be timezone-aware; ``at`` is interpreted in its zone. An
    occurrence exactly at ``now`` is scheduled for the following day.
    The difference is taken in UTC so days that gain or lose an hour to a
    DST shift are measured in real elapsed seconds.
    """

    if now.tzinfo is None:
        raise ValueError("now must be timezone-aware")
    candidate = datetime.combine(now.date(), at, tzinfo=now.tzinfo)
    if candidate.astimezone(UTC) <= now.astimezone(UTC):
        candidate = datetime.combine(
            add_days(now.date(), 1), at, tzinfo=now.tzinfo
        )
    return (candidate.astimezone(UTC) - now.astimezone(UTC)).total_seconds()
