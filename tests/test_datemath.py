"""Calendar helpers and clocks."""

from __future__ import annotations

from datetime import UTC, date, datetime, time
from zoneinfo import ZoneInfo

import pytest

from vaxcycle.core import datemath
from vaxcycle.core.clock import FixedClock, SystemClock


def test_add_years_maps_leap_day_to_february_28() -> None:
    assert datemath.add_years(date(2024, 2, 29), 1) == date(2025, 2, 28)
    assert datemath.add_years(date(2024, 2, 29), 4) == date(2028, 2, 29)
    assert datemath.add_years(date(2023, 3, 15), 1) == date(2024, 3, 15)


def test_add_days_crosses_month_and_year() -> None:
    assert datemath.add_days(date(2024, 12, 20), 30) == date(2025, 1, 19)
    assert datemath.add_days(date(2024, 3, 1), -1) == date(2024, 2, 29)


def test_day_window_is_inclusive_and_ordered() -> None:
    today = date(2024, 3, 1)
    assert datemath.day_window(today, start=0, end=7) == (
        date(2024, 3, 1),
        date(2024, 3, 8),
    )
    assert datemath.day_window(today, start=1, end=30) == (
        date(2024, 3, 2),
        date(2024, 3, 31),
    )
    with pytest.raises(ValueError):
        datemath.day_window(today, start=5, end=1)


def test_is_past_due_compares_whole_days() -> None:
    today = date(2024, 3, 10)
    assert datemath.is_past_due(date(2024, 3, 9), today)
    assert not datemath.is_past_due(date(2024, 3, 10), today)
    assert not datemath.is_past_due(None, today)


def test_seconds_until_next_occurrence() -> None:
    tz = ZoneInfo("America/Sao_Paulo")
    noon = datetime(2024, 3, 1, 12, 0, tzinfo=tz)
    assert datemath.seconds_until(noon, time(0, 0)) == 12 * 3600
    assert datemath.seconds_until(noon, time(13, 30)) == 90 * 60
    # An occurrence at exactly ``now`` waits a full day.
    assert datemath.seconds_until(noon, time(12, 0)) == 24 * 3600


def test_seconds_until_counts_elapsed_time_across_dst_shifts() -> None:
    eastern = ZoneInfo("America/New_York")
    # Clocks jump from 02:00 to 03:00 on 10 March 2024.
    before_spring = datetime(2024, 3, 9, 12, 0, tzinfo=eastern)
    assert datemath.seconds_until(before_spring, time(3, 0)) == 14 * 3600
    # And fall back from 02:00 to 01:00 on 3 November 2024.
    before_fall = datetime(2024, 11, 2, 12, 0, tzinfo=eastern)
    assert datemath.seconds_until(before_fall, time(3, 0)) == 16 * 3600


def test_seconds_until_rejects_naive_datetimes() -> None:
    with pytest.raises(ValueError):
        datemath.seconds_until(datetime(2024, 3, 1, 12), time(0, 0))


def test_fixed_clock_reports_local_day_and_advances() -> None:
    tz = ZoneInfo("America/Sao_Paulo")
    clock = FixedClock.on(date(2024, 2, 28), tz)
    assert clock.today() == date(2024, 2, 28)
    clock.advance(days=1)
    assert clock.today() == date(2024, 2, 29)
    assert clock.now().tzinfo is tz


def test_fixed_clock_assumes_utc_for_naive_instants() -> None:
    clock = FixedClock(datetime(2024, 1, 1, 8))
    assert clock.now().tzinfo is UTC


def test_system_clock_uses_configured_zone() -> None:
    tz = ZoneInfo("Asia/Tokyo")
    now = SystemClock(tz).now()
    assert now.tzinfo is tz
