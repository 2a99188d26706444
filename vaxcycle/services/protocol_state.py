"""Pure state transitions for a vaccination protocol."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Protocol

from vaxcycle.core import datemath
from vaxcycle.models.vaccination import ProtocolStatus


class CycleShape(Protocol):
    """Anything carrying the parameters that govern a cycle."""

    doses_required: int
    interval_days: int | None
    requires_annual_booster: bool


@dataclass(frozen=True)
class ScheduleUpdate:
    status: ProtocolStatus
    next_dose_date: date | None
    next_cycle_reminder_date: date | None


def advance(cycle: CycleShape, doses_applied: int, today: date) -> ScheduleUpdate:
    """Derive a protocol's state after a dose was recorded on ``today``.

    Never yields OVERDUE; that state is only assigned by the overdue sweep and
    is left again through this function on the next registration.
    """

    if doses_applied < 1:
        raise ValueError("advance requires at least one recorded dose")

    if doses_applied >= cycle.doses_required:
        reminder = (
            datemath.add_years(today, 1) if cycle.requires_annual_booster else None
        )
        return ScheduleUpdate(
            status=ProtocolStatus.COMPLETE,
            next_dose_date=None,
            next_cycle_reminder_date=reminder,
        )

    if cycle.interval_days is None or cycle.interval_days < 1:
        raise ValueError("multi-dose cycles need a positive interval_days")
    return ScheduleUpdate(
        status=ProtocolStatus.IN_PROGRESS,
        next_dose_date=datemath.add_days(today, cycle.interval_days),
        next_cycle_reminder_date=None,
    )


__all__ = ["CycleShape", "ScheduleUpdate", "advance"]
