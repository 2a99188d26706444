"""Read-side views over vaccination protocols.

None of these functions mutate protocol state.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass
from datetime import date

from vaxcycle.core import datemath
from vaxcycle.core.clock import Clock
from vaxcycle.core.errors import NotFoundError, Result, Success
from vaxcycle.db.protocol_store import ProtocolFilter, ProtocolStore
from vaxcycle.models import DoseRecord, ProtocolStatus, VaccinationProtocol

DEFAULT_ALERT_WINDOW_DAYS = 7
DEFAULT_UPCOMING_WINDOW_DAYS = 30
DEFAULT_RECENT_DOSES = 5


@dataclass(frozen=True)
class Kpis:
    doses_applied: int
    scheduled: int
    overdue: int
    completed: int


async def history_for_animal(
    store: ProtocolStore,
    clock: Clock,
    animal_id: uuid.UUID,
    *,
    timeout: float | None = None,
) -> Result[list[VaccinationProtocol]]:
    """Every protocol of the animal, archived cycles included, with doses."""

    async def _load() -> list[VaccinationProtocol]:
        async with store.transaction(clock, readonly=True) as tx:
            if await store.find_animal(tx, animal_id) is None:
                raise NotFoundError(f"Animal {animal_id} not found")
            return await store.query_protocols(
                tx,
                ProtocolFilter(animal_id=animal_id),
                order_by=(VaccinationProtocol.created_at,),
            )

    try:
        protocols = await asyncio.wait_for(_load(), timeout)
    except NotFoundError as exc:
        return exc.to_failure()
    return Success(protocols)


async def alerts(
    store: ProtocolStore,
    clock: Clock,
    today: date,
    *,
    window_days: int = DEFAULT_ALERT_WINDOW_DAYS,
    timeout: float | None = None,
) -> list[VaccinationProtocol]:
    """Overdue protocols plus in-progress ones due within ``window_days``."""

    window_start, window_end = datemath.day_window(today, start=0, end=window_days)

    async def _load() -> list[VaccinationProtocol]:
        async with store.transaction(clock, readonly=True) as tx:
            return await store.query_protocols(
                tx,
                ProtocolFilter(statuses=(ProtocolStatus.OVERDUE,)),
                ProtocolFilter(
                    statuses=(ProtocolStatus.IN_PROGRESS,),
                    next_dose_from=window_start,
                    next_dose_to=window_end,
                ),
                order_by=(
                    VaccinationProtocol.next_dose_date,
                    VaccinationProtocol.created_at,
                ),
            )

    return await asyncio.wait_for(_load(), timeout)


def _schedule_key(protocol: VaccinationProtocol) -> tuple[int, date]:
    due = protocol.schedule_date
    if due is None:
        return (1, date.max)
    return (0, due)


async def upcoming_schedule(
    store: ProtocolStore,
    clock: Clock,
    today: date,
    *,
    window_days: int = DEFAULT_UPCOMING_WINDOW_DAYS,
    timeout: float | None = None,
) -> list[VaccinationProtocol]:
    """Next doses and booster reminders falling between tomorrow and ``window_days``.

    Sorted by whichever schedule date the protocol carries; protocols with
    neither date go last and ties keep their query order.
    """

    window_start, window_end = datemath.day_window(today, start=1, end=window_days)

    async def _load() -> list[VaccinationProtocol]:
        async with store.transaction(clock, readonly=True) as tx:
            return await store.query_protocols(
                tx,
                ProtocolFilter(
                    statuses=(ProtocolStatus.IN_PROGRESS,),
                    next_dose_from=window_start,
                    next_dose_to=window_end,
                ),
                ProtocolFilter(
                    statuses=(ProtocolStatus.COMPLETE,),
                    requires_annual_booster=True,
                    reminder_from=window_start,
                    reminder_to=window_end,
                ),
                order_by=(VaccinationProtocol.created_at,),
            )

    protocols = await asyncio.wait_for(_load(), timeout)
    return sorted(protocols, key=_schedule_key)


async def kpis(
    store: ProtocolStore,
    clock: Clock,
    today: date,
    *,
    timeout: float | None = None,
) -> Kpis:
    """Dashboard counters, all evaluated against the same ``today``."""

    async def _load() -> Kpis:
        async with store.transaction(clock, readonly=True) as tx:
            doses_applied = await store.count_doses(tx)
            scheduled = await store.count_protocols(
                tx,
                ProtocolFilter(
                    statuses=(ProtocolStatus.IN_PROGRESS, ProtocolStatus.PENDING),
                    next_dose_from=today,
                ),
            )
            # Counts protocols the sweep has not reached yet as well.
            overdue = await store.count_protocols(
                tx,
                ProtocolFilter(statuses=(ProtocolStatus.OVERDUE,)),
                ProtocolFilter(
                    statuses=(ProtocolStatus.IN_PROGRESS,),
                    next_dose_before=today,
                ),
            )
            completed = await store.count_protocols(
                tx, ProtocolFilter(statuses=(ProtocolStatus.COMPLETE,))
            )
        return Kpis(
            doses_applied=doses_applied,
            scheduled=scheduled,
            overdue=overdue,
            completed=completed,
        )

    return await asyncio.wait_for(_load(), timeout)


async def recent_doses(
    store: ProtocolStore,
    clock: Clock,
    *,
    limit: int = DEFAULT_RECENT_DOSES,
    timeout: float | None = None,
) -> list[DoseRecord]:
    """Most recently applied doses with their protocol, animal and vaccine."""

    async def _load() -> list[DoseRecord]:
        async with store.transaction(clock, readonly=True) as tx:
            return await store.recent_doses(tx, limit=limit)

    return await asyncio.wait_for(_load(), timeout)


__all__ = [
    "Kpis",
    "alerts",
    "history_for_animal",
    "kpis",
    "recent_doses",
    "upcoming_schedule",
]
