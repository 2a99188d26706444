"""Dose registration workflow and administrative protocol edits."""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Awaitable
from dataclasses import dataclass
from datetime import date, datetime, tzinfo
from typing import TypeVar

from vaxcycle.core.clock import Clock
from vaxcycle.core.errors import (
    ConcurrencyConflict,
    EngineError,
    InvalidStateError,
    NotFoundError,
    Result,
    Success,
)
from vaxcycle.db.protocol_store import (
    CycleParams,
    DoseDetails,
    ProtocolStore,
    Transaction,
)
from vaxcycle.models import Animal, ProtocolStatus, VaccinationProtocol, Vaccine
from vaxcycle.services.protocol_state import advance

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 3
_RETRY_BACKOFF_SECONDS = 0.05

_MANUAL_STATUS_TRANSITIONS: dict[ProtocolStatus, set[ProtocolStatus]] = {
    ProtocolStatus.IN_PROGRESS: {ProtocolStatus.OVERDUE},
    ProtocolStatus.OVERDUE: {ProtocolStatus.IN_PROGRESS},
}


@dataclass(frozen=True)
class DoseRegistration:
    """One request to record a dose for an (animal, vaccine) pair.

    The cycle fields are read only when no open cycle exists for the pair;
    they are not validated otherwise.
    """

    animal_id: uuid.UUID
    vaccine_id: uuid.UUID
    dose: DoseDetails
    doses_required: int | None = None
    interval_days: int | None = None
    requires_annual_booster: bool = False


async def _as_result(work: Awaitable[T], timeout: float | None) -> Result[T]:
    try:
        value = await asyncio.wait_for(work, timeout)
    except EngineError as exc:
        return exc.to_failure()
    return Success(value)


def _local_date(moment: datetime, tz: tzinfo | None) -> date:
    # SQLite hands back naive wall-clock values already in the shelter zone.
    if moment.tzinfo is None or tz is None:
        return moment.date()
    return moment.astimezone(tz).date()


async def _start_cycle(
    store: ProtocolStore,
    tx: Transaction,
    registration: DoseRegistration,
) -> VaccinationProtocol:
    if registration.doses_required is None:
        raise InvalidStateError(
            "Cycle parameters are required to start a new vaccination cycle"
        )
    try:
        params = CycleParams(
            doses_required=registration.doses_required,
            interval_days=registration.interval_days,
            requires_annual_booster=registration.requires_annual_booster,
        )
    except ValueError as exc:
        raise InvalidStateError(str(exc)) from exc
    return await store.create_protocol(
        tx,
        animal_id=registration.animal_id,
        vaccine_id=registration.vaccine_id,
        params=params,
    )


async def _resolve_protocol(
    store: ProtocolStore,
    tx: Transaction,
    registration: DoseRegistration,
    *,
    animal: Animal,
    vaccine: Vaccine,
) -> VaccinationProtocol:
    """Pick the protocol the new dose belongs to, opening a cycle if needed."""

    current = await store.find_active_protocol(
        tx, registration.animal_id, registration.vaccine_id
    )
    if current is None:
        return await _start_cycle(store, tx, registration)

    if current.is_terminal:
        raise InvalidStateError(
            f'The vaccination cycle for "{vaccine.name}" of "{animal.name}" '
            "is already complete"
        )

    if current.status == ProtocolStatus.COMPLETE:
        await store.archive_protocol(tx, current.id)
        logger.info(
            "Archived protocol %s; starting booster cycle for animal %s vaccine %s",
            current.id,
            registration.animal_id,
            registration.vaccine_id,
        )
        return await _start_cycle(store, tx, registration)

    return current


async def _register_once(
    store: ProtocolStore,
    clock: Clock,
    registration: DoseRegistration,
) -> VaccinationProtocol:
    async with store.transaction(clock) as tx:
        animal = await store.find_animal(tx, registration.animal_id)
        if animal is None:
            raise NotFoundError(f"Animal {registration.animal_id} not found")
        vaccine = await store.find_vaccine(tx, registration.vaccine_id)
        if vaccine is None:
            raise NotFoundError(f"Vaccine {registration.vaccine_id} not found")

        protocol = await _resolve_protocol(
            store, tx, registration, animal=animal, vaccine=vaccine
        )
        await store.add_dose(tx, protocol_id=protocol.id, details=registration.dose)
        doses_applied = await store.count_doses(tx, protocol.id)

        schedule = advance(protocol, doses_applied, tx.today)
        await store.update_protocol(
            tx,
            protocol.id,
            status=schedule.status,
            next_dose_date=schedule.next_dose_date,
            next_cycle_reminder_date=schedule.next_cycle_reminder_date,
        )
        updated = await store.get_protocol(tx, protocol.id)
        if updated is None:  # pragma: no cover - row written in this transaction
            raise NotFoundError(f"Protocol {protocol.id} not found")

    logger.info(
        "Registered dose %s/%s on protocol %s (status %s)",
        doses_applied,
        updated.doses_required,
        updated.id,
        updated.status.value,
    )
    return updated


async def register_dose(
    store: ProtocolStore,
    clock: Clock,
    registration: DoseRegistration,
    *,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    timeout: float | None = None,
) -> Result[VaccinationProtocol]:
    """Record a dose and derive the protocol's new state atomically.

    Serialization conflicts retry the whole transaction up to
    ``max_attempts`` times. ``timeout`` bounds the call including retries;
    ``TimeoutError`` propagates after the open transaction is rolled back.
    """

    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    async def _attempts() -> VaccinationProtocol:
        attempt = 1
        while True:
            try:
                return await _register_once(store, clock, registration)
            except ConcurrencyConflict:
                if attempt >= max_attempts:
                    logger.warning(
                        "Giving up on dose registration for animal %s vaccine %s "
                        "after %s attempts",
                        registration.animal_id,
                        registration.vaccine_id,
                        attempt,
                    )
                    raise
                logger.info(
                    "Concurrent registration for animal %s vaccine %s; retrying",
                    registration.animal_id,
                    registration.vaccine_id,
                )
                await asyncio.sleep(_RETRY_BACKOFF_SECONDS * attempt)
                attempt += 1

    return await _as_result(_attempts(), timeout)


async def update_protocol_params(
    store: ProtocolStore,
    clock: Clock,
    protocol_id: uuid.UUID,
    *,
    doses_required: int | None = None,
    interval_days: int | None = None,
    timeout: float | None = None,
) -> Result[VaccinationProtocol]:
    """Edit an active protocol's cycle parameters and re-derive its schedule.

    The schedule is recomputed as if the most recent dose had just been
    recorded, so dates stay anchored to the real dose history.
    """

    async def _edit() -> VaccinationProtocol:
        async with store.transaction(clock) as tx:
            protocol = await store.get_protocol(tx, protocol_id, for_update=True)
            if protocol is None:
                raise NotFoundError(f"Protocol {protocol_id} not found")
            if not protocol.active:
                raise InvalidStateError("Archived protocols cannot be edited")

            try:
                params = CycleParams(
                    doses_required=doses_required or protocol.doses_required,
                    interval_days=(
                        interval_days
                        if interval_days is not None
                        else protocol.interval_days
                    ),
                    requires_annual_booster=protocol.requires_annual_booster,
                )
            except ValueError as exc:
                raise InvalidStateError(str(exc)) from exc

            fields: dict[str, object] = {
                "doses_required": params.doses_required,
                "interval_days": params.interval_days,
            }
            doses_applied = await store.count_doses(tx, protocol.id)
            latest = await store.latest_dose(tx, protocol.id)
            if doses_applied and latest is not None:
                anchor = _local_date(latest.applied_at, tx.started_at.tzinfo)
                schedule = advance(params, doses_applied, anchor)
                fields.update(
                    status=schedule.status,
                    next_dose_date=schedule.next_dose_date,
                    next_cycle_reminder_date=schedule.next_cycle_reminder_date,
                )
            await store.update_protocol(tx, protocol.id, **fields)
            updated = await store.get_protocol(tx, protocol.id)
        logger.info("Updated cycle parameters of protocol %s", protocol_id)
        return updated

    return await _as_result(_edit(), timeout)


async def set_protocol_status(
    store: ProtocolStore,
    clock: Clock,
    protocol_id: uuid.UUID,
    status: ProtocolStatus,
    *,
    timeout: float | None = None,
) -> Result[VaccinationProtocol]:
    """Manually toggle a protocol between IN_PROGRESS and OVERDUE."""

    async def _override() -> VaccinationProtocol:
        async with store.transaction(clock) as tx:
            protocol = await store.get_protocol(tx, protocol_id, for_update=True)
            if protocol is None:
                raise NotFoundError(f"Protocol {protocol_id} not found")
            if protocol.status != status:
                allowed = _MANUAL_STATUS_TRANSITIONS.get(protocol.status, set())
                if status not in allowed:
                    raise InvalidStateError(
                        f"Invalid status transition from {protocol.status.value} "
                        f"to {status.value}"
                    )
                await store.update_protocol(tx, protocol.id, status=status)
            updated = await store.get_protocol(tx, protocol.id)
        return updated

    return await _as_result(_override(), timeout)


__all__ = [
    "CycleParams",
    "DoseDetails",
    "DoseRegistration",
    "register_dose",
    "set_protocol_status",
    "update_protocol_params",
]
