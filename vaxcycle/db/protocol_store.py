"""Transactional persistence for vaccination protocols and dose records.

Every call takes the :class:`Transaction` handle opened by
:meth:`ProtocolStore.transaction`, so all reads and writes of one workflow
run share a single database transaction.
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import ColumnElement, and_, func, or_, select, true, update
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from vaxcycle.core.clock import Clock
from vaxcycle.core.errors import ConcurrencyConflict, NotFoundError
from vaxcycle.models import (
    Animal,
    DoseRecord,
    ProtocolStatus,
    VaccinationProtocol,
    Vaccine,
)

_SERIALIZATION_SQLSTATES = {"40001", "40P01"}

_UPDATABLE_FIELDS = {
    "doses_required",
    "interval_days",
    "requires_annual_booster",
    "status",
    "next_dose_date",
    "next_cycle_reminder_date",
}


@dataclass(frozen=True)
class Transaction:
    """Handle for one open store transaction."""

    session: AsyncSession
    started_at: datetime

    @property
    def today(self) -> date:
        return self.started_at.date()


@dataclass(frozen=True)
class CycleParams:
    """Parameters for a new protocol; ignored when an open cycle is reused."""

    doses_required: int
    interval_days: int | None = None
    requires_annual_booster: bool = False

    def __post_init__(self) -> None:
        if self.doses_required < 1:
            raise ValueError("doses_required must be at least 1")
        if self.interval_days is not None and self.interval_days < 1:
            raise ValueError("interval_days must be at least 1")
        if self.doses_required > 1 and self.interval_days is None:
            raise ValueError("interval_days is required for multi-dose cycles")


@dataclass(frozen=True)
class DoseDetails:
    lab: str
    batch: str
    attending_vet: str
    amount_paid: Decimal = Decimal("0")
    applied_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.amount_paid < 0:
            raise ValueError("amount_paid must not be negative")


@dataclass(frozen=True)
class ProtocolFilter:
    """Conjunction of protocol predicates; unset fields do not filter.

    Several filters passed to a query are combined with OR. Date bounds are
    inclusive except ``next_dose_before``.
    """

    animal_id: uuid.UUID | None = None
    statuses: tuple[ProtocolStatus, ...] = ()
    active: bool | None = None
    requires_annual_booster: bool | None = None
    next_dose_from: date | None = None
    next_dose_to: date | None = None
    next_dose_before: date | None = None
    reminder_from: date | None = None
    reminder_to: date | None = None

    def clause(self) -> ColumnElement[bool]:
        protocol = VaccinationProtocol
        conditions: list[ColumnElement[bool]] = []
        if self.animal_id is not None:
            conditions.append(protocol.animal_id == self.animal_id)
        if self.statuses:
            conditions.append(protocol.status.in_(self.statuses))
        if self.active is not None:
            conditions.append(protocol.active.is_(self.active))
        if self.requires_annual_booster is not None:
            conditions.append(
                protocol.requires_annual_booster.is_(self.requires_annual_booster)
            )
        if self.next_dose_from is not None:
            conditions.append(protocol.next_dose_date >= self.next_dose_from)
        if self.next_dose_to is not None:
            conditions.append(protocol.next_dose_date <= self.next_dose_to)
        if self.next_dose_before is not None:
            conditions.append(protocol.next_dose_date < self.next_dose_before)
        if self.reminder_from is not None:
            conditions.append(protocol.next_cycle_reminder_date >= self.reminder_from)
        if self.reminder_to is not None:
            conditions.append(protocol.next_cycle_reminder_date <= self.reminder_to)
        if not conditions:
            return true()
        return and_(*conditions)


def _combine(filters: Sequence[ProtocolFilter]) -> ColumnElement[bool]:
    if not filters:
        return true()
    return or_(*(item.clause() for item in filters))


def _is_serialization_failure(exc: DBAPIError) -> bool:
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate in _SERIALIZATION_SQLSTATES:
        return True
    return "database is locked" in str(orig)


class ProtocolStore:
    """SQLAlchemy-backed store for protocols, doses and catalog lookups."""

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]) -> None:
        self._sessionmaker = sessionmaker

    @asynccontextmanager
    async def transaction(
        self, clock: Clock, *, readonly: bool = False
    ) -> AsyncIterator[Transaction]:
        """Run the enclosed block atomically; any exception rolls it back.

        ``readonly`` transactions skip the up-front write lock on SQLite.
        """
        try:
            async with self._sessionmaker() as session:
                async with session.begin():
                    if readonly:
                        await session.connection(
                            execution_options={"vaxcycle_readonly": True}
                        )
                    yield Transaction(session=session, started_at=clock.now())
        except DBAPIError as exc:
            if not isinstance(exc, IntegrityError) and _is_serialization_failure(exc):
                raise ConcurrencyConflict(
                    "Concurrent update detected; retry the transaction"
                ) from exc
            raise

    # catalog lookups

    async def find_animal(self, tx: Transaction, animal_id: uuid.UUID) -> Animal | None:
        return await tx.session.get(Animal, animal_id)

    async def find_vaccine(
        self, tx: Transaction, vaccine_id: uuid.UUID
    ) -> Vaccine | None:
        return await tx.session.get(Vaccine, vaccine_id)

    # protocol writes

    async def find_active_protocol(
        self,
        tx: Transaction,
        animal_id: uuid.UUID,
        vaccine_id: uuid.UUID,
    ) -> VaccinationProtocol | None:
        """Return the pair's active protocol, locking its row for the transaction."""
        stmt = (
            select(VaccinationProtocol)
            .where(
                VaccinationProtocol.animal_id == animal_id,
                VaccinationProtocol.vaccine_id == vaccine_id,
                VaccinationProtocol.active.is_(True),
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await tx.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_protocol(
        self,
        tx: Transaction,
        protocol_id: uuid.UUID,
        *,
        for_update: bool = False,
    ) -> VaccinationProtocol | None:
        stmt = (
            select(VaccinationProtocol)
            .options(
                selectinload(VaccinationProtocol.doses),
                selectinload(VaccinationProtocol.vaccine),
                selectinload(VaccinationProtocol.animal),
            )
            .where(VaccinationProtocol.id == protocol_id)
            .execution_options(populate_existing=True)
        )
        if for_update:
            stmt = stmt.with_for_update()
        result = await tx.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create_protocol(
        self,
        tx: Transaction,
        *,
        animal_id: uuid.UUID,
        vaccine_id: uuid.UUID,
        params: CycleParams,
    ) -> VaccinationProtocol:
        protocol = VaccinationProtocol(
            animal_id=animal_id,
            vaccine_id=vaccine_id,
            doses_required=params.doses_required,
            interval_days=params.interval_days,
            requires_annual_booster=params.requires_annual_booster,
            status=ProtocolStatus.PENDING,
            active=True,
        )
        tx.session.add(protocol)
        try:
            await tx.session.flush()
        except IntegrityError as exc:
            raise ConcurrencyConflict(
                "Another active protocol was created for this animal and vaccine"
            ) from exc
        return protocol

    async def _require_protocol(
        self, tx: Transaction, protocol_id: uuid.UUID
    ) -> VaccinationProtocol:
        protocol = await tx.session.get(VaccinationProtocol, protocol_id)
        if protocol is None:
            raise NotFoundError(f"Protocol {protocol_id} not found")
        return protocol

    async def archive_protocol(
        self, tx: Transaction, protocol_id: uuid.UUID
    ) -> VaccinationProtocol:
        protocol = await self._require_protocol(tx, protocol_id)
        protocol.active = False
        protocol.archived_at = tx.started_at
        await tx.session.flush()
        return protocol

    async def update_protocol(
        self,
        tx: Transaction,
        protocol_id: uuid.UUID,
        **fields: Any,
    ) -> VaccinationProtocol:
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update protocol fields: {sorted(unknown)}")
        protocol = await self._require_protocol(tx, protocol_id)
        for name, value in fields.items():
            setattr(protocol, name, value)
        await tx.session.flush()
        return protocol

    async def add_dose(
        self,
        tx: Transaction,
        *,
        protocol_id: uuid.UUID,
        details: DoseDetails,
    ) -> DoseRecord:
        dose = DoseRecord(
            protocol_id=protocol_id,
            lab=details.lab,
            batch=details.batch,
            attending_vet=details.attending_vet,
            amount_paid=details.amount_paid,
            applied_at=details.applied_at or tx.started_at,
        )
        tx.session.add(dose)
        await tx.session.flush()
        return dose

    async def count_doses(
        self, tx: Transaction, protocol_id: uuid.UUID | None = None
    ) -> int:
        stmt = select(func.count(DoseRecord.id))
        if protocol_id is not None:
            stmt = stmt.where(DoseRecord.protocol_id == protocol_id)
        result = await tx.session.execute(stmt)
        return int(result.scalar_one())

    async def latest_dose(
        self, tx: Transaction, protocol_id: uuid.UUID
    ) -> DoseRecord | None:
        stmt = (
            select(DoseRecord)
            .where(DoseRecord.protocol_id == protocol_id)
            .order_by(DoseRecord.applied_at.desc(), DoseRecord.created_at.desc())
            .limit(1)
        )
        result = await tx.session.execute(stmt)
        return result.scalars().first()

    # sweep

    async def overdue_candidates(self, tx: Transaction, today: date) -> list[uuid.UUID]:
        stmt = select(VaccinationProtocol.id).where(
            ProtocolFilter(
                statuses=(ProtocolStatus.IN_PROGRESS,), next_dose_before=today
            ).clause()
        )
        result = await tx.session.execute(stmt)
        return list(result.scalars().all())

    async def bulk_mark_overdue(
        self, tx: Transaction, protocol_ids: Sequence[uuid.UUID]
    ) -> int:
        """Flip still-IN_PROGRESS protocols among ``protocol_ids`` to OVERDUE."""
        if not protocol_ids:
            return 0
        stmt = (
            update(VaccinationProtocol)
            .where(
                VaccinationProtocol.id.in_(protocol_ids),
                VaccinationProtocol.status == ProtocolStatus.IN_PROGRESS,
            )
            .values(status=ProtocolStatus.OVERDUE, updated_at=datetime.now(UTC))
            .execution_options(synchronize_session=False)
        )
        result = await tx.session.execute(stmt)
        return int(result.rowcount or 0)

    # reads

    async def query_protocols(
        self,
        tx: Transaction,
        *filters: ProtocolFilter,
        order_by: Sequence[Any] = (),
        limit: int | None = None,
    ) -> list[VaccinationProtocol]:
        stmt = (
            select(VaccinationProtocol)
            .options(
                selectinload(VaccinationProtocol.animal),
                selectinload(VaccinationProtocol.vaccine),
                selectinload(VaccinationProtocol.doses),
            )
            .where(_combine(filters))
        )
        if order_by:
            stmt = stmt.order_by(*order_by)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await tx.session.execute(stmt)
        return list(result.scalars().unique().all())

    async def count_protocols(self, tx: Transaction, *filters: ProtocolFilter) -> int:
        stmt = select(func.count(VaccinationProtocol.id)).where(_combine(filters))
        result = await tx.session.execute(stmt)
        return int(result.scalar_one())

    async def recent_doses(self, tx: Transaction, *, limit: int) -> list[DoseRecord]:
        stmt = (
            select(DoseRecord)
            .options(
                selectinload(DoseRecord.protocol).selectinload(
                    VaccinationProtocol.animal
                ),
                selectinload(DoseRecord.protocol).selectinload(
                    VaccinationProtocol.vaccine
                ),
            )
            .order_by(DoseRecord.applied_at.desc(), DoseRecord.created_at.desc())
            .limit(limit)
        )
        result = await tx.session.execute(stmt)
        return list(result.scalars().all())


__all__ = [
    "CycleParams",
    "DoseDetails",
    "ProtocolFilter",
    "ProtocolStore",
    "Transaction",
]
