"""Vaccination protocol and dose ledger models."""

from __future__ import annotations

import enum
import uuid
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from vaxcycle.db.base import Base
from vaxcycle.models.mixins import TimestampMixin

if TYPE_CHECKING:
    from vaxcycle.models import Animal, Vaccine


class ProtocolStatus(str, enum.Enum):
    """Lifecycle state of a vaccination cycle."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"
    OVERDUE = "overdue"


class VaccinationProtocol(TimestampMixin, Base):
    """One vaccination cycle for an (animal, vaccine) pair."""

    __tablename__ = "vaccination_protocols"
    __table_args__ = (
        Index(
            "ux_vaccination_protocols_active_pair",
            "animal_id",
            "vaccine_id",
            unique=True,
            sqlite_where=text("active = 1"),
            postgresql_where=text("active"),
        ),
        Index(
            "ix_vaccination_protocols_status_next_dose",
            "status",
            "next_dose_date",
        ),
        Index(
            "ix_vaccination_protocols_reminder",
            "next_cycle_reminder_date",
        ),
        CheckConstraint("doses_required >= 1", name="ck_protocol_doses_required"),
        CheckConstraint(
            "interval_days IS NULL OR interval_days >= 1",
            name="ck_protocol_interval_days",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    animal_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("animals.id"), nullable=False, index=True
    )
    vaccine_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("vaccines.id"), nullable=False
    )
    doses_required: Mapped[int] = mapped_column(Integer(), nullable=False)
    interval_days: Mapped[int | None] = mapped_column(Integer(), nullable=True)
    requires_annual_booster: Mapped[bool] = mapped_column(
        Boolean(), nullable=False, default=False
    )
    status: Mapped[ProtocolStatus] = mapped_column(
        Enum(ProtocolStatus), nullable=False, default=ProtocolStatus.PENDING
    )
    active: Mapped[bool] = mapped_column(Boolean(), nullable=False, default=True)
    next_dose_date: Mapped[date | None] = mapped_column(Date())
    next_cycle_reminder_date: Mapped[date | None] = mapped_column(Date())
    archived_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    animal: Mapped["Animal"] = relationship(
        "Animal", back_populates="vaccination_protocols"
    )
    vaccine: Mapped["Vaccine"] = relationship("Vaccine")
    doses: Mapped[list["DoseRecord"]] = relationship(
        "DoseRecord",
        back_populates="protocol",
        order_by=lambda: [DoseRecord.applied_at, DoseRecord.created_at],
    )

    @property
    def is_terminal(self) -> bool:
        """Complete without a booster: no further doses are accepted."""
        return (
            self.status == ProtocolStatus.COMPLETE
            and not self.requires_annual_booster
        )

    @property
    def schedule_date(self) -> date | None:
        """The date this protocol next needs attention, if any."""
        return self.next_dose_date or self.next_cycle_reminder_date


class DoseRecord(TimestampMixin, Base):
    """One administered dose; rows are only ever appended."""

    __tablename__ = "dose_records"
    __table_args__ = (
        CheckConstraint("amount_paid >= 0", name="ck_dose_amount_paid"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    protocol_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("vaccination_protocols.id"), nullable=False, index=True
    )
    lab: Mapped[str] = mapped_column(String(120), nullable=False)
    batch: Mapped[str] = mapped_column(String(120), nullable=False)
    attending_vet: Mapped[str] = mapped_column(String(120), nullable=False)
    amount_paid: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("0.00")
    )
    applied_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        index=True,
    )

    protocol: Mapped[VaccinationProtocol] = relationship(
        "VaccinationProtocol", back_populates="doses"
    )