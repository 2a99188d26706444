"""Pydantic schemas for dose registration and protocol views."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from vaxcycle.models.vaccination import ProtocolStatus
from vaxcycle.schemas.catalog import AnimalRead, VaccineRead


class DoseRegistrationCreate(BaseModel):
    """Registration payload; cycle fields only matter when a new cycle starts."""

    animal_id: uuid.UUID
    vaccine_id: uuid.UUID
    lab: str = Field(min_length=1, max_length=120)
    batch: str = Field(min_length=1, max_length=120)
    vet: str = Field(min_length=1, max_length=120, alias="attending_vet")
    amount_paid: Decimal = Field(
        default=Decimal("0"), ge=0, max_digits=10, decimal_places=2
    )
    applied_at: datetime | None = None
    doses_required: int | None = Field(default=None, ge=1)
    interval_days: int | None = Field(default=None, ge=1)
    requires_annual_booster: bool = False

    model_config = ConfigDict(populate_by_name=True)


class DoseRecordRead(BaseModel):
    id: uuid.UUID
    protocol_id: uuid.UUID
    lab: str
    batch: str
    attending_vet: str
    amount_paid: Decimal
    applied_at: datetime
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProtocolSummary(BaseModel):
    id: uuid.UUID
    animal_id: uuid.UUID
    vaccine_id: uuid.UUID
    doses_required: int
    interval_days: int | None
    requires_annual_booster: bool
    status: ProtocolStatus
    active: bool
    next_dose_date: date | None
    next_cycle_reminder_date: date | None
    archived_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
    animal: AnimalRead | None = None
    vaccine: VaccineRead | None = None

    model_config = ConfigDict(from_attributes=True)


class ProtocolRead(ProtocolSummary):
    """Protocol with its chronological dose ledger."""

    doses: list[DoseRecordRead] = Field(default_factory=list)


class RecentDoseRead(DoseRecordRead):
    protocol: ProtocolSummary


class ProtocolParamsUpdate(BaseModel):
    doses_required: int | None = Field(default=None, ge=1)
    interval_days: int | None = Field(default=None, ge=1)


class ProtocolStatusUpdate(BaseModel):
    status: ProtocolStatus


class KpiRead(BaseModel):
    doses_applied: int
    scheduled: int
    overdue: int
    completed: int

    model_config = ConfigDict(from_attributes=True)
