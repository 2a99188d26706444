"""Vaccination cycle API: dose registration, schedules and dashboard."""

from __future__ import annotations

import uuid
from typing import Annotated, TypeVar

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from vaxcycle.api import deps
from vaxcycle.core.clock import Clock
from vaxcycle.core.config import Settings
from vaxcycle.core.errors import ErrorKind, Failure, Result
from vaxcycle.db.protocol_store import DoseDetails, ProtocolStore
from vaxcycle.schemas import (
    DoseRegistrationCreate,
    KpiRead,
    ProtocolParamsUpdate,
    ProtocolRead,
    ProtocolStatusUpdate,
    RecentDoseRead,
)
from vaxcycle.services import vaccination_queries, vaccination_service
from vaxcycle.services.vaccination_service import DoseRegistration

router = APIRouter()

T = TypeVar("T")

_FAILURE_STATUS = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.INVALID_STATE: status.HTTP_400_BAD_REQUEST,
    ErrorKind.CONCURRENCY_CONFLICT: status.HTTP_409_CONFLICT,
}

StoreDep = Annotated[ProtocolStore, Depends(deps.get_store)]
ClockDep = Annotated[Clock, Depends(deps.get_clock)]
SettingsDep = Annotated[Settings, Depends(deps.get_app_settings)]


def _unwrap(result: Result[T]) -> T:
    if isinstance(result, Failure):
        raise HTTPException(
            status_code=_FAILURE_STATUS[result.kind], detail=result.message
        )
    return result.value


def _to_registration(payload: DoseRegistrationCreate) -> DoseRegistration:
    return DoseRegistration(
        animal_id=payload.animal_id,
        vaccine_id=payload.vaccine_id,
        dose=DoseDetails(
            lab=payload.lab,
            batch=payload.batch,
            attending_vet=payload.vet,
            amount_paid=payload.amount_paid,
            applied_at=payload.applied_at,
        ),
        doses_required=payload.doses_required,
        interval_days=payload.interval_days,
        requires_annual_booster=payload.requires_annual_booster,
    )


@router.post(
    "/doses",
    response_model=ProtocolRead,
    status_code=status.HTTP_201_CREATED,
    summary="Register an administered dose",
)
async def register_dose(
    payload: DoseRegistrationCreate,
    store: StoreDep,
    clock: ClockDep,
    settings: SettingsDep,
) -> ProtocolRead:
    result = await vaccination_service.register_dose(
        store,
        clock,
        _to_registration(payload),
        max_attempts=settings.registration_max_attempts,
        timeout=settings.request_timeout_seconds,
    )
    return ProtocolRead.model_validate(_unwrap(result))


@router.get(
    "/animals/{animal_id}/history",
    response_model=list[ProtocolRead],
    summary="Vaccination history for an animal",
)
async def animal_history(
    animal_id: Annotated[uuid.UUID, Path()],
    store: StoreDep,
    clock: ClockDep,
    settings: SettingsDep,
) -> list[ProtocolRead]:
    result = await vaccination_queries.history_for_animal(
        store, clock, animal_id, timeout=settings.request_timeout_seconds
    )
    return [ProtocolRead.model_validate(item) for item in _unwrap(result)]


@router.get(
    "/alerts",
    response_model=list[ProtocolRead],
    summary="Overdue and soon-due protocols",
)
async def list_alerts(
    store: StoreDep,
    clock: ClockDep,
    settings: SettingsDep,
) -> list[ProtocolRead]:
    protocols = await vaccination_queries.alerts(
        store,
        clock,
        clock.today(),
        window_days=settings.alert_window_days,
        timeout=settings.request_timeout_seconds,
    )
    return [ProtocolRead.model_validate(item) for item in protocols]


@router.get(
    "/schedule",
    response_model=list[ProtocolRead],
    summary="Upcoming doses and booster reminders",
)
async def upcoming_schedule(
    store: StoreDep,
    clock: ClockDep,
    settings: SettingsDep,
) -> list[ProtocolRead]:
    protocols = await vaccination_queries.upcoming_schedule(
        store,
        clock,
        clock.today(),
        window_days=settings.upcoming_window_days,
        timeout=settings.request_timeout_seconds,
    )
    return [ProtocolRead.model_validate(item) for item in protocols]


@router.get("/kpis", response_model=KpiRead, summary="Dashboard counters")
async def dashboard_kpis(
    store: StoreDep,
    clock: ClockDep,
    settings: SettingsDep,
) -> KpiRead:
    counters = await vaccination_queries.kpis(
        store, clock, clock.today(), timeout=settings.request_timeout_seconds
    )
    return KpiRead.model_validate(counters)


@router.get(
    "/doses/recent",
    response_model=list[RecentDoseRead],
    summary="Most recently applied doses",
)
async def recent_doses(
    store: StoreDep,
    clock: ClockDep,
    settings: SettingsDep,
    limit: Annotated[int | None, Query(ge=1, le=100)] = None,
) -> list[RecentDoseRead]:
    doses = await vaccination_queries.recent_doses(
        store,
        clock,
        limit=limit or settings.recent_doses_limit,
        timeout=settings.request_timeout_seconds,
    )
    return [RecentDoseRead.model_validate(dose) for dose in doses]


@router.patch(
    "/protocols/{protocol_id}",
    response_model=ProtocolRead,
    summary="Edit protocol cycle parameters",
)
async def update_protocol(
    protocol_id: Annotated[uuid.UUID, Path()],
    payload: ProtocolParamsUpdate,
    store: StoreDep,
    clock: ClockDep,
    settings: SettingsDep,
) -> ProtocolRead:
    result = await vaccination_service.update_protocol_params(
        store,
        clock,
        protocol_id,
        doses_required=payload.doses_required,
        interval_days=payload.interval_days,
        timeout=settings.request_timeout_seconds,
    )
    return ProtocolRead.model_validate(_unwrap(result))


@router.patch(
    "/protocols/{protocol_id}/status",
    response_model=ProtocolRead,
    summary="Override protocol status",
)
async def update_protocol_status(
    protocol_id: Annotated[uuid.UUID, Path()],
    payload: ProtocolStatusUpdate,
    store: StoreDep,
    clock: ClockDep,
    settings: SettingsDep,
) -> ProtocolRead:
    result = await vaccination_service.set_protocol_status(
        store,
        clock,
        protocol_id,
        payload.status,
        timeout=settings.request_timeout_seconds,
    )
    return ProtocolRead.model_validate(_unwrap(result))
