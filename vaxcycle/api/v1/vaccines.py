"""Vaccine catalog API."""

from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from vaxcycle.api import deps
from vaxcycle.models import Vaccine
from vaxcycle.schemas import VaccineCreate, VaccineRead, VaccineUpdate
from vaxcycle.services import catalog_service

router = APIRouter()


async def _load_vaccine(session: AsyncSession, vaccine_id: uuid.UUID) -> Vaccine:
    vaccine = await catalog_service.get_vaccine(session, vaccine_id)
    if vaccine is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Vaccine not found"
        )
    return vaccine


@router.get("", response_model=list[VaccineRead], summary="List vaccines")
async def list_vaccines(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> list[VaccineRead]:
    vaccines = await catalog_service.list_vaccines(session)
    return [VaccineRead.model_validate(vaccine) for vaccine in vaccines]


@router.post(
    "",
    response_model=VaccineRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create vaccine",
)
async def create_vaccine(
    payload: VaccineCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> VaccineRead:
    vaccine = await catalog_service.create_vaccine(session, payload=payload)
    return VaccineRead.model_validate(vaccine)


@router.get("/{vaccine_id}", response_model=VaccineRead, summary="Get vaccine")
async def get_vaccine(
    vaccine_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> VaccineRead:
    vaccine = await _load_vaccine(session, vaccine_id)
    return VaccineRead.model_validate(vaccine)


@router.patch("/{vaccine_id}", response_model=VaccineRead, summary="Update vaccine")
async def update_vaccine(
    vaccine_id: uuid.UUID,
    payload: VaccineUpdate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> VaccineRead:
    vaccine = await _load_vaccine(session, vaccine_id)
    updated = await catalog_service.update_vaccine(
        session, vaccine=vaccine, payload=payload
    )
    return VaccineRead.model_validate(updated)
