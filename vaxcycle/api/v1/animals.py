"""Shelter animal catalog API."""

from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from vaxcycle.api import deps
from vaxcycle.schemas import AnimalCreate, AnimalRead
from vaxcycle.services import catalog_service

router = APIRouter()


@router.get("", response_model=list[AnimalRead], summary="List animals")
async def list_animals(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    skip: int = 0,
    limit: int = 50,
) -> list[AnimalRead]:
    animals = await catalog_service.list_animals(
        session, skip=skip, limit=min(limit, 100)
    )
    return [AnimalRead.model_validate(animal) for animal in animals]


@router.post(
    "",
    response_model=AnimalRead,
    status_code=status.HTTP_201_CREATED,
    summary="Register animal",
)
async def create_animal(
    payload: AnimalCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> AnimalRead:
    animal = await catalog_service.create_animal(session, payload=payload)
    return AnimalRead.model_validate(animal)


@router.get("/{animal_id}", response_model=AnimalRead, summary="Get animal")
async def get_animal(
    animal_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> AnimalRead:
    animal = await catalog_service.get_animal(session, animal_id)
    if animal is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Animal not found"
        )
    return AnimalRead.model_validate(animal)
