"""Animal and vaccine catalog helpers."""

from __future__ import annotations

import uuid
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vaxcycle.models import Animal, Vaccine
from vaxcycle.schemas.catalog import AnimalCreate, VaccineCreate, VaccineUpdate


async def create_animal(session: AsyncSession, *, payload: AnimalCreate) -> Animal:
    animal = Animal(**payload.model_dump())
    session.add(animal)
    await session.commit()
    await session.refresh(animal)
    return animal


async def list_animals(
    session: AsyncSession,
    *,
    skip: int = 0,
    limit: int = 50,
) -> Sequence[Animal]:
    stmt = select(Animal).order_by(Animal.name).offset(skip).limit(limit)
    result = await session.execute(stmt)
    return result.scalars().all()


async def get_animal(session: AsyncSession, animal_id: uuid.UUID) -> Animal | None:
    return await session.get(Animal, animal_id)


async def create_vaccine(session: AsyncSession, *, payload: VaccineCreate) -> Vaccine:
    vaccine = Vaccine(**payload.model_dump())
    session.add(vaccine)
    await session.commit()
    await session.refresh(vaccine)
    return vaccine


async def list_vaccines(session: AsyncSession) -> Sequence[Vaccine]:
    result = await session.execute(select(Vaccine).order_by(Vaccine.name))
    return result.scalars().all()


async def get_vaccine(session: AsyncSession, vaccine_id: uuid.UUID) -> Vaccine | None:
    return await session.get(Vaccine, vaccine_id)


async def update_vaccine(
    session: AsyncSession,
    *,
    vaccine: Vaccine,
    payload: VaccineUpdate,
) -> Vaccine:
    """Apply the fields set on ``payload`` to ``vaccine``."""
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(vaccine, field, value)
    await session.commit()
    await session.refresh(vaccine)
    return vaccine
