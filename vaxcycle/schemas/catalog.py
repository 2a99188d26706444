"""Pydantic schemas for the animal and vaccine catalog."""

from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field


class AnimalBase(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    species: str | None = Field(default=None, max_length=60)
    rescued_on: date | None = None
    notes: str | None = Field(default=None, max_length=500)


class AnimalCreate(AnimalBase):
    pass


class AnimalRead(AnimalBase):
    id: uuid.UUID
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class VaccineBase(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    manufacturer: str | None = Field(default=None, max_length=120)
    description: str | None = Field(default=None, max_length=512)


class VaccineCreate(VaccineBase):
    pass


class VaccineUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=120)
    manufacturer: str | None = Field(default=None, max_length=120)
    description: str | None = Field(default=None, max_length=512)


class VaccineRead(VaccineBase):
    id: uuid.UUID
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
