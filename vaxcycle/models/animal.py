"""Shelter animal catalog model."""

from __future__ import annotations

import uuid
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import Date, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from vaxcycle.db.base import Base
from vaxcycle.models.mixins import TimestampMixin

if TYPE_CHECKING:
    from vaxcycle.models import VaccinationProtocol


class Animal(TimestampMixin, Base):
    """An animal housed by the shelter."""

    __tablename__ = "animals"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    species: Mapped[str | None] = mapped_column(String(60))
    rescued_on: Mapped[date | None] = mapped_column(Date())
    notes: Mapped[str | None] = mapped_column(String(500))

    vaccination_protocols: Mapped[list["VaccinationProtocol"]] = relationship(
        "VaccinationProtocol", back_populates="animal"
    )
