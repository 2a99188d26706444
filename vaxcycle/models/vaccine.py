"""Vaccine catalog model."""

from __future__ import annotations

import uuid

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from vaxcycle.db.base import Base
from vaxcycle.models.mixins import TimestampMixin


class Vaccine(TimestampMixin, Base):
    """A vaccine the shelter administers."""

    __tablename__ = "vaccines"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    manufacturer: Mapped[str | None] = mapped_column(String(120))
    description: Mapped[str | None] = mapped_column(String(512))
