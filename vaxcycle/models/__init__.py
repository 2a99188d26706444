"""ORM models package export."""

from vaxcycle.models.animal import Animal
from vaxcycle.models.vaccination import (
    DoseRecord,
    ProtocolStatus,
    VaccinationProtocol,
)
from vaxcycle.models.vaccine import Vaccine

__all__ = [
    "Animal",
    "DoseRecord",
    "ProtocolStatus",
    "VaccinationProtocol",
    "Vaccine",
]
