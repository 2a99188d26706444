"""Schema exports."""

from vaxcycle.schemas.catalog import (
    AnimalCreate,
    AnimalRead,
    VaccineCreate,
    VaccineRead,
    VaccineUpdate,
)
from vaxcycle.schemas.vaccination import (
    DoseRecordRead,
    DoseRegistrationCreate,
    KpiRead,
    ProtocolParamsUpdate,
    ProtocolRead,
    ProtocolStatusUpdate,
    ProtocolSummary,
    RecentDoseRead,
)

__all__ = [
    "AnimalCreate",
    "AnimalRead",
    "DoseRecordRead",
    "DoseRegistrationCreate",
    "KpiRead",
    "ProtocolParamsUpdate",
    "ProtocolRead",
    "ProtocolStatusUpdate",
    "ProtocolSummary",
    "RecentDoseRead",
    "VaccineCreate",
    "VaccineRead",
    "VaccineUpdate",
]
