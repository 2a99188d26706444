"""Service layer exports."""
from vaxcycle.services import (
    catalog_service,
    overdue_sweep,
    protocol_state,
    vaccination_queries,
    vaccination_service,
)

__all__ = [
    "catalog_service",
    "overdue_sweep",
    "protocol_state",
    "vaccination_queries",
    "vaccination_service",
]
