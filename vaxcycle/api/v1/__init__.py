"""Versioned API router."""

from fastapi import APIRouter

from . import animals, health, vaccinations, vaccines

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(animals.router, prefix="/animals", tags=["animals"])
router.include_router(vaccines.router, prefix="/vaccines", tags=["vaccines"])
router.include_router(
    vaccinations.router, prefix="/vaccinations", tags=["vaccinations"]
)

__all__ = ["router"]
