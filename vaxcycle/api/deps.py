"""Common API dependencies."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from vaxcycle.core.clock import Clock, SystemClock
from vaxcycle.core.config import Settings, get_settings
from vaxcycle.db.protocol_store import ProtocolStore
from vaxcycle.db.session import get_session, get_sessionmaker


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide an async database session."""
    async for session in get_session():
        yield session


def get_app_settings() -> Settings:
    return get_settings()


def get_store() -> ProtocolStore:
    """Build a store over the configured database for this request."""
    return ProtocolStore(get_sessionmaker())


def get_clock(
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> Clock:
    """Wall clock in the shelter's time zone."""
    return SystemClock(settings.timezone)
