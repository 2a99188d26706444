"""Periodic sweep that flags stale in-progress protocols as overdue."""

from __future__ import annotations

import asyncio
import logging
from datetime import date, time

from sqlalchemy.exc import SQLAlchemyError

from vaxcycle.core import datemath
from vaxcycle.core.clock import Clock
from vaxcycle.core.errors import EngineError
from vaxcycle.db.protocol_store import ProtocolStore

logger = logging.getLogger(__name__)


async def sweep_overdue(store: ProtocolStore, clock: Clock, today: date | None = None) -> int:
    """Mark IN_PROGRESS protocols whose next dose is before ``today`` as OVERDUE.

    Returns the number of protocols transitioned. Failures are logged and
    reported as zero; the next run picks up whatever this one missed.
    """

    try:
        async with store.transaction(clock) as tx:
            sweep_day = today or tx.today
            candidates = await store.overdue_candidates(tx, sweep_day)
            if not candidates:
                logger.info("Overdue sweep for %s: no overdue protocols found", sweep_day)
                return 0
            updated = await store.bulk_mark_overdue(tx, candidates)
    except (SQLAlchemyError, EngineError, OSError):
        logger.exception("Overdue sweep failed; will retry on the next run")
        return 0

    logger.info("Overdue sweep for %s: %s protocols marked overdue", sweep_day, updated)
    return updated


class OverdueSweepScheduler:
    """Run :func:`sweep_overdue` once a day at a fixed local time."""

    def __init__(self, store: ProtocolStore, clock: Clock, *, run_at: time) -> None:
        self.store = store
        self.clock = clock
        self.run_at = run_at
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def seconds_until_next_run(self) -> float:
        return datemath.seconds_until(self.clock.now(), self.run_at)

    async def _loop(self) -> None:
        while True:
            delay = self.seconds_until_next_run()
            logger.debug("Next overdue sweep in %.0f seconds", delay)
            await asyncio.sleep(delay)
            try:
                await sweep_overdue(self.store, self.clock)
            except Exception:
                logger.exception("Overdue sweep run crashed; rescheduling")

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="overdue-sweep")
        logger.info("Overdue sweep scheduled daily at %s", self.run_at.isoformat())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None


__all__ = ["OverdueSweepScheduler", "sweep_overdue"]
