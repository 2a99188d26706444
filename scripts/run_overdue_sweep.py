"""Run one overdue sweep pass; suitable for cron or a systemd timer."""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import date
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.append(str(PROJECT_ROOT))

from vaxcycle.core.clock import SystemClock
from vaxcycle.core.config import get_settings
from vaxcycle.core.logging import configure_logging
from vaxcycle.db.protocol_store import ProtocolStore
from vaxcycle.db.session import dispose_engine, get_sessionmaker
from vaxcycle.services.overdue_sweep import sweep_overdue

LOGGER = logging.getLogger("vaxcycle.scripts.run_overdue_sweep")


async def run_sweep(today: date | None = None) -> int:
    settings = get_settings()
    store = ProtocolStore(get_sessionmaker())
    try:
        return await sweep_overdue(store, SystemClock(settings.timezone), today)
    finally:
        await dispose_engine()


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Mark in-progress vaccination protocols past their due date as overdue"
    )
    parser.add_argument(
        "--date",
        type=date.fromisoformat,
        default=None,
        help="Sweep as of this ISO date instead of today in the shelter time zone",
    )
    args = parser.parse_args()

    configure_logging(get_settings().log_level)
    updated = asyncio.run(run_sweep(args.date))
    LOGGER.info("Sweep finished: %s protocol(s) marked overdue", updated)


if __name__ == "__main__":
    main()
