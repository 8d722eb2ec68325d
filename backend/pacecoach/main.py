"""
pacecoach entry point

Logging setup and wiring of the analytics service to the database.
"""

from contextlib import asynccontextmanager
import logging
import sys
from typing import AsyncIterator, Optional

from pacecoach.config import settings
from pacecoach.db.session import AsyncSessionLocal
from pacecoach.features.analytics import (
    AnalyticsDataRepository,
    AnalyticsService,
    DatabaseResultSink,
)


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(level: Optional[str] = None) -> None:
    """Install the root stdout handler at the given or configured level."""
    if level is None:
        level = "DEBUG" if settings.debug else settings.log_level
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format=LOG_FORMAT,
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
        force=True,
    )


@asynccontextmanager
async def analytics_service(session_factory=AsyncSessionLocal) -> AsyncIterator[AnalyticsService]:
    """
    Open a session and yield an AnalyticsService bound to it.

    Pending result writes are awaited before the session closes.

    Usage:
        async with analytics_service() as service:
            drivers = await service.drivers(season_id="s1")
    """
    async with session_factory() as session:
        service = AnalyticsService(
            AnalyticsDataRepository(session),
            sink=DatabaseResultSink(session_factory),
        )
        try:
            yield service
        finally:
            await service.wait_for_pending_writes()
