"""Application lifespan: startup and shutdown.

Single place for all startup/shutdown logic (SRP). Used by main.py;
no business logic here, only wiring of infrastructure (logging, document
services, job queue connection, approval workers, DB engine dispose).
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.core.config import get_settings
from app.shared.telemetry.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    Startup order: logging, services (unless app.state.services was set
    beforehand, e.g. by tests), job queue connect (Redis), approval workers
    (if enabled). Shutdown order: workers and queue, SQL engine dispose.
    """
    settings = get_settings()
    setup_logging()

    # ---- Startup ----
    from app.api.v1.dependencies import build_services
    from app.infrastructure.messaging import RedisDelayedJobQueue

    services = getattr(app.state, "services", None) or build_services(settings)
    if isinstance(services.job_queue, RedisDelayedJobQueue):
        await services.job_queue.connect()
    app.state.services = services

    if settings.approval_workers_enabled:
        services.scheduler.start()
        logger.info(
            "Approval workers started (concurrency=%d, poll=%.1fs)",
            settings.approval_worker_concurrency,
            settings.approval_worker_poll_seconds,
        )
    logger.info(
        "%s %s started (database=%s, storage=%s, scanner=%s)",
        settings.app_name,
        settings.app_version,
        settings.database_backend,
        settings.storage_backend,
        settings.scanner_backend,
    )

    yield

    # ---- Shutdown ----
    await services.scheduler.shutdown()
    app.state.services = None
    logger.info("Approval workers stopped and job queue closed")

    from app.infrastructure.persistence.database import dispose_engine

    await dispose_engine()
