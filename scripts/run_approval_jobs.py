"""Drain due approval reminder/escalation jobs once and exit.

Usage:
    uv run python -m scripts.run_approval_jobs [approval-reminder|approval-escalation]
If the job type is omitted, both types are drained. Intended for deployments
that run the API with APPROVAL_WORKERS_ENABLED=false and trigger delivery
from cron instead. Requires REDIS_ENABLED=true (jobs in process memory are
not visible to a separate process) and DATABASE_BACKEND=postgres.
"""

import asyncio
import sys
from pathlib import Path

from dotenv import load_dotenv

from app.api.v1.dependencies import build_services
from app.core.config import get_settings
from app.infrastructure.messaging import RedisDelayedJobQueue
from app.infrastructure.persistence.database import dispose_engine
from app.shared.enums import ApprovalJobType
from app.shared.telemetry.logging import setup_logging


def _load_env() -> None:
    """Load .env from project root so get_settings() sees REDIS_* and DATABASE_*."""
    load_dotenv(Path(__file__).resolve().parent.parent / ".env", override=True)


async def main() -> None:
    """For each job type, claim and run due batches until none are left."""
    _load_env()
    get_settings.cache_clear()
    settings = get_settings()
    setup_logging()
    if not settings.redis_enabled or settings.database_backend != "postgres":
        print(
            "Set REDIS_ENABLED=true and DATABASE_BACKEND=postgres to run approval jobs",
            file=sys.stderr,
        )
        sys.exit(1)

    job_types = list(ApprovalJobType)
    if len(sys.argv) > 1:
        try:
            job_types = [ApprovalJobType(sys.argv[1])]
        except ValueError:
            print(f"Unknown job type: {sys.argv[1]}", file=sys.stderr)
            sys.exit(1)

    services = build_services(settings)
    queue = services.job_queue
    if isinstance(queue, RedisDelayedJobQueue):
        await queue.connect()
    total = 0
    try:
        for job_type in job_types:
            processed = 0
            while batch := await services.scheduler.run_due(job_type):
                processed += batch
            if processed:
                print(f"{job_type.value}: processed {processed} job(s)")
            total += processed
    finally:
        await services.scheduler.shutdown()
        await dispose_engine()

    print(f"Done. Total processed: {total}")


if __name__ == "__main__":
    asyncio.run(main())
