"""Approval job scheduler: reminder/escalation jobs and their workers.

schedule() enqueues one reminder and one escalation per version; cancel()
removes the ones still pending. Workers claim due jobs and hand them to
ApprovalReminderHandler, which re-checks the version before notifying.
"""

from __future__ import annotations

import asyncio
from datetime import timedelta

from app.application.dtos.jobs import Job
from app.application.interfaces.services import IDelayedJobQueue
from app.application.use_cases.documents.approval_reminders import (
    ApprovalReminderHandler,
)
from app.core.constants import (
    APPROVAL_ESCALATION_DELAY_HOURS,
    APPROVAL_REMINDER_DELAY_HOURS,
)
from app.domain.exceptions import TransientInfrastructureException
from app.shared.enums import ApprovalJobType
from app.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class ApprovalJobScheduler:
    """IApprovalScheduler over a delayed job queue, plus the worker loops.

    One worker loop per job type; each claims at most `concurrency` due jobs
    per poll and runs them concurrently. Handler exceptions mark the job
    failed; there is no workflow-level retry.
    """

    def __init__(
        self,
        queue: IDelayedJobQueue,
        handler: ApprovalReminderHandler | None = None,
        reminder_delay: timedelta = timedelta(hours=APPROVAL_REMINDER_DELAY_HOURS),
        escalation_delay: timedelta = timedelta(hours=APPROVAL_ESCALATION_DELAY_HOURS),
        concurrency: int = 5,
        poll_interval: float = 5.0,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.queue = queue
        self.handler = handler
        self.delays: dict[ApprovalJobType, timedelta] = {
            ApprovalJobType.REMINDER: reminder_delay,
            ApprovalJobType.ESCALATION: escalation_delay,
        }
        self.concurrency = concurrency
        self.poll_interval = poll_interval
        self._stopping = asyncio.Event()
        self._workers: list[asyncio.Task[None]] = []

    async def schedule(self, version_id: str, document_id: str) -> None:
        """Enqueue reminder (48h) and escalation (72h) jobs for the version.

        All or nothing: if a later enqueue fails, jobs already enqueued for
        this call are removed before JobQueueUnavailableError propagates.
        """
        payload = {"version_id": version_id, "document_id": document_id}
        enqueued: list[Job] = []
        try:
            for job_type, delay in self.delays.items():
                job = await self.queue.enqueue(job_type.value, payload, delay)
                enqueued.append(job)
                logger.info(
                    "Scheduled %s job %s for version %s at %s",
                    job_type.value,
                    job.id,
                    version_id,
                    job.run_at.isoformat(),
                )
        except TransientInfrastructureException:
            for job in enqueued:
                try:
                    await self.queue.remove(job)
                except TransientInfrastructureException:
                    logger.exception(
                        "Failed to remove %s job %s after partial schedule", job.job_type, job.id
                    )
            raise

    async def cancel(self, version_id: str) -> None:
        """Remove pending jobs for the version. Best effort; queue errors are logged."""
        removed = 0
        for job_type in self.delays:
            try:
                pending = await self.queue.list_pending(job_type.value)
                for job in pending:
                    if job.payload.get("version_id") == version_id:
                        if await self.queue.remove(job):
                            removed += 1
            except TransientInfrastructureException:
                logger.exception(
                    "Failed to cancel %s jobs for version %s", job_type.value, version_id
                )
        logger.info("Cancelled %d approval jobs for version %s", removed, version_id)

    async def _process(self, job: Job) -> None:
        if self.handler is None:
            raise RuntimeError("ApprovalJobScheduler has no handler; cannot run jobs")
        try:
            await self.handler.handle(job.job_type, job.payload)
        except Exception as e:
            logger.exception("Approval job %s (%s) failed", job.id, job.job_type)
            await self.queue.fail(job, f"{type(e).__name__}: {e}")
            return
        await self.queue.ack(job)

    async def run_due(self, job_type: ApprovalJobType) -> int:
        """Claim and process one batch of due jobs. Returns how many were processed."""
        if self.handler is None:
            raise RuntimeError("ApprovalJobScheduler has no handler; cannot run jobs")
        jobs = await self.queue.claim_due(job_type.value, self.concurrency)
        if jobs:
            await asyncio.gather(*(self._process(job) for job in jobs))
        return len(jobs)

    async def _wait_poll_interval(self) -> None:
        try:
            await asyncio.wait_for(self._stopping.wait(), timeout=self.poll_interval)
        except TimeoutError:
            return

    async def _worker_loop(self, job_type: ApprovalJobType) -> None:
        logger.info("Approval worker started for %s", job_type.value)
        while not self._stopping.is_set():
            try:
                processed = await self.run_due(job_type)
            except TransientInfrastructureException:
                logger.exception("Approval worker for %s: queue unavailable", job_type.value)
                processed = 0
            if processed == 0:
                await self._wait_poll_interval()
        logger.info("Approval worker stopped for %s", job_type.value)

    @property
    def running(self) -> bool:
        """True while at least one worker loop is alive."""
        return any(not task.done() for task in self._workers)

    def start(self) -> None:
        """Spawn one worker loop per job type. Idempotent."""
        if self._workers:
            return
        if self.handler is None:
            raise RuntimeError("ApprovalJobScheduler has no handler; cannot start workers")
        self._stopping.clear()
        self._workers = [
            asyncio.create_task(
                self._worker_loop(job_type), name=f"approval-worker-{job_type.value}"
            )
            for job_type in self.delays
        ]

    async def shutdown(self, timeout: float = 10.0) -> None:
        """Stop workers (cancelling any still busy after timeout) and close the queue."""
        self._stopping.set()
        if self._workers:
            done, pending = await asyncio.wait(self._workers, timeout=timeout)
            for task in pending:
                task.cancel()
            for task in pending:
                try:
                    await task
                except asyncio.CancelledError:
                    logger.info("Approval worker %s cancelled", task.get_name())
            self._workers = []
        await self.queue.close()
