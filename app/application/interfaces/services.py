"""Service interfaces (ports) for the application layer.

Protocols define contracts for adapters and schedulers (DIP).
"""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING, Any, Protocol

from app.domain.enums import ScanVerdict

if TYPE_CHECKING:
    from app.application.dtos.jobs import Job


# Malware scanner interface
class IMalwareScanner(Protocol):
    """Protocol for content scanning before a blob is accepted."""

    # True for the development bypass; versions are then recorded as BYPASSED.
    bypassed: bool

    async def scan(self, data: bytes) -> ScanVerdict:
        """Return CLEAN or INFECTED. Raises ScannerUnavailableError on outage."""


# Notification service interface (reminder/escalation)
class INotificationService(Protocol):
    """Protocol for sending notifications (e.g. email) to a list of recipients."""

    async def send(
        self,
        to_emails: list[str],
        subject: str,
        body: str,
    ) -> None:
        """Send notification (e.g. email) to the given addresses. No-op or log if not configured."""


# Delayed job queue interface
class IDelayedJobQueue(Protocol):
    """Protocol for a durable delayed job queue with delayed and waiting sets."""

    async def enqueue(
        self, job_type: str, payload: dict[str, Any], delay: timedelta
    ) -> Job:
        """Schedule a job to become due after delay."""

    async def list_pending(self, job_type: str) -> list[Job]:
        """Return jobs not yet claimed (delayed and waiting)."""

    async def remove(self, job: Job) -> bool:
        """Remove a pending job. Returns False if it was already claimed or gone."""

    async def claim_due(self, job_type: str, limit: int) -> list[Job]:
        """Atomically move up to limit due jobs to active and return them."""

    async def ack(self, job: Job) -> None:
        """Mark a claimed job completed."""

    async def fail(self, job: Job, error: str) -> None:
        """Mark a claimed job failed with an error message."""

    async def close(self) -> None:
        """Release connections."""


# Approval scheduler interface (used by ingest and decision services)
class IApprovalScheduler(Protocol):
    """Protocol for scheduling and cancelling reminder/escalation jobs of a version."""

    async def schedule(self, version_id: str, document_id: str) -> None:
        """Enqueue the reminder and escalation jobs for a newly ingested version."""

    async def cancel(self, version_id: str) -> None:
        """Remove pending jobs for the version. Best effort; never raises."""
