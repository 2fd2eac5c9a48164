"""Reminder and escalation handlers for versions waiting on approval.

Handlers run out of band from delayed jobs, at least once. Each reloads
the version and does nothing unless it is still IN_REVIEW, so a job that
fires after the version was decided (or races its cancellation) is harmless.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from app.application.dtos.document import DocumentResult, DocumentVersionResult
from app.application.dtos.user import UserResult
from app.application.interfaces.repositories import IUnitOfWork
from app.application.interfaces.services import INotificationService
from app.core.constants import APPROVAL_ESCALATION_DELAY_HOURS
from app.domain.entities.document import ApprovalTally, DocumentVersionEntity
from app.domain.enums import ProjectMemberRole
from app.shared.enums import ApprovalJobType
from app.shared.telemetry.logging import get_logger
from app.shared.telemetry.tracing import traced

logger = get_logger(__name__)


@dataclass(frozen=True)
class _ReviewState:
    version: DocumentVersionResult
    document: DocumentResult
    pending: list[UserResult]


class ApprovalReminderHandler:
    """Sends reminder and escalation notifications for versions still in review."""

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        notifier: INotificationService,
        escalation_delay_hours: float = APPROVAL_ESCALATION_DELAY_HOURS,
    ) -> None:
        self.uow_factory = uow_factory
        self.notifier = notifier
        self.escalation_delay_hours = escalation_delay_hours

    async def handle(self, job_type: str, payload: dict[str, Any]) -> bool:
        """Dispatch a job by type. Returns True when a notification was sent."""
        if job_type == ApprovalJobType.REMINDER:
            return await self.send_reminder(payload["version_id"])
        if job_type == ApprovalJobType.ESCALATION:
            return await self.send_escalation(payload["version_id"])
        raise ValueError(f"Unknown approval job type: {job_type}")

    async def _load_review_state(
        self, uow: IUnitOfWork, version_id: str
    ) -> _ReviewState | None:
        """Return the version with its pending approvers, or None when nothing is owed."""
        version = await uow.versions.get_by_id(version_id)
        if version is None:
            logger.info("Version %s no longer exists; skipping", version_id)
            return None
        entity = DocumentVersionEntity(
            id=version.id,
            document_id=version.document_id,
            version_no=version.version_no,
            status=version.status,
        )
        if not entity.accepts_decisions():
            logger.info(
                "Version %s is %s; skipping notification", version_id, version.status
            )
            return None
        document = await uow.documents.get_by_id(version.document_id)
        if document is None:
            return None

        roster = await uow.projects.list_active_members(
            document.project_id, ProjectMemberRole.REVIEWER.value
        )
        tally = ApprovalTally()
        for a in await uow.approvals.list_by_version(version_id):
            tally.record(a.approver_id, a.decision)
        pending_ids = set(tally.pending([u.id for u in roster]))
        pending = [u for u in roster if u.id in pending_ids]
        if not pending:
            logger.info("No pending approvers for version %s; skipping", version_id)
            return None
        return _ReviewState(version=version, document=document, pending=pending)

    async def _notify(self, to_emails: list[str], subject: str, body: str) -> bool:
        try:
            await self.notifier.send(to_emails, subject, body)
        except Exception:
            logger.exception("Approval notification failed: %s", subject)
            return False
        return True

    @traced("approvals.send_reminder")
    async def send_reminder(self, version_id: str) -> bool:
        """Remind pending approvers of a version still in review."""
        async with self.uow_factory() as uow:
            state = await self._load_review_state(uow, version_id)
        if state is None:
            return False

        emails = [u.email for u in state.pending]
        subject = f"Reminder: document awaiting approval - {state.document.title}"
        body = (
            f"Hello,\n\n"
            f'Document "{state.document.title}" (version {state.version.version_no}) '
            f"is waiting for your approval.\n\n"
            f"Please review it and record your decision."
        )
        sent = await self._notify(emails, subject, body)
        if sent:
            logger.info(
                "Sent approval reminder for version %s to %d approvers",
                version_id,
                len(emails),
            )
        return sent

    @traced("approvals.send_escalation")
    async def send_escalation(self, version_id: str) -> bool:
        """Escalate to the document owner and project managers when approval is overdue."""
        async with self.uow_factory() as uow:
            state = await self._load_review_state(uow, version_id)
            if state is None:
                return False
            owner = await uow.users.get_by_id(state.document.owner_id)
            managers = await uow.projects.list_active_members(
                state.document.project_id, ProjectMemberRole.PM.value
            )

        recipients: list[str] = []
        for user in ([owner] if owner else []) + managers:
            if user.email not in recipients:
                recipients.append(user.email)
        if not recipients:
            logger.info("No escalation recipients for version %s; skipping", version_id)
            return False

        names = ", ".join(u.full_name for u in state.pending)
        subject = (
            f"ESCALATION: document awaiting approval for "
            f"{self.escalation_delay_hours:g} hours - {state.document.title}"
        )
        body = (
            f"Approval deadline exceeded.\n\n"
            f"Document: {state.document.title}\n"
            f"Version: {state.version.version_no}\n"
            f"Waiting on: {names}\n"
            f"Pending approvals: {len(state.pending)}\n\n"
            f"Please follow up with the approvers."
        )
        sent = await self._notify(recipients, subject, body)
        if sent:
            logger.info(
                "Sent approval escalation for version %s to %d recipients",
                version_id,
                len(recipients),
            )
        return sent
