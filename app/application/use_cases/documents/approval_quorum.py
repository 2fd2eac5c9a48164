"""Approval quorum: record decisions, reject or promote versions."""

from __future__ import annotations

from collections.abc import Callable

from app.application.dtos.document import DecisionResult
from app.application.interfaces.repositories import IUnitOfWork
from app.application.interfaces.services import IApprovalScheduler
from app.core.constants import APPROVAL_QUORUM
from app.domain.entities.document import ApprovalTally, DocumentVersionEntity
from app.domain.enums import ApprovalDecision
from app.domain.exceptions import ResourceNotFoundException, ValidationException
from app.shared.telemetry.logging import get_logger
from app.shared.telemetry.tracing import traced
from app.shared.utils import utc_now

logger = get_logger(__name__)


class ApprovalDecisionService:
    """Records approver decisions and drives the version review state machine.

    A decision runs in one unit of work with the version row locked, so the
    quorum check sees every committed decision. A rejection archives the
    version; reaching quorum promotes it through the repository's promotion
    transaction. Pending reminder jobs are cancelled after commit once the
    version has left review.
    """

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        scheduler: IApprovalScheduler,
        quorum: int = APPROVAL_QUORUM,
    ) -> None:
        if quorum < 1:
            raise ValueError("quorum must be at least 1")
        self.uow_factory = uow_factory
        self.scheduler = scheduler
        self.quorum = quorum

    @staticmethod
    def _parse_decision(decision: str) -> ApprovalDecision:
        try:
            return ApprovalDecision(decision)
        except ValueError as e:
            raise ValidationException(
                f"Invalid decision '{decision}'; expected one of "
                f"{', '.join(ApprovalDecision.values())}",
                field="decision",
            ) from e

    @traced("documents.record_decision")
    async def record_decision(
        self,
        version_id: str,
        approver_id: str,
        decision: str,
        comment: str | None = None,
    ) -> DecisionResult:
        """Record (or overwrite) an approver's decision on an IN_REVIEW version.

        Raises:
            ResourceNotFoundException: Version or approver does not exist.
            VersionClosedException: Version is no longer IN_REVIEW.
            ValidationException: Unknown decision value.
        """
        parsed = self._parse_decision(decision)
        left_review = False
        promoted = False

        async with self.uow_factory() as uow:
            version = await uow.versions.get_for_update(version_id)
            if not version:
                raise ResourceNotFoundException("document_version", version_id)
            if not await uow.users.get_by_id(approver_id):
                raise ResourceNotFoundException("user", approver_id)

            entity = DocumentVersionEntity(
                id=version.id,
                document_id=version.document_id,
                version_no=version.version_no,
                status=version.status,
            )
            entity.ensure_accepts_decisions()

            approval = await uow.approvals.upsert_decision(
                version_id, approver_id, parsed.value, comment, utc_now()
            )

            if parsed == ApprovalDecision.REJECTED:
                left_review = await uow.versions.archive_if_in_review(version_id)
                logger.info(
                    "Version %s rejected by %s; archived", version_id, approver_id
                )
            else:
                tally = ApprovalTally()
                for a in await uow.approvals.list_by_version(version_id):
                    tally.record(a.approver_id, a.decision)
                if tally.reaches_quorum(self.quorum):
                    outcome = await uow.documents.promote_version(
                        version.document_id, version_id
                    )
                    promoted = outcome.promoted
                    left_review = True
                    if promoted:
                        logger.info(
                            "Version %s published for document %s (archived %s)",
                            version_id,
                            version.document_id,
                            outcome.archived_version_id,
                        )

            current = await uow.versions.get_by_id(version_id)
            if current is None:
                raise ResourceNotFoundException("document_version", version_id)

        if left_review:
            await self.scheduler.cancel(version_id)
        return DecisionResult(approval=approval, version=current, promoted=promoted)
