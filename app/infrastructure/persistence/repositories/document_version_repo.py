"""Document version and approval repositories. Return application DTOs."""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.dtos.document import (
    DocumentApprovalResult,
    DocumentVersionCreate,
    DocumentVersionResult,
)
from app.domain.enums import DocumentVersionStatus
from app.domain.exceptions import DocumentVersionConflictException
from app.infrastructure.persistence.models.document import (
    DocumentApproval,
    DocumentVersion,
)
from app.infrastructure.persistence.repositories.base import BaseRepository
from app.shared.utils.generators import generate_cuid


def _version_to_result(v: DocumentVersion) -> DocumentVersionResult:
    """Map ORM DocumentVersion to application DocumentVersionResult."""
    return DocumentVersionResult(
        id=v.id,
        document_id=v.document_id,
        version_no=v.version_no,
        status=v.status,
        checksum=v.checksum,
        size_bytes=v.size_bytes,
        mime_type=v.mime_type,
        storage_key=v.storage_key,
        malware_scan_status=v.malware_scan_status,
        created_by=v.created_by,
        created_at=v.created_at,
    )


def _approval_to_result(a: DocumentApproval) -> DocumentApprovalResult:
    return DocumentApprovalResult(
        id=a.id,
        version_id=a.version_id,
        approver_id=a.approver_id,
        decision=a.decision,
        comment=a.comment,
        decided_at=a.decided_at,
    )


class DocumentVersionRepository(BaseRepository[DocumentVersion]):
    """Version rows are immutable apart from status."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, DocumentVersion)

    async def get_by_id(self, version_id: str) -> DocumentVersionResult | None:
        row = await self._get_model(version_id)
        return _version_to_result(row) if row else None

    async def get_for_update(self, version_id: str) -> DocumentVersionResult | None:
        """SELECT ... FOR UPDATE; the lock is held until the transaction ends."""
        row = await self._get_model(version_id, for_update=True)
        return _version_to_result(row) if row else None

    async def get_latest(self, document_id: str) -> DocumentVersionResult | None:
        result = await self.db.execute(
            select(DocumentVersion)
            .where(DocumentVersion.document_id == document_id)
            .order_by(DocumentVersion.created_at.desc(), DocumentVersion.id.desc())
            .limit(1)
        )
        row = result.scalar_one_or_none()
        return _version_to_result(row) if row else None

    async def list_by_document(self, document_id: str) -> list[DocumentVersionResult]:
        result = await self.db.execute(
            select(DocumentVersion)
            .where(DocumentVersion.document_id == document_id)
            .order_by(DocumentVersion.created_at.desc(), DocumentVersion.id.desc())
        )
        return [_version_to_result(v) for v in result.scalars().all()]

    async def create_version(
        self, version: DocumentVersionCreate
    ) -> DocumentVersionResult:
        """Insert an IN_REVIEW row; duplicate (document_id, version_no) maps to a conflict."""
        row = DocumentVersion(
            id=version.id,
            document_id=version.document_id,
            version_no=version.version_no,
            status=DocumentVersionStatus.IN_REVIEW.value,
            checksum=version.checksum,
            size_bytes=version.size_bytes,
            mime_type=version.mime_type,
            storage_key=version.storage_key,
            malware_scan_status=version.malware_scan_status,
            created_by=version.created_by,
        )
        try:
            # Savepoint so the conflict does not poison the outer transaction.
            async with self.db.begin_nested():
                self.db.add(row)
                await self.db.flush()
        except IntegrityError as e:
            raise DocumentVersionConflictException(
                version.document_id, version.version_no
            ) from e
        await self.db.refresh(row)
        return _version_to_result(row)

    async def archive_if_in_review(self, version_id: str) -> bool:
        result = await self.db.execute(
            update(DocumentVersion)
            .where(
                DocumentVersion.id == version_id,
                DocumentVersion.status == DocumentVersionStatus.IN_REVIEW.value,
            )
            .values(status=DocumentVersionStatus.ARCHIVED.value)
        )
        return bool(result.rowcount)


class DocumentApprovalRepository(BaseRepository[DocumentApproval]):
    """One row per (version_id, approver_id); later decisions overwrite earlier ones."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, DocumentApproval)

    async def upsert_decision(
        self,
        version_id: str,
        approver_id: str,
        decision: str,
        comment: str | None,
        decided_at: datetime,
    ) -> DocumentApprovalResult:
        stmt = pg_insert(DocumentApproval).values(
            id=generate_cuid(),
            version_id=version_id,
            approver_id=approver_id,
            decision=decision,
            comment=comment,
            decided_at=decided_at,
        )
        stmt = stmt.on_conflict_do_update(
            constraint="uq_document_approval_version_approver",
            set_={
                "decision": stmt.excluded.decision,
                "comment": stmt.excluded.comment,
                "decided_at": stmt.excluded.decided_at,
            },
        ).returning(DocumentApproval)
        result = await self.db.execute(
            stmt, execution_options={"populate_existing": True}
        )
        return _approval_to_result(result.scalar_one())

    async def list_by_version(self, version_id: str) -> list[DocumentApprovalResult]:
        result = await self.db.execute(
            select(DocumentApproval)
            .where(DocumentApproval.version_id == version_id)
            .order_by(DocumentApproval.decided_at, DocumentApproval.id)
        )
        return [_approval_to_result(a) for a in result.scalars().all()]

    async def list_by_versions(
        self, version_ids: list[str]
    ) -> dict[str, list[DocumentApprovalResult]]:
        grouped: dict[str, list[DocumentApprovalResult]] = defaultdict(list)
        if version_ids:
            result = await self.db.execute(
                select(DocumentApproval)
                .where(DocumentApproval.version_id.in_(version_ids))
                .order_by(DocumentApproval.decided_at, DocumentApproval.id)
            )
            for a in result.scalars().all():
                grouped[a.version_id].append(_approval_to_result(a))
        return {vid: grouped.get(vid, []) for vid in version_ids}
