"""Document repository. Returns application DTOs.

promote_version is the single writer of current_version_id: it locks the
document row, re-checks the candidate version, archives the previous
current version and publishes the candidate in one transaction.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import cast, func, select, update
from sqlalchemy.dialects.postgresql import JSONB, array
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.dtos.document import (
    DocumentCreate,
    DocumentListFilters,
    DocumentResult,
    PromotionOutcome,
)
from app.domain.enums import DocumentVersionStatus
from app.domain.exceptions import ResourceNotFoundException, StateConflictException
from app.infrastructure.persistence.models.document import Document, DocumentVersion
from app.infrastructure.persistence.repositories.base import BaseRepository
from app.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


def _create_to_document(d: DocumentCreate) -> Document:
    """Map DocumentCreate (write-model) to ORM Document for persistence."""
    return Document(
        id=d.id,
        project_id=d.project_id,
        title=d.title,
        doc_type=d.doc_type,
        classification=d.classification,
        owner_id=d.owner_id,
        storage_key_prefix=d.storage_key_prefix,
        tags=list(d.tags),
        linked_task_ids=list(d.linked_task_ids),
        linked_kpi_ids=list(d.linked_kpi_ids),
        retention_policy=d.retention_policy,
        current_version_id=None,
    )


def _document_to_result(d: Document) -> DocumentResult:
    """Map ORM Document to application DocumentResult."""
    return DocumentResult(
        id=d.id,
        project_id=d.project_id,
        title=d.title,
        doc_type=d.doc_type,
        classification=d.classification,
        owner_id=d.owner_id,
        storage_key_prefix=d.storage_key_prefix,
        tags=list(d.tags or []),
        linked_task_ids=list(d.linked_task_ids or []),
        linked_kpi_ids=list(d.linked_kpi_ids or []),
        retention_policy=d.retention_policy,
        current_version_id=d.current_version_id,
        created_at=d.created_at,
        updated_at=d.updated_at,
    )


def _filter_conditions(filters: DocumentListFilters) -> list[Any]:
    conditions: list[Any] = []
    if filters.project_id:
        conditions.append(Document.project_id == filters.project_id)
    if filters.doc_type:
        conditions.append(Document.doc_type == filters.doc_type)
    if filters.classification:
        conditions.append(Document.classification == filters.classification)
    if filters.tags:
        conditions.append(
            cast(Document.tags, JSONB).has_any(array(list(filters.tags)))
        )
    if filters.search:
        conditions.append(Document.title.ilike(f"%{filters.search}%"))
    return conditions


class DocumentRepository(BaseRepository[Document]):
    """Document repository. create_document() accepts DocumentCreate; reads return DocumentResult."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, Document)

    async def get_by_id(self, document_id: str) -> DocumentResult | None:
        row = await self._get_model(document_id)
        return _document_to_result(row) if row else None

    async def create_document(self, document: DocumentCreate) -> DocumentResult:
        row = await self._add(_create_to_document(document))
        return _document_to_result(row)

    async def list_documents(
        self, filters: DocumentListFilters, skip: int = 0, limit: int = 20
    ) -> list[DocumentResult]:
        result = await self.db.execute(
            select(Document)
            .where(*_filter_conditions(filters))
            .order_by(Document.created_at.desc(), Document.id.desc())
            .offset(skip)
            .limit(limit)
        )
        return [_document_to_result(d) for d in result.scalars().all()]

    async def count_documents(self, filters: DocumentListFilters) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(Document).where(*_filter_conditions(filters))
        )
        return int(result.scalar_one())

    async def promote_version(
        self, document_id: str, version_id: str
    ) -> PromotionOutcome:
        """Publish version_id and point the document at it (serialised by document row lock)."""
        document = await self._get_model(document_id, for_update=True)
        if document is None:
            raise ResourceNotFoundException("document", document_id)
        version = (
            await self.db.execute(
                select(DocumentVersion)
                .where(DocumentVersion.id == version_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
        ).scalar_one_or_none()
        if version is None or version.document_id != document_id:
            raise ResourceNotFoundException("document_version", version_id)
        if version.status != DocumentVersionStatus.IN_REVIEW.value:
            logger.info(
                "Promotion skipped: version %s already %s", version_id, version.status
            )
            return PromotionOutcome(promoted=False)

        previous_id = document.current_version_id
        archived_id: str | None = None
        # Archive first: at most one PUBLISHED row per document is enforced by index.
        if previous_id and previous_id != version_id:
            archived = await self.db.execute(
                update(DocumentVersion)
                .where(
                    DocumentVersion.id == previous_id,
                    DocumentVersion.status == DocumentVersionStatus.PUBLISHED.value,
                )
                .values(status=DocumentVersionStatus.ARCHIVED.value)
            )
            if archived.rowcount:
                archived_id = previous_id
        await self.db.execute(
            update(DocumentVersion)
            .where(
                DocumentVersion.id == version_id,
                DocumentVersion.status == DocumentVersionStatus.IN_REVIEW.value,
            )
            .values(status=DocumentVersionStatus.PUBLISHED.value)
        )
        current_matches = (
            Document.current_version_id.is_(None)
            if previous_id is None
            else Document.current_version_id == previous_id
        )
        swapped = await self.db.execute(
            update(Document)
            .where(Document.id == document_id, current_matches)
            .values(current_version_id=version_id, updated_at=func.now())
        )
        if swapped.rowcount != 1:
            raise StateConflictException(
                "Document current version changed during promotion",
                "DOCUMENT_VERSION_CONFLICT",
                {"document_id": document_id, "version_id": version_id},
            )
        self.db.expire(document)
        self.db.expire(version)
        logger.info(
            "Promoted version %s on document %s (archived %s)",
            version_id,
            document_id,
            archived_id,
        )
        return PromotionOutcome(promoted=True, archived_version_id=archived_id)
