"""In-memory repositories. Callers hold the store lock (see InMemoryUnitOfWork)."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime

from app.application.dtos.document import (
    DocumentApprovalResult,
    DocumentCreate,
    DocumentListFilters,
    DocumentResult,
    DocumentVersionCreate,
    DocumentVersionResult,
    PromotionOutcome,
)
from app.application.dtos.user import ProjectResult, UserResult
from app.domain.entities.document import DocumentVersionEntity
from app.domain.enums import DocumentVersionStatus
from app.domain.exceptions import (
    DocumentVersionConflictException,
    ResourceNotFoundException,
)
from app.infrastructure.persistence.memory.store import InMemoryStore
from app.shared.utils import utc_now
from app.shared.utils.generators import generate_cuid


def _matches(document: DocumentResult, filters: DocumentListFilters) -> bool:
    if filters.project_id and document.project_id != filters.project_id:
        return False
    if filters.doc_type and document.doc_type != filters.doc_type:
        return False
    if filters.classification and document.classification != filters.classification:
        return False
    if filters.tags and not set(filters.tags) & set(document.tags):
        return False
    if filters.search and filters.search.lower() not in document.title.lower():
        return False
    return True


def _entity(version: DocumentVersionResult) -> DocumentVersionEntity:
    return DocumentVersionEntity(
        id=version.id,
        document_id=version.document_id,
        version_no=version.version_no,
        status=version.status,
    )


def _newest_first(rows: list, key) -> list:
    # Insertion order breaks created_at ties.
    indexed = list(enumerate(rows))
    indexed.sort(key=lambda pair: (key(pair[1]), pair[0]), reverse=True)
    return [row for _, row in indexed]


class InMemoryDocumentRepository:
    def __init__(self, store: InMemoryStore) -> None:
        self.store = store

    async def get_by_id(self, document_id: str) -> DocumentResult | None:
        return self.store.tables.documents.get(document_id)

    async def create_document(self, document: DocumentCreate) -> DocumentResult:
        now = utc_now()
        result = DocumentResult(
            id=document.id,
            project_id=document.project_id,
            title=document.title,
            doc_type=document.doc_type,
            classification=document.classification,
            owner_id=document.owner_id,
            storage_key_prefix=document.storage_key_prefix,
            tags=list(document.tags),
            linked_task_ids=list(document.linked_task_ids),
            linked_kpi_ids=list(document.linked_kpi_ids),
            retention_policy=document.retention_policy,
            current_version_id=None,
            created_at=now,
            updated_at=now,
        )
        self.store.tables.documents[result.id] = result
        return result

    def _filtered(self, filters: DocumentListFilters) -> list[DocumentResult]:
        rows = [d for d in self.store.tables.documents.values() if _matches(d, filters)]
        return _newest_first(rows, lambda d: d.created_at)

    async def list_documents(
        self, filters: DocumentListFilters, skip: int = 0, limit: int = 20
    ) -> list[DocumentResult]:
        return self._filtered(filters)[skip : skip + limit]

    async def count_documents(self, filters: DocumentListFilters) -> int:
        return len(self._filtered(filters))

    async def promote_version(
        self, document_id: str, version_id: str
    ) -> PromotionOutcome:
        """No awaits between check and write: the swap is atomic on the event loop."""
        tables = self.store.tables
        document = tables.documents.get(document_id)
        if document is None:
            raise ResourceNotFoundException("document", document_id)
        version = tables.versions.get(version_id)
        if version is None or version.document_id != document_id:
            raise ResourceNotFoundException("document_version", version_id)
        if version.status != DocumentVersionStatus.IN_REVIEW.value:
            return PromotionOutcome(promoted=False)

        archived_id: str | None = None
        previous_id = document.current_version_id
        if previous_id and previous_id != version_id:
            previous = tables.versions.get(previous_id)
            if previous and previous.status == DocumentVersionStatus.PUBLISHED.value:
                retired = _entity(previous)
                retired.supersede()
                tables.versions[previous_id] = replace(previous, status=retired.status.value)
                archived_id = previous_id
        candidate = _entity(version)
        candidate.publish()
        tables.versions[version_id] = replace(version, status=candidate.status.value)
        tables.documents[document_id] = replace(
            document, current_version_id=version_id, updated_at=utc_now()
        )
        return PromotionOutcome(promoted=True, archived_version_id=archived_id)


class InMemoryDocumentVersionRepository:
    def __init__(self, store: InMemoryStore) -> None:
        self.store = store

    async def get_by_id(self, version_id: str) -> DocumentVersionResult | None:
        return self.store.tables.versions.get(version_id)

    async def get_for_update(self, version_id: str) -> DocumentVersionResult | None:
        # The unit of work already holds the store lock.
        return self.store.tables.versions.get(version_id)

    async def list_by_document(self, document_id: str) -> list[DocumentVersionResult]:
        rows = [
            v for v in self.store.tables.versions.values() if v.document_id == document_id
        ]
        return _newest_first(rows, lambda v: v.created_at)

    async def get_latest(self, document_id: str) -> DocumentVersionResult | None:
        versions = await self.list_by_document(document_id)
        return versions[0] if versions else None

    async def create_version(
        self, version: DocumentVersionCreate
    ) -> DocumentVersionResult:
        tables = self.store.tables
        if version.document_id not in tables.documents:
            raise ResourceNotFoundException("document", version.document_id)
        for existing in tables.versions.values():
            if (
                existing.document_id == version.document_id
                and existing.version_no == version.version_no
            ):
                raise DocumentVersionConflictException(
                    version.document_id, version.version_no
                )
        result = DocumentVersionResult(
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
            created_at=utc_now(),
        )
        tables.versions[result.id] = result
        return result

    async def archive_if_in_review(self, version_id: str) -> bool:
        version = self.store.tables.versions.get(version_id)
        if version is None or version.status != DocumentVersionStatus.IN_REVIEW.value:
            return False
        entity = _entity(version)
        entity.reject()
        self.store.tables.versions[version_id] = replace(version, status=entity.status.value)
        return True


class InMemoryDocumentApprovalRepository:
    def __init__(self, store: InMemoryStore) -> None:
        self.store = store

    async def upsert_decision(
        self,
        version_id: str,
        approver_id: str,
        decision: str,
        comment: str | None,
        decided_at: datetime,
    ) -> DocumentApprovalResult:
        approvals = self.store.tables.approvals
        key = (version_id, approver_id)
        existing = approvals.get(key)
        result = DocumentApprovalResult(
            id=existing.id if existing else generate_cuid(),
            version_id=version_id,
            approver_id=approver_id,
            decision=decision,
            comment=comment,
            decided_at=decided_at,
        )
        approvals[key] = result
        return result

    async def list_by_version(self, version_id: str) -> list[DocumentApprovalResult]:
        rows = [a for a in self.store.tables.approvals.values() if a.version_id == version_id]
        return sorted(rows, key=lambda a: a.decided_at)

    async def list_by_versions(
        self, version_ids: list[str]
    ) -> dict[str, list[DocumentApprovalResult]]:
        return {vid: await self.list_by_version(vid) for vid in version_ids}


class InMemoryProjectRepository:
    def __init__(self, store: InMemoryStore) -> None:
        self.store = store

    async def get_by_id(self, project_id: str) -> ProjectResult | None:
        return self.store.tables.projects.get(project_id)

    async def list_active_members(
        self, project_id: str, role: str
    ) -> list[UserResult]:
        tables = self.store.tables
        members: list[UserResult] = []
        for m in tables.members:
            if m.project_id != project_id or m.role != role or m.left_at is not None:
                continue
            user = tables.users.get(m.user_id)
            if user is not None and user.is_active:
                members.append(user)
        return members


class InMemoryUserRepository:
    def __init__(self, store: InMemoryStore) -> None:
        self.store = store

    async def get_by_id(self, user_id: str) -> UserResult | None:
        return self.store.tables.users.get(user_id)

