"""Repository interfaces (ports) for the application layer.

Protocols define contracts that infrastructure implementations must fulfill (DIP).
All types reference application DTOs only; no infrastructure imports.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
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


# Document repository interface
class IDocumentRepository(Protocol):
    """Protocol for document repository (DIP)."""

    async def get_by_id(self, document_id: str) -> DocumentResult | None:
        """Return document by ID."""

    async def create_document(self, document: DocumentCreate) -> DocumentResult:
        """Create document from write-model DTO; current_version_id starts unset."""

    async def list_documents(
        self, filters: DocumentListFilters, skip: int = 0, limit: int = 20
    ) -> list[DocumentResult]:
        """Return documents matching filters, newest first."""

    async def count_documents(self, filters: DocumentListFilters) -> int:
        """Return number of documents matching filters."""

    async def promote_version(
        self, document_id: str, version_id: str
    ) -> PromotionOutcome:
        """Atomically publish version_id and make it the document's current version.

        Serialised per document. No-op (promoted=False) when the version is no
        longer IN_REVIEW. Archives the previously current version if different.
        """


# Document version repository interface
class IDocumentVersionRepository(Protocol):
    """Protocol for document version repository (DIP)."""

    async def get_by_id(self, version_id: str) -> DocumentVersionResult | None:
        """Return version by ID."""

    async def get_for_update(self, version_id: str) -> DocumentVersionResult | None:
        """Return version by ID and hold a write lock on it until the unit of work ends."""

    async def get_latest(self, document_id: str) -> DocumentVersionResult | None:
        """Return the most recently created version of a document."""

    async def list_by_document(self, document_id: str) -> list[DocumentVersionResult]:
        """Return all versions of a document, newest first."""

    async def create_version(
        self, version: DocumentVersionCreate
    ) -> DocumentVersionResult:
        """Insert an IN_REVIEW version. Raises DocumentVersionConflictException on duplicate version_no."""

    async def archive_if_in_review(self, version_id: str) -> bool:
        """Set status ARCHIVED only if still IN_REVIEW. Returns True if the row changed."""


# Approval repository interface
class IDocumentApprovalRepository(Protocol):
    """Protocol for approval decisions keyed by (version_id, approver_id)."""

    async def upsert_decision(
        self,
        version_id: str,
        approver_id: str,
        decision: str,
        comment: str | None,
        decided_at: datetime,
    ) -> DocumentApprovalResult:
        """Insert or overwrite the approver's decision on the version."""

    async def list_by_version(self, version_id: str) -> list[DocumentApprovalResult]:
        """Return all decisions recorded for the version."""

    async def list_by_versions(
        self, version_ids: list[str]
    ) -> dict[str, list[DocumentApprovalResult]]:
        """Return decisions grouped by version id (batch). Missing versions map to []."""


# Project repository interface (collaborator, read-only)
class IProjectRepository(Protocol):
    """Protocol for project lookups and roster resolution."""

    async def get_by_id(self, project_id: str) -> ProjectResult | None:
        """Return project by ID."""

    async def list_active_members(
        self, project_id: str, role: str
    ) -> list[UserResult]:
        """Return active users that are current members (left_at unset) with role."""


# User repository interface (collaborator, read-only)
class IUserRepository(Protocol):
    """Protocol for user lookups."""

    async def get_by_id(self, user_id: str) -> UserResult | None:
        """Return user by ID."""


class IUnitOfWork(Protocol):
    """One transaction spanning all repositories.

    Entering begins the transaction; leaving commits, or rolls back when an
    exception propagates.
    """

    documents: IDocumentRepository
    versions: IDocumentVersionRepository
    approvals: IDocumentApprovalRepository
    projects: IProjectRepository
    users: IUserRepository

    async def __aenter__(self) -> IUnitOfWork: ...

    async def __aexit__(self, exc_type, exc, tb) -> None: ...
