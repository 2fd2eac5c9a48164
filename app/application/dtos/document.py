"""DTOs for document use cases (no dependency on ORM)."""

from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class UploadedFile:
    """Raw upload handed to the ingest pipeline. Size is the byte length of content."""

    content: bytes
    mime_type: str
    original_name: str | None = None

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class DocumentInput:
    """Caller-supplied fields for create_document."""

    title: str
    doc_type: str
    classification: str
    owner_id: str
    tags: list[str] = field(default_factory=list)
    linked_task_ids: list[str] = field(default_factory=list)
    linked_kpi_ids: list[str] = field(default_factory=list)
    retention_policy: str = "DEFAULT"


@dataclass(frozen=True)
class DocumentCreate:
    """Input for creating a document record (write-model). Use case builds this; repo persists and returns DocumentResult."""

    id: str
    project_id: str
    title: str
    doc_type: str
    classification: str
    owner_id: str
    storage_key_prefix: str
    tags: list[str]
    linked_task_ids: list[str]
    linked_kpi_ids: list[str]
    retention_policy: str


@dataclass(frozen=True)
class DocumentResult:
    """Document read-model."""

    id: str
    project_id: str
    title: str
    doc_type: str
    classification: str
    owner_id: str
    storage_key_prefix: str
    tags: list[str]
    linked_task_ids: list[str]
    linked_kpi_ids: list[str]
    retention_policy: str
    current_version_id: str | None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class DocumentVersionCreate:
    """Input for inserting an IN_REVIEW version row."""

    id: str
    document_id: str
    version_no: str
    checksum: str
    size_bytes: int
    mime_type: str
    storage_key: str
    malware_scan_status: str
    created_by: str


@dataclass(frozen=True)
class DocumentVersionResult:
    """Document version read-model."""

    id: str
    document_id: str
    version_no: str
    status: str
    checksum: str
    size_bytes: int
    mime_type: str
    storage_key: str
    malware_scan_status: str
    created_by: str
    created_at: datetime | None = None


@dataclass(frozen=True)
class DocumentApprovalResult:
    """Approval read-model (latest decision of one approver on one version)."""

    id: str
    version_id: str
    approver_id: str
    decision: str
    comment: str | None
    decided_at: datetime


@dataclass(frozen=True)
class DecisionResult:
    """Outcome of record_decision: the stored approval and the version after the decision."""

    approval: DocumentApprovalResult
    version: DocumentVersionResult
    promoted: bool = False


@dataclass(frozen=True)
class PromotionOutcome:
    """Result of the promotion transaction.

    promoted is False when another attempt already moved the version out of
    IN_REVIEW; archived_version_id is the previously current version, if any.
    """

    promoted: bool
    archived_version_id: str | None = None


@dataclass(frozen=True)
class VersionDetail:
    version: DocumentVersionResult
    approvals: list[DocumentApprovalResult]


@dataclass(frozen=True)
class DocumentDetail:
    """Document with all versions (newest first) and their approvals."""

    document: DocumentResult
    versions: list[VersionDetail]


@dataclass(frozen=True)
class DocumentDownload:
    """Streamed blob of the current published version."""

    stream: AsyncIterator[bytes]
    mime_type: str
    file_name: str
    size_bytes: int


@dataclass(frozen=True)
class DocumentListFilters:
    """Optional filters for list_documents. Tags match when the document has any of them."""

    project_id: str | None = None
    doc_type: str | None = None
    classification: str | None = None
    tags: list[str] = field(default_factory=list)
    search: str | None = None


@dataclass(frozen=True)
class DocumentPage:
    items: list[DocumentResult]
    page: int
    page_size: int
    total: int

    @property
    def total_pages(self) -> int:
        return (self.total + self.page_size - 1) // self.page_size if self.total else 0
