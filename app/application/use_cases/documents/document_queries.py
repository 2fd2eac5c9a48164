"""Document queries: detail, download of the published version, and listing."""

from __future__ import annotations

from collections.abc import Callable

from app.application.dtos.document import (
    DocumentDetail,
    DocumentDownload,
    DocumentListFilters,
    DocumentPage,
    VersionDetail,
)
from app.application.interfaces.repositories import IUnitOfWork
from app.application.interfaces.storage import IObjectStore
from app.core.constants import ALLOWED_PAGE_SIZES, DEFAULT_PAGE_SIZE
from app.domain.exceptions import ResourceNotFoundException, ValidationException


class DocumentQueryService:
    """Single responsibility: read documents and stream the current version."""

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        storage: IObjectStore,
    ) -> None:
        self.uow_factory = uow_factory
        self.storage = storage

    async def get_document(self, document_id: str) -> DocumentDetail:
        """Return document with all versions (newest first) and their approvals."""
        async with self.uow_factory() as uow:
            document = await uow.documents.get_by_id(document_id)
            if not document:
                raise ResourceNotFoundException("document", document_id)
            versions = await uow.versions.list_by_document(document_id)
            approvals = await uow.approvals.list_by_versions([v.id for v in versions])
        return DocumentDetail(
            document=document,
            versions=[
                VersionDetail(version=v, approvals=approvals.get(v.id, []))
                for v in versions
            ],
        )

    async def download_current_version(self, document_id: str) -> DocumentDownload:
        """Stream the published version. Raises ResourceNotFoundException when none is published."""
        async with self.uow_factory() as uow:
            document = await uow.documents.get_by_id(document_id)
            if not document or not document.current_version_id:
                raise ResourceNotFoundException("published_version", document_id)
            version = await uow.versions.get_by_id(document.current_version_id)
            if not version:
                raise ResourceNotFoundException(
                    "document_version", document.current_version_id
                )
        return DocumentDownload(
            stream=self.storage.get_stream(version.storage_key),
            mime_type=version.mime_type,
            file_name=f"{document.title}-v{version.version_no}",
            size_bytes=version.size_bytes,
        )

    async def list_documents(
        self,
        filters: DocumentListFilters | None = None,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> DocumentPage:
        """List documents, newest first. page_size must be one of 20, 50 or 100."""
        if page < 1:
            raise ValidationException("page must be >= 1", field="page")
        if page_size not in ALLOWED_PAGE_SIZES:
            raise ValidationException(
                f"page_size must be one of {', '.join(str(s) for s in ALLOWED_PAGE_SIZES)}",
                field="page_size",
            )
        filters = filters or DocumentListFilters()
        async with self.uow_factory() as uow:
            total = await uow.documents.count_documents(filters)
            items = await uow.documents.list_documents(
                filters, skip=(page - 1) * page_size, limit=page_size
            )
        return DocumentPage(items=items, page=page, page_size=page_size, total=total)
