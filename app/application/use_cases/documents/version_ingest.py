"""Version ingest: validate, digest, scan, store and register document versions."""

from __future__ import annotations

import asyncio
import hashlib
from collections.abc import Callable
from dataclasses import dataclass

from app.application.dtos.document import (
    DocumentCreate,
    DocumentDetail,
    DocumentInput,
    DocumentVersionCreate,
    DocumentVersionResult,
    UploadedFile,
    VersionDetail,
)
from app.application.interfaces.repositories import IUnitOfWork
from app.application.interfaces.services import IApprovalScheduler, IMalwareScanner
from app.application.interfaces.storage import IObjectStore
from app.core.constants import MAX_UPLOAD_SIZE_BYTES, STORAGE_KEY_ROOT
from app.domain.enums import (
    DocumentClassification,
    DocumentType,
    MalwareScanStatus,
    RetentionPolicy,
    ScanVerdict,
)
from app.domain.exceptions import (
    IntegrityViolationException,
    ResourceNotFoundException,
    ValidationException,
)
from app.domain.value_objects.core import Checksum, VersionNumber
from app.shared.telemetry.logging import get_logger
from app.shared.telemetry.tracing import traced
from app.shared.utils.generators import generate_cuid

logger = get_logger(__name__)


def _compute_checksum_sync(data: bytes) -> str:
    """Blocking: SHA-256 over the payload (run in executor)."""
    return hashlib.sha256(data).hexdigest()


@dataclass(frozen=True)
class _InspectedPayload:
    checksum: Checksum
    scan_status: MalwareScanStatus


def _require_choice(value: str, allowed: list[str], field: str) -> str:
    if value not in allowed:
        raise ValidationException(
            f"Invalid {field} '{value}'; expected one of {', '.join(allowed)}",
            field=field,
        )
    return value


class DocumentUploadService:
    """Single responsibility: accept uploads as new IN_REVIEW document versions.

    Every version passes the same pipeline: size check, SHA-256 digest,
    malware gate, then (inside one unit of work) blob put, row insert and
    reminder scheduling. Digest and scan run before the unit of work opens so
    no transaction or store lock is held across scanner I/O. A row is never
    written without its blob; if any later step fails the row is rolled back,
    the blob removed and the reminder jobs cancelled.
    """

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        storage: IObjectStore,
        scanner: IMalwareScanner,
        scheduler: IApprovalScheduler,
        max_upload_size: int = MAX_UPLOAD_SIZE_BYTES,
    ) -> None:
        self.uow_factory = uow_factory
        self.storage = storage
        self.scanner = scanner
        self.scheduler = scheduler
        self.max_upload_size = max_upload_size

    def _validate_file(self, file: UploadedFile) -> None:
        if file.size == 0:
            raise ValidationException("Uploaded file is empty", field="file")
        if file.size > self.max_upload_size:
            raise ValidationException(
                f"File exceeds maximum upload size of {self.max_upload_size} bytes "
                f"(got {file.size})",
                field="file",
            )
        if not file.mime_type or not file.mime_type.strip():
            raise ValidationException("File content type is required", field="mime_type")

    @staticmethod
    def _parse_label(version_label: str | None) -> VersionNumber | None:
        if version_label is None:
            return None
        try:
            return VersionNumber.parse(version_label)
        except ValueError as e:
            raise ValidationException(str(e), field="version_no") from e

    @staticmethod
    def _next_version_no(
        document_id: str,
        latest: DocumentVersionResult | None,
        requested: VersionNumber | None,
    ) -> str:
        """Derive the label of the new version from the latest stored one.

        No prior version gives 1.0.0; a malformed stored label also restarts
        at 1.0.0 (logged). An explicit label must exceed the latest valid one.
        """
        latest_number: VersionNumber | None = None
        if latest is not None:
            try:
                latest_number = VersionNumber.parse(latest.version_no)
            except ValueError:
                logger.warning(
                    "Stored version label %r of document %s is malformed; restarting at %s",
                    latest.version_no,
                    document_id,
                    VersionNumber.INITIAL,
                )
        if requested is not None:
            if latest_number is not None and requested <= latest_number:
                raise ValidationException(
                    f"Version {requested} must be greater than latest version {latest_number}",
                    field="version_no",
                )
            return str(requested)
        if latest_number is None:
            return VersionNumber.INITIAL
        return str(latest_number.next_patch())

    async def _compute_checksum(self, data: bytes) -> Checksum:
        return Checksum(await asyncio.to_thread(_compute_checksum_sync, data))

    async def _inspect(self, file: UploadedFile, document_id: str) -> _InspectedPayload:
        """Digest and malware-scan the payload. Raises IntegrityViolationException if infected."""
        checksum = await self._compute_checksum(file.content)
        scan_status = await self._scan(file.content, document_id)
        return _InspectedPayload(checksum=checksum, scan_status=scan_status)

    async def _scan(self, data: bytes, document_id: str) -> MalwareScanStatus:
        verdict = await self.scanner.scan(data)
        if verdict == ScanVerdict.INFECTED:
            logger.warning("Malware detected in upload for document %s; rejected", document_id)
            raise IntegrityViolationException(document_id)
        if self.scanner.bypassed:
            return MalwareScanStatus.BYPASSED
        return MalwareScanStatus.CLEAN

    async def _discard_blob(self, storage_key: str) -> None:
        """Compensate a put whose row was not committed. Logs failures; caller re-raises."""
        try:
            await self.storage.delete(storage_key)
        except Exception:
            logger.exception("Failed to remove orphaned blob %s", storage_key)

    async def _store_version(
        self,
        uow: IUnitOfWork,
        document_id: str,
        storage_key_prefix: str,
        uploader_id: str,
        file: UploadedFile,
        inspected: _InspectedPayload,
        requested: VersionNumber | None,
        stored_keys: list[str],
        scheduled: list[str],
    ) -> DocumentVersionResult:
        """Put the blob, insert the IN_REVIEW row and schedule its reminders.

        Runs inside the caller's unit of work: a queue outage raised by the
        scheduler rolls the row back like any other failure.
        """
        latest = await uow.versions.get_latest(document_id)
        version_no = self._next_version_no(document_id, latest, requested)

        version_id = generate_cuid()
        storage_key = f"{storage_key_prefix}/{version_id}"
        await self.storage.put(storage_key, file.content, file.mime_type)
        stored_keys.append(storage_key)

        version = await uow.versions.create_version(
            DocumentVersionCreate(
                id=version_id,
                document_id=document_id,
                version_no=version_no,
                checksum=str(inspected.checksum),
                size_bytes=file.size,
                mime_type=file.mime_type,
                storage_key=storage_key,
                malware_scan_status=inspected.scan_status.value,
                created_by=uploader_id,
            )
        )
        await self.scheduler.schedule(version.id, document_id)
        scheduled.append(version.id)
        return version

    async def _compensate(self, stored_keys: list[str], scheduled: list[str]) -> None:
        """Undo side effects of a unit of work that did not commit."""
        for version_id in scheduled:
            await self.scheduler.cancel(version_id)
        for key in stored_keys:
            await self._discard_blob(key)

    @traced("documents.ingest_version")
    async def ingest_version(
        self,
        document_id: str,
        uploader_id: str,
        file: UploadedFile,
        version_label: str | None = None,
    ) -> DocumentVersionResult:
        """Add a new IN_REVIEW version to an existing document.

        Raises:
            ValidationException: Empty or oversized payload, malformed or
                non-increasing version label.
            IntegrityViolationException: Scanner reported the payload infected.
            ResourceNotFoundException: Document or uploader does not exist.
            DocumentVersionConflictException: A concurrent upload took the label.
            JobQueueUnavailableError: Reminders could not be scheduled; nothing
                is persisted.
        """
        self._validate_file(file)
        requested = self._parse_label(version_label)
        inspected = await self._inspect(file, document_id)

        stored_keys: list[str] = []
        scheduled: list[str] = []
        try:
            async with self.uow_factory() as uow:
                document = await uow.documents.get_by_id(document_id)
                if not document:
                    raise ResourceNotFoundException("document", document_id)
                if not await uow.users.get_by_id(uploader_id):
                    raise ResourceNotFoundException("user", uploader_id)
                version = await self._store_version(
                    uow,
                    document.id,
                    document.storage_key_prefix,
                    uploader_id,
                    file,
                    inspected,
                    requested,
                    stored_keys,
                    scheduled,
                )
        except Exception:
            await self._compensate(stored_keys, scheduled)
            raise

        logger.info(
            "Ingested version %s (%s) of document %s",
            version.id,
            version.version_no,
            document_id,
        )
        return version

    @traced("documents.create_document")
    async def create_document(
        self,
        project_id: str,
        created_by: str,
        payload: DocumentInput,
        file: UploadedFile,
    ) -> DocumentDetail:
        """Create a document together with its first version (1.0.0) in one transaction."""
        if not payload.title or not payload.title.strip():
            raise ValidationException("Document title is required", field="title")
        _require_choice(payload.doc_type, DocumentType.values(), "doc_type")
        _require_choice(
            payload.classification, DocumentClassification.values(), "classification"
        )
        _require_choice(
            payload.retention_policy, RetentionPolicy.values(), "retention_policy"
        )
        self._validate_file(file)
        document_id = generate_cuid()
        inspected = await self._inspect(file, document_id)

        stored_keys: list[str] = []
        scheduled: list[str] = []
        try:
            async with self.uow_factory() as uow:
                if not await uow.projects.get_by_id(project_id):
                    raise ResourceNotFoundException("project", project_id)
                if not await uow.users.get_by_id(payload.owner_id):
                    raise ResourceNotFoundException("user", payload.owner_id)
                if created_by != payload.owner_id and not await uow.users.get_by_id(
                    created_by
                ):
                    raise ResourceNotFoundException("user", created_by)

                document = await uow.documents.create_document(
                    DocumentCreate(
                        id=document_id,
                        project_id=project_id,
                        title=payload.title.strip(),
                        doc_type=payload.doc_type,
                        classification=payload.classification,
                        owner_id=payload.owner_id,
                        storage_key_prefix=f"{STORAGE_KEY_ROOT}/{document_id}",
                        tags=sorted(set(payload.tags)),
                        linked_task_ids=sorted(set(payload.linked_task_ids)),
                        linked_kpi_ids=sorted(set(payload.linked_kpi_ids)),
                        retention_policy=payload.retention_policy,
                    )
                )
                version = await self._store_version(
                    uow,
                    document.id,
                    document.storage_key_prefix,
                    created_by,
                    file,
                    inspected,
                    None,
                    stored_keys,
                    scheduled,
                )
        except Exception:
            await self._compensate(stored_keys, scheduled)
            raise

        logger.info("Created document %s with version %s", document.id, version.id)
        return DocumentDetail(
            document=document,
            versions=[VersionDetail(version=version, approvals=[])],
        )
