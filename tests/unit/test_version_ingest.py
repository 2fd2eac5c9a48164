"""Tests for DocumentUploadService: validation, versioning, malware gate, compensation."""

import hashlib
from dataclasses import replace
from pathlib import Path

import pytest

from app.application.dtos.document import DocumentInput
from app.application.use_cases.documents import DocumentUploadService
from app.domain.enums import DocumentVersionStatus, MalwareScanStatus, ScanVerdict
from app.domain.exceptions import (
    DocumentVersionConflictException,
    IntegrityViolationException,
    ResourceNotFoundException,
    ValidationException,
)
from app.infrastructure.exceptions import JobQueueUnavailableError, ScannerUnavailableError
from app.infrastructure.persistence.memory.repositories import (
    InMemoryDocumentVersionRepository,
)
from app.shared.enums import ApprovalJobType


def _blobs(root: Path) -> list[Path]:
    if not root.exists():
        return []
    return [p for p in root.rglob("*") if p.is_file() and not p.name.endswith(".meta.json")]


def _input(owner_id: str, **overrides) -> DocumentInput:
    fields = {
        "title": "Site Survey",
        "doc_type": "REPORT",
        "classification": "CONFIDENTIAL",
        "owner_id": owner_id,
    }
    fields.update(overrides)
    return DocumentInput(**fields)


class TestCreateDocument:
    async def test_creates_document_with_first_version(
        self, services, people, store, storage, job_queue, tmp_path, make_file
    ) -> None:
        content = b"%PDF-1.7 survey results"
        detail = await services.uploads.create_document(
            people.project.id,
            people.owner.id,
            _input(people.owner.id, tags=["site", "site", "survey"]),
            make_file(content),
        )
        document = detail.document
        assert document.storage_key_prefix == f"documents/{document.id}"
        assert document.current_version_id is None
        assert document.tags == ["site", "survey"]

        [version_detail] = detail.versions
        version = version_detail.version
        assert version.version_no == "1.0.0"
        assert version.status == DocumentVersionStatus.IN_REVIEW.value
        assert version.malware_scan_status == MalwareScanStatus.CLEAN.value
        assert version.checksum == hashlib.sha256(content).hexdigest()
        assert version.size_bytes == len(content)
        assert version.storage_key == f"{document.storage_key_prefix}/{version.id}"
        assert await storage.exists(version.storage_key)
        assert len(_blobs(tmp_path / "blobs")) == 1

        reminders = await job_queue.list_pending(ApprovalJobType.REMINDER.value)
        escalations = await job_queue.list_pending(ApprovalJobType.ESCALATION.value)
        assert [j.payload["version_id"] for j in reminders] == [version.id]
        assert [j.payload["version_id"] for j in escalations] == [version.id]

    @pytest.mark.parametrize(
        ("overrides", "field"),
        [
            ({"title": "  "}, "title"),
            ({"doc_type": "MEMO"}, "doc_type"),
            ({"classification": "SECRET"}, "classification"),
            ({"retention_policy": "FOREVER"}, "retention_policy"),
        ],
    )
    async def test_invalid_metadata_rejected(
        self, services, people, store, scanner, make_file, overrides, field
    ) -> None:
        with pytest.raises(ValidationException) as exc_info:
            await services.uploads.create_document(
                people.project.id,
                people.owner.id,
                _input(people.owner.id, **overrides),
                make_file(),
            )
        assert exc_info.value.details == {"field": field}
        scanner.scan.assert_not_awaited()
        assert store.tables.documents == {}

    async def test_unknown_project_rejected(self, services, people, make_file) -> None:
        with pytest.raises(ResourceNotFoundException):
            await services.uploads.create_document(
                "missing-project", people.owner.id, _input(people.owner.id), make_file()
            )

    async def test_infected_upload_persists_nothing(
        self, services, people, store, scanner, job_queue, tmp_path, make_file
    ) -> None:
        scanner.scan.return_value = ScanVerdict.INFECTED
        with pytest.raises(IntegrityViolationException):
            await services.uploads.create_document(
                people.project.id, people.owner.id, _input(people.owner.id), make_file()
            )
        assert store.tables.documents == {}
        assert store.tables.versions == {}
        assert _blobs(tmp_path / "blobs") == []
        assert await job_queue.list_pending(ApprovalJobType.REMINDER.value) == []


class TestIngestVersion:
    async def test_next_version_increments_patch(self, services, people, document, make_file) -> None:
        version = await services.uploads.ingest_version(
            document.document.id, people.alice.id, make_file(b"revision two")
        )
        assert version.version_no == "1.0.1"
        assert version.created_by == people.alice.id
        assert version.status == DocumentVersionStatus.IN_REVIEW.value

    async def test_explicit_label_must_increase(self, services, people, document, make_file) -> None:
        doc_id = document.document.id
        major = await services.uploads.ingest_version(
            doc_id, people.owner.id, make_file(b"v2"), version_label="2.0.0"
        )
        assert major.version_no == "2.0.0"
        following = await services.uploads.ingest_version(doc_id, people.owner.id, make_file(b"v2.1"))
        assert following.version_no == "2.0.1"

        with pytest.raises(ValidationException, match="greater than"):
            await services.uploads.ingest_version(
                doc_id, people.owner.id, make_file(b"old"), version_label="1.5.0"
            )

    async def test_malformed_label_rejected_before_scan(
        self, services, people, document, scanner, make_file
    ) -> None:
        scanner.scan.reset_mock()
        with pytest.raises(ValidationException) as exc_info:
            await services.uploads.ingest_version(
                document.document.id, people.owner.id, make_file(), version_label="v2"
            )
        assert exc_info.value.details == {"field": "version_no"}
        scanner.scan.assert_not_awaited()

    async def test_malformed_stored_label_restarts_at_initial(
        self, services, people, store, document, make_file
    ) -> None:
        first = document.versions[0].version
        store.tables.versions[first.id] = replace(first, version_no="draft-A")
        version = await services.uploads.ingest_version(
            document.document.id, people.owner.id, make_file(b"after legacy")
        )
        assert version.version_no == "1.0.0"

    async def test_oversized_upload_rejected_without_side_effects(
        self, services, people, document, storage, scanner, store, tmp_path, make_file
    ) -> None:
        uploads = DocumentUploadService(
            services.uow_factory, storage, scanner, services.scheduler, max_upload_size=1024
        )
        scanner.scan.reset_mock()
        versions_before = dict(store.tables.versions)
        with pytest.raises(ValidationException, match="maximum upload size"):
            await uploads.ingest_version(
                document.document.id, people.owner.id, make_file(b"x" * 2048)
            )
        scanner.scan.assert_not_awaited()
        assert store.tables.versions == versions_before
        assert len(_blobs(tmp_path / "blobs")) == 1

    async def test_empty_upload_rejected(self, services, people, document, make_file) -> None:
        with pytest.raises(ValidationException, match="empty"):
            await services.uploads.ingest_version(document.document.id, people.owner.id, make_file(b""))

    async def test_missing_mime_type_rejected(self, services, people, document, make_file) -> None:
        with pytest.raises(ValidationException) as exc_info:
            await services.uploads.ingest_version(
                document.document.id, people.owner.id, make_file(mime_type=" ")
            )
        assert exc_info.value.details == {"field": "mime_type"}

    async def test_unknown_document_or_uploader(self, services, people, document, make_file) -> None:
        with pytest.raises(ResourceNotFoundException):
            await services.uploads.ingest_version("nope", people.owner.id, make_file())
        with pytest.raises(ResourceNotFoundException):
            await services.uploads.ingest_version(document.document.id, "ghost", make_file())

    async def test_bypassed_scanner_recorded(self, services, people, document, scanner, make_file) -> None:
        scanner.bypassed = True
        version = await services.uploads.ingest_version(
            document.document.id, people.owner.id, make_file(b"unscanned")
        )
        assert version.malware_scan_status == MalwareScanStatus.BYPASSED.value

    async def test_scanner_outage_propagates(
        self, services, people, document, scanner, store, make_file
    ) -> None:
        scanner.scan.side_effect = ScannerUnavailableError("connection refused")
        with pytest.raises(ScannerUnavailableError) as exc_info:
            await services.uploads.ingest_version(document.document.id, people.owner.id, make_file(b"v2"))
        assert exc_info.value.retryable is True
        assert len(store.tables.versions) == 1

    async def test_blob_removed_when_row_insert_fails(
        self, services, people, document, store, job_queue, tmp_path, monkeypatch, make_file
    ) -> None:
        async def _conflict(self, version):
            raise DocumentVersionConflictException(version.document_id, version.version_no)

        monkeypatch.setattr(InMemoryDocumentVersionRepository, "create_version", _conflict)
        pending_before = await job_queue.list_pending(ApprovalJobType.REMINDER.value)

        with pytest.raises(DocumentVersionConflictException):
            await services.uploads.ingest_version(document.document.id, people.owner.id, make_file(b"race"))

        assert len(_blobs(tmp_path / "blobs")) == 1
        assert len(store.tables.versions) == 1
        assert await job_queue.list_pending(ApprovalJobType.REMINDER.value) == pending_before


def _fail_second_enqueue(job_queue, monkeypatch) -> None:
    enqueue = job_queue.enqueue
    calls = 0

    async def _enqueue(job_type, payload, delay):
        nonlocal calls
        calls += 1
        if calls == 2:
            raise JobQueueUnavailableError("enqueue", "connection refused")
        return await enqueue(job_type, payload, delay)

    monkeypatch.setattr(job_queue, "enqueue", _enqueue)


async def _pending_ids(job_queue) -> dict[str, list[str]]:
    return {
        job_type.value: [j.id for j in await job_queue.list_pending(job_type.value)]
        for job_type in ApprovalJobType
    }


class TestSchedulingFailure:
    async def test_ingest_rolls_back_when_queue_fails(
        self, services, people, document, store, job_queue, tmp_path, monkeypatch, make_file
    ) -> None:
        versions_before = dict(store.tables.versions)
        pending_before = await _pending_ids(job_queue)
        _fail_second_enqueue(job_queue, monkeypatch)

        with pytest.raises(JobQueueUnavailableError) as exc_info:
            await services.uploads.ingest_version(
                document.document.id, people.owner.id, make_file(b"revision two")
            )

        assert exc_info.value.retryable is True
        assert store.tables.versions == versions_before
        assert len(_blobs(tmp_path / "blobs")) == 1
        assert await _pending_ids(job_queue) == pending_before

    async def test_create_document_rolls_back_when_queue_fails(
        self, services, people, store, job_queue, tmp_path, monkeypatch, make_file
    ) -> None:
        _fail_second_enqueue(job_queue, monkeypatch)

        with pytest.raises(JobQueueUnavailableError):
            await services.uploads.create_document(
                people.project.id, people.owner.id, _input(people.owner.id), make_file()
            )

        assert store.tables.documents == {}
        assert store.tables.versions == {}
        assert _blobs(tmp_path / "blobs") == []
        assert await _pending_ids(job_queue) == {t.value: [] for t in ApprovalJobType}

    async def test_retry_after_queue_recovers_gets_same_label(
        self, services, people, document, job_queue, monkeypatch, make_file
    ) -> None:
        _fail_second_enqueue(job_queue, monkeypatch)
        with pytest.raises(JobQueueUnavailableError):
            await services.uploads.ingest_version(
                document.document.id, people.owner.id, make_file(b"retry me")
            )
        monkeypatch.undo()

        version = await services.uploads.ingest_version(
            document.document.id, people.owner.id, make_file(b"retry me")
        )
        assert version.version_no == "1.0.1"


async def test_scan_runs_before_unit_of_work(
    services, people, document, scanner, store, make_file
) -> None:
    lock_held: list[bool] = []

    async def _scan(data):
        lock_held.append(store.lock.locked())
        return ScanVerdict.CLEAN

    scanner.scan.side_effect = _scan
    await services.uploads.ingest_version(document.document.id, people.owner.id, make_file(b"v2"))
    assert lock_held == [False]
