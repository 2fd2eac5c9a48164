"""Tests for Settings backend validation and approval policy defaults."""

import pytest
from pydantic import ValidationError

from app.core.config import Settings


def _settings(**overrides) -> Settings:
    base = {
        "database_backend": "memory",
        "storage_backend": "local",
        "scanner_backend": "disabled",
    }
    base.update(overrides)
    return Settings(**base)


def test_defaults() -> None:
    s = _settings()
    assert s.approval_quorum == 2
    assert s.approval_reminder_delay_hours == 48
    assert s.approval_escalation_delay_hours == 72
    assert s.approval_worker_concurrency == 5
    assert s.max_upload_size == 150 * 1024 * 1024


def test_postgres_requires_database_url() -> None:
    with pytest.raises(ValidationError, match="DATABASE_URL is required"):
        _settings(database_backend="postgres", database_url="")
    s = _settings(
        database_backend="postgres",
        database_url="postgresql+asyncpg://u:p@localhost:5432/docflow",
    )
    assert s.database_backend == "postgres"


def test_unknown_database_backend_rejected() -> None:
    with pytest.raises(ValidationError, match="database_backend must be"):
        _settings(database_backend="firestore")


def test_s3_requires_bucket() -> None:
    with pytest.raises(ValidationError, match="s3_bucket is required"):
        _settings(storage_backend="s3", s3_bucket=None)
    assert _settings(storage_backend="s3", s3_bucket="docs").s3_bucket == "docs"


def test_unknown_scanner_backend_rejected() -> None:
    with pytest.raises(ValidationError, match="Invalid scanner_backend"):
        _settings(scanner_backend="virustotal")


def test_escalation_must_follow_reminder() -> None:
    with pytest.raises(ValidationError, match="greater than"):
        _settings(approval_reminder_delay_hours=72, approval_escalation_delay_hours=48)


@pytest.mark.parametrize(
    "field", ["approval_quorum", "approval_worker_concurrency", "max_upload_size"]
)
def test_non_positive_values_rejected(field: str) -> None:
    with pytest.raises(ValidationError):
        _settings(**{field: 0})
