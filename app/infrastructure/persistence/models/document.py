"""Document ORM models: documents, their versions and approval decisions."""

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    BigInteger,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.infrastructure.persistence.database import Base
from app.infrastructure.persistence.models.mixins import (
    CreatedAtMixin,
    CuidMixin,
    TimestampMixin,
)


class Document(CuidMixin, TimestampMixin, Base):
    """Document entity. Table: document. current_version_id points at the PUBLISHED version."""

    __tablename__ = "document"

    project_id: Mapped[str] = mapped_column(
        String, ForeignKey("project.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    doc_type: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    classification: Mapped[str] = mapped_column(String(32), nullable=False)
    owner_id: Mapped[str] = mapped_column(
        String, ForeignKey("app_user.id"), nullable=False, index=True
    )
    storage_key_prefix: Mapped[str] = mapped_column(String, nullable=False)
    tags: Mapped[list[Any]] = mapped_column(JSON, nullable=False, default=list)
    linked_task_ids: Mapped[list[Any]] = mapped_column(JSON, nullable=False, default=list)
    linked_kpi_ids: Mapped[list[Any]] = mapped_column(JSON, nullable=False, default=list)
    retention_policy: Mapped[str] = mapped_column(
        String(32), nullable=False, server_default="DEFAULT"
    )
    # FK added after document_version exists (circular reference).
    current_version_id: Mapped[str | None] = mapped_column(
        String,
        ForeignKey(
            "document_version.id",
            use_alter=True,
            name="fk_document_current_version",
            ondelete="SET NULL",
        ),
        nullable=True,
    )

    __table_args__ = (
        UniqueConstraint("current_version_id", name="uq_document_current_version"),
        Index("ix_document_project_created", "project_id", "created_at"),
    )


class DocumentVersion(CuidMixin, CreatedAtMixin, Base):
    """Immutable uploaded version. Table: document_version.

    (document_id, version_no) is unique; at most one PUBLISHED row per document
    (partial unique index).
    """

    __tablename__ = "document_version"

    document_id: Mapped[str] = mapped_column(
        String, ForeignKey("document.id", ondelete="CASCADE"), nullable=False
    )
    version_no: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, server_default="IN_REVIEW"
    )
    checksum: Mapped[str] = mapped_column(String(64), nullable=False)
    size_bytes: Mapped[int] = mapped_column(BigInteger, nullable=False)
    mime_type: Mapped[str] = mapped_column(String(255), nullable=False)
    storage_key: Mapped[str] = mapped_column(String, nullable=False)
    malware_scan_status: Mapped[str] = mapped_column(
        String(16), nullable=False, server_default="PENDING"
    )
    created_by: Mapped[str] = mapped_column(
        String, ForeignKey("app_user.id"), nullable=False
    )

    __table_args__ = (
        UniqueConstraint(
            "document_id", "version_no", name="uq_document_version_document_version_no"
        ),
        Index("ix_document_version_document_created", "document_id", "created_at"),
        Index(
            "ux_document_version_published",
            "document_id",
            unique=True,
            postgresql_where=text("status = 'PUBLISHED'"),
        ),
    )


class DocumentApproval(CuidMixin, Base):
    """Latest decision of one approver on one version. Table: document_approval."""

    __tablename__ = "document_approval"

    version_id: Mapped[str] = mapped_column(
        String, ForeignKey("document_version.id", ondelete="CASCADE"), nullable=False
    )
    approver_id: Mapped[str] = mapped_column(
        String, ForeignKey("app_user.id"), nullable=False, index=True
    )
    decision: Mapped[str] = mapped_column(String(16), nullable=False)
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    decided_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "version_id", "approver_id", name="uq_document_approval_version_approver"
        ),
    )
