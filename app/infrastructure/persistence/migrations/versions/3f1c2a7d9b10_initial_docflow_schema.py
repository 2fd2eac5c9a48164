"""Initial schema: users, projects, documents, versions, approvals

Revision ID: 3f1c2a7d9b10
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f1c2a7d9b10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Create initial schema."""
    # Collaborator tables (owned elsewhere, read by the document core)
    op.create_table(
        "app_user",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("full_name", sa.String(), nullable=False),
        sa.Column(
            "is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False
        ),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", name="uq_app_user_email"),
    )
    op.create_table(
        "project",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("code", sa.String(length=32), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code", name="uq_project_code"),
    )
    op.create_table(
        "project_member",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("project_id", sa.String(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("role", sa.String(length=32), nullable=False),
        sa.Column("left_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "role IN ('PM', 'LEAD', 'CONTRIBUTOR', 'REVIEWER')",
            name="project_member_role_check",
        ),
        sa.ForeignKeyConstraint(["project_id"], ["project.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["app_user.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("project_id", "user_id", name="uq_project_member"),
    )
    op.create_index(
        "ix_project_member_project_role", "project_member", ["project_id", "role"]
    )

    # Document table (current_version_id FK added after document_version)
    op.create_table(
        "document",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("project_id", sa.String(), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("doc_type", sa.String(length=32), nullable=False),
        sa.Column("classification", sa.String(length=32), nullable=False),
        sa.Column("owner_id", sa.String(), nullable=False),
        sa.Column("storage_key_prefix", sa.String(), nullable=False),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("linked_task_ids", sa.JSON(), nullable=False),
        sa.Column("linked_kpi_ids", sa.JSON(), nullable=False),
        sa.Column(
            "retention_policy",
            sa.String(length=32),
            server_default="DEFAULT",
            nullable=False,
        ),
        sa.Column("current_version_id", sa.String(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "doc_type IN ('CONTRACT', 'REPORT', 'PLAN', 'REQUIREMENT', 'RISK', 'GENERIC', 'CUSTOM')",
            name="document_doc_type_check",
        ),
        sa.CheckConstraint(
            "classification IN ('PUBLIC', 'INTERNAL', 'CONFIDENTIAL', 'RESTRICTED')",
            name="document_classification_check",
        ),
        sa.ForeignKeyConstraint(["project_id"], ["project.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["owner_id"], ["app_user.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("current_version_id", name="uq_document_current_version"),
    )
    op.create_index(op.f("ix_document_project_id"), "document", ["project_id"])
    op.create_index(op.f("ix_document_doc_type"), "document", ["doc_type"])
    op.create_index(op.f("ix_document_owner_id"), "document", ["owner_id"])
    op.create_index(
        "ix_document_project_created", "document", ["project_id", "created_at"]
    )

    # Document versions
    op.create_table(
        "document_version",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("document_id", sa.String(), nullable=False),
        sa.Column("version_no", sa.String(length=64), nullable=False),
        sa.Column(
            "status", sa.String(length=16), server_default="IN_REVIEW", nullable=False
        ),
        sa.Column("checksum", sa.String(length=64), nullable=False),
        sa.Column("size_bytes", sa.BigInteger(), nullable=False),
        sa.Column("mime_type", sa.String(length=255), nullable=False),
        sa.Column("storage_key", sa.String(), nullable=False),
        sa.Column(
            "malware_scan_status",
            sa.String(length=16),
            server_default="PENDING",
            nullable=False,
        ),
        sa.Column("created_by", sa.String(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.CheckConstraint(
            "status IN ('IN_REVIEW', 'PUBLISHED', 'ARCHIVED')",
            name="document_version_status_check",
        ),
        sa.CheckConstraint(
            "malware_scan_status IN ('PENDING', 'CLEAN', 'INFECTED', 'BYPASSED')",
            name="document_version_scan_status_check",
        ),
        sa.CheckConstraint("size_bytes > 0", name="document_version_size_check"),
        sa.ForeignKeyConstraint(["document_id"], ["document.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["created_by"], ["app_user.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "document_id", "version_no", name="uq_document_version_document_version_no"
        ),
    )
    op.create_index(
        "ix_document_version_document_created",
        "document_version",
        ["document_id", "created_at"],
    )
    op.create_index(
        "ux_document_version_published",
        "document_version",
        ["document_id"],
        unique=True,
        postgresql_where=sa.text("status = 'PUBLISHED'"),
    )
    op.create_foreign_key(
        "fk_document_current_version",
        "document",
        "document_version",
        ["current_version_id"],
        ["id"],
        ondelete="SET NULL",
    )

    # Approval decisions
    op.create_table(
        "document_approval",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("version_id", sa.String(), nullable=False),
        sa.Column("approver_id", sa.String(), nullable=False),
        sa.Column("decision", sa.String(length=16), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("decided_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "decision IN ('APPROVED', 'REJECTED')", name="document_approval_decision_check"
        ),
        sa.ForeignKeyConstraint(
            ["version_id"], ["document_version.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["approver_id"], ["app_user.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "version_id", "approver_id", name="uq_document_approval_version_approver"
        ),
    )
    op.create_index(
        op.f("ix_document_approval_approver_id"), "document_approval", ["approver_id"]
    )


def downgrade() -> None:
    """Drop initial schema."""
    op.drop_index(op.f("ix_document_approval_approver_id"), table_name="document_approval")
    op.drop_table("document_approval")
    op.drop_constraint("fk_document_current_version", "document", type_="foreignkey")
    op.drop_index("ux_document_version_published", table_name="document_version")
    op.drop_index("ix_document_version_document_created", table_name="document_version")
    op.drop_table("document_version")
    op.drop_index("ix_document_project_created", table_name="document")
    op.drop_index(op.f("ix_document_owner_id"), table_name="document")
    op.drop_index(op.f("ix_document_doc_type"), table_name="document")
    op.drop_index(op.f("ix_document_project_id"), table_name="document")
    op.drop_table("document")
    op.drop_index("ix_project_member_project_role", table_name="project_member")
    op.drop_table("project_member")
    op.drop_table("project")
    op.drop_table("app_user")
