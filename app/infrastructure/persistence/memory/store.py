"""In-memory document store for DATABASE_BACKEND=memory (development and tests).

One asyncio.Lock per store serialises units of work, which gives the same
guarantees the SQL backend gets from row locks: decisions on a version are
applied one at a time and promotion is atomic. Rows are frozen DTOs, so a
rollback only needs shallow copies of the tables.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime

from app.application.dtos.document import (
    DocumentApprovalResult,
    DocumentResult,
    DocumentVersionResult,
)
from app.application.dtos.user import ProjectResult, UserResult
from app.shared.utils import utc_now
from app.shared.utils.generators import generate_cuid


@dataclass(frozen=True)
class MemberRecord:
    """Project membership row."""

    project_id: str
    user_id: str
    role: str
    left_at: datetime | None = None


@dataclass
class _Tables:
    documents: dict[str, DocumentResult] = field(default_factory=dict)
    versions: dict[str, DocumentVersionResult] = field(default_factory=dict)
    approvals: dict[tuple[str, str], DocumentApprovalResult] = field(
        default_factory=dict
    )
    users: dict[str, UserResult] = field(default_factory=dict)
    projects: dict[str, ProjectResult] = field(default_factory=dict)
    members: list[MemberRecord] = field(default_factory=list)

    def copy(self) -> _Tables:
        return _Tables(
            documents=dict(self.documents),
            versions=dict(self.versions),
            approvals=dict(self.approvals),
            users=dict(self.users),
            projects=dict(self.projects),
            members=list(self.members),
        )


class InMemoryStore:
    """Process-local tables plus the transaction lock.

    add_user, add_project and add_member seed collaborator rows, which the
    document core only reads.
    """

    def __init__(self) -> None:
        self.tables = _Tables()
        self.lock = asyncio.Lock()

    def snapshot(self) -> _Tables:
        return self.tables.copy()

    def restore(self, snapshot: _Tables) -> None:
        self.tables = snapshot

    def add_user(
        self,
        email: str,
        full_name: str,
        *,
        user_id: str | None = None,
        is_active: bool = True,
    ) -> UserResult:
        user = UserResult(
            id=user_id or generate_cuid(),
            email=email,
            full_name=full_name,
            is_active=is_active,
        )
        self.tables.users[user.id] = user
        return user

    def add_project(
        self, code: str, name: str, *, project_id: str | None = None
    ) -> ProjectResult:
        project = ProjectResult(id=project_id or generate_cuid(), code=code, name=name)
        self.tables.projects[project.id] = project
        return project

    def add_member(
        self, project_id: str, user_id: str, role: str, *, left: bool = False
    ) -> MemberRecord:
        member = MemberRecord(
            project_id=project_id,
            user_id=user_id,
            role=role,
            left_at=utc_now() if left else None,
        )
        self.tables.members.append(member)
        return member
