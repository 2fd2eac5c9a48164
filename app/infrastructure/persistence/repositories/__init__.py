"""Persistence repositories. Re-exports for dependency injection."""

from app.infrastructure.persistence.repositories.base import BaseRepository
from app.infrastructure.persistence.repositories.document_repo import DocumentRepository
from app.infrastructure.persistence.repositories.document_version_repo import (
    DocumentApprovalRepository,
    DocumentVersionRepository,
)
from app.infrastructure.persistence.repositories.unit_of_work import SqlUnitOfWork
from app.infrastructure.persistence.repositories.user_repo import (
    ProjectRepository,
    UserRepository,
)

__all__ = [
    "BaseRepository",
    "DocumentApprovalRepository",
    "DocumentRepository",
    "DocumentVersionRepository",
    "ProjectRepository",
    "SqlUnitOfWork",
    "UserRepository",
]
