"""Persistence models: ORM entities and mixins."""

from app.infrastructure.persistence.models.document import (
    Document,
    DocumentApproval,
    DocumentVersion,
)
from app.infrastructure.persistence.models.mixins import (
    CreatedAtMixin,
    CuidMixin,
    TimestampMixin,
)
from app.infrastructure.persistence.models.user import Project, ProjectMember, User

__all__ = [
    "Document",
    "DocumentApproval",
    "DocumentVersion",
    "Project",
    "ProjectMember",
    "User",
    "CreatedAtMixin",
    "CuidMixin",
    "TimestampMixin",
]
