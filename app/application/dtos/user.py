"""DTOs for collaborator rows (users, projects, members). Read-only for the core."""

from dataclasses import dataclass


@dataclass(frozen=True)
class UserResult:
    """User read-model."""

    id: str
    email: str
    full_name: str
    is_active: bool


@dataclass(frozen=True)
class ProjectResult:
    id: str
    code: str
    name: str
