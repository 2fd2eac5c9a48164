"""User and project repositories (collaborator tables, read-only). Return application DTOs."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.dtos.user import ProjectResult, UserResult
from app.infrastructure.persistence.models.user import Project, ProjectMember, User
from app.infrastructure.persistence.repositories.base import BaseRepository


def _user_to_result(u: User) -> UserResult:
    return UserResult(
        id=u.id, email=u.email, full_name=u.full_name, is_active=u.is_active
    )


class UserRepository(BaseRepository[User]):
    """User lookups."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, User)

    async def get_by_id(self, user_id: str) -> UserResult | None:
        row = await self._get_model(user_id)
        return _user_to_result(row) if row else None


class ProjectRepository(BaseRepository[Project]):
    """Project lookups and roster resolution."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, Project)

    async def get_by_id(self, project_id: str) -> ProjectResult | None:
        row = await self._get_model(project_id)
        if row is None:
            return None
        return ProjectResult(id=row.id, code=row.code, name=row.name)

    async def list_active_members(
        self, project_id: str, role: str
    ) -> list[UserResult]:
        """Active users with a current membership (left_at unset) in the given role."""
        result = await self.db.execute(
            select(User)
            .join(ProjectMember, ProjectMember.user_id == User.id)
            .where(
                ProjectMember.project_id == project_id,
                ProjectMember.role == role,
                ProjectMember.left_at.is_(None),
                User.is_active.is_(True),
            )
            .order_by(ProjectMember.created_at, User.id)
        )
        return [_user_to_result(u) for u in result.scalars().all()]
