"""SQL unit of work: one AsyncSession transaction shared by all repositories."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.infrastructure.persistence.repositories.document_repo import DocumentRepository
from app.infrastructure.persistence.repositories.document_version_repo import (
    DocumentApprovalRepository,
    DocumentVersionRepository,
)
from app.infrastructure.persistence.repositories.user_repo import (
    ProjectRepository,
    UserRepository,
)
from app.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class SqlUnitOfWork:
    """IUnitOfWork over a fresh session per use.

    Commits on clean exit and rolls back when an exception propagates.
    Row locks taken inside (SELECT ... FOR UPDATE) are released at commit.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        self._session: AsyncSession | None = None

    async def __aenter__(self) -> SqlUnitOfWork:
        session = self._session_factory()
        await session.begin()
        self._session = session
        self.documents = DocumentRepository(session)
        self.versions = DocumentVersionRepository(session)
        self.approvals = DocumentApprovalRepository(session)
        self.projects = ProjectRepository(session)
        self.users = UserRepository(session)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        session = self._session
        if session is None:
            return
        self._session = None
        try:
            if exc_type is None:
                await session.commit()
            else:
                logger.debug("Rolling back unit of work after %s", exc_type.__name__)
                await session.rollback()
        finally:
            await session.close()
