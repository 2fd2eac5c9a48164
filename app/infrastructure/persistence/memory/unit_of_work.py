"""In-memory unit of work: store lock for the duration, snapshot rollback on error."""

from __future__ import annotations

from app.infrastructure.persistence.memory.repositories import (
    InMemoryDocumentApprovalRepository,
    InMemoryDocumentRepository,
    InMemoryDocumentVersionRepository,
    InMemoryProjectRepository,
    InMemoryUserRepository,
)
from app.infrastructure.persistence.memory.store import InMemoryStore


class InMemoryUnitOfWork:
    """IUnitOfWork over an InMemoryStore. Not re-entrant: do not nest on one store."""

    def __init__(self, store: InMemoryStore) -> None:
        self.store = store
        self.documents = InMemoryDocumentRepository(store)
        self.versions = InMemoryDocumentVersionRepository(store)
        self.approvals = InMemoryDocumentApprovalRepository(store)
        self.projects = InMemoryProjectRepository(store)
        self.users = InMemoryUserRepository(store)
        self._snapshot = None

    async def __aenter__(self) -> InMemoryUnitOfWork:
        await self.store.lock.acquire()
        self._snapshot = self.store.snapshot()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            if exc_type is not None and self._snapshot is not None:
                self.store.restore(self._snapshot)
        finally:
            self._snapshot = None
            self.store.lock.release()
