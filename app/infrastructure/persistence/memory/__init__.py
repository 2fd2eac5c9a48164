"""In-memory persistence backend (DATABASE_BACKEND=memory)."""

from app.infrastructure.persistence.memory.store import InMemoryStore, MemberRecord
from app.infrastructure.persistence.memory.unit_of_work import InMemoryUnitOfWork

__all__ = ["InMemoryStore", "InMemoryUnitOfWork", "MemberRecord"]
