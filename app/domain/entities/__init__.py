"""Domain entities and aggregates."""

from app.domain.entities.document import ApprovalTally, DocumentVersionEntity

__all__ = [
    "ApprovalTally",
    "DocumentVersionEntity",
]
