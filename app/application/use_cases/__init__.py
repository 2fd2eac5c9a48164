"""Application use cases: one entry point per workflow."""

from app.application.use_cases.documents import (
    ApprovalDecisionService,
    ApprovalReminderHandler,
    DocumentQueryService,
    DocumentUploadService,
)

__all__ = [
    "ApprovalDecisionService",
    "ApprovalReminderHandler",
    "DocumentQueryService",
    "DocumentUploadService",
]
