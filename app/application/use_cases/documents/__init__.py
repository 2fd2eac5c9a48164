"""Document use cases: version ingest, approval quorum, reminders and queries."""

from app.application.use_cases.documents.approval_quorum import ApprovalDecisionService
from app.application.use_cases.documents.approval_reminders import (
    ApprovalReminderHandler,
)
from app.application.use_cases.documents.document_queries import DocumentQueryService
from app.application.use_cases.documents.version_ingest import DocumentUploadService

__all__ = [
    "ApprovalDecisionService",
    "ApprovalReminderHandler",
    "DocumentQueryService",
    "DocumentUploadService",
]
