"""Application DTOs (no ORM dependency)."""

from app.application.dtos.document import (
    DecisionResult,
    DocumentApprovalResult,
    DocumentCreate,
    DocumentDetail,
    DocumentDownload,
    DocumentInput,
    DocumentListFilters,
    DocumentPage,
    DocumentResult,
    DocumentVersionCreate,
    DocumentVersionResult,
    PromotionOutcome,
    UploadedFile,
    VersionDetail,
)
from app.application.dtos.jobs import Job
from app.application.dtos.user import ProjectResult, UserResult

__all__ = [
    "DecisionResult",
    "DocumentApprovalResult",
    "DocumentCreate",
    "DocumentDetail",
    "DocumentDownload",
    "DocumentInput",
    "DocumentListFilters",
    "DocumentPage",
    "DocumentResult",
    "DocumentVersionCreate",
    "DocumentVersionResult",
    "Job",
    "ProjectResult",
    "PromotionOutcome",
    "UploadedFile",
    "UserResult",
]
