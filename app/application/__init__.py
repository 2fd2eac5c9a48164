"""Application layer: interfaces, DTOs, use cases.

Depends only on domain and protocol definitions (DIP).
Infrastructure implements the interfaces (repos, storage, scanner, queue).
"""

from app.application.interfaces import (
    IApprovalScheduler,
    IDelayedJobQueue,
    IDocumentApprovalRepository,
    IDocumentRepository,
    IDocumentVersionRepository,
    IMalwareScanner,
    INotificationService,
    IObjectStore,
    IProjectRepository,
    IUnitOfWork,
    IUserRepository,
)
from app.application.use_cases import (
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
    "IApprovalScheduler",
    "IDelayedJobQueue",
    "IDocumentApprovalRepository",
    "IDocumentRepository",
    "IDocumentVersionRepository",
    "IMalwareScanner",
    "INotificationService",
    "IObjectStore",
    "IProjectRepository",
    "IUnitOfWork",
    "IUserRepository",
]
