"""Application interfaces (ports): repository and service protocols.

Define contracts for infrastructure implementations (DIP).
No runtime imports from app.infrastructure.
"""

from app.application.interfaces.repositories import (
    IDocumentApprovalRepository,
    IDocumentRepository,
    IDocumentVersionRepository,
    IProjectRepository,
    IUnitOfWork,
    IUserRepository,
)
from app.application.interfaces.services import (
    IApprovalScheduler,
    IDelayedJobQueue,
    IMalwareScanner,
    INotificationService,
)
from app.application.interfaces.storage import IObjectStore

__all__ = [
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
