"""Domain layer: entities, value objects, enums, and exceptions.

No dependencies on infrastructure or presentation. Used by application
and infrastructure layers.
"""

from app.domain.entities import ApprovalTally, DocumentVersionEntity
from app.domain.enums import (
    ApprovalDecision,
    DocumentVersionStatus,
    MalwareScanStatus,
    ScanVerdict,
)
from app.domain.exceptions import (
    DocflowException,
    DocumentVersionConflictException,
    IntegrityViolationException,
    ResourceNotFoundException,
    StateConflictException,
    TransientInfrastructureException,
    ValidationException,
    VersionClosedException,
)
from app.domain.value_objects import Checksum, VersionNumber

__all__ = [
    # Entities
    "ApprovalTally",
    "DocumentVersionEntity",
    # Enums
    "ApprovalDecision",
    "DocumentVersionStatus",
    "MalwareScanStatus",
    "ScanVerdict",
    # Exceptions
    "DocflowException",
    "DocumentVersionConflictException",
    "IntegrityViolationException",
    "ResourceNotFoundException",
    "StateConflictException",
    "TransientInfrastructureException",
    "ValidationException",
    "VersionClosedException",
    # Value objects
    "Checksum",
    "VersionNumber",
]
