"""Domain enumerations for the document lifecycle.

Enums represent fixed sets of domain values (version status, approval
decision, scan verdict) and the document classification vocabularies.
"""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class DocumentVersionStatus(_ValuesMixin, str, Enum):
    """Lifecycle status of a single document version.

    IN_REVIEW is the only state that accepts decisions. ARCHIVED is
    terminal. PUBLISHED moves to ARCHIVED only when a later version of
    the same document is promoted.
    """

    IN_REVIEW = "IN_REVIEW"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"


class ApprovalDecision(_ValuesMixin, str, Enum):
    """An approver's decision on a version."""

    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class ScanVerdict(_ValuesMixin, str, Enum):
    """Result returned by a malware scanner."""

    CLEAN = "CLEAN"
    INFECTED = "INFECTED"


class MalwareScanStatus(_ValuesMixin, str, Enum):
    """Scan status recorded on a version row."""

    PENDING = "PENDING"
    CLEAN = "CLEAN"
    INFECTED = "INFECTED"
    BYPASSED = "BYPASSED"


class DocumentType(_ValuesMixin, str, Enum):
    CONTRACT = "CONTRACT"
    REPORT = "REPORT"
    PLAN = "PLAN"
    REQUIREMENT = "REQUIREMENT"
    RISK = "RISK"
    GENERIC = "GENERIC"
    CUSTOM = "CUSTOM"


class DocumentClassification(_ValuesMixin, str, Enum):
    PUBLIC = "PUBLIC"
    INTERNAL = "INTERNAL"
    CONFIDENTIAL = "CONFIDENTIAL"
    RESTRICTED = "RESTRICTED"


class RetentionPolicy(_ValuesMixin, str, Enum):
    DEFAULT = "DEFAULT"
    LONG_TERM = "LONG_TERM"
    LEGAL_HOLD = "LEGAL_HOLD"


class ProjectMemberRole(_ValuesMixin, str, Enum):
    """Role of a user inside a project (owned by the project collaborator)."""

    PM = "PM"
    LEAD = "LEAD"
    CONTRIBUTOR = "CONTRIBUTOR"
    REVIEWER = "REVIEWER"
