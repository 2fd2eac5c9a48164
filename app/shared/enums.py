"""Shared enumerations for the docflow application.

Cross-cutting enums used by application and infrastructure (job types,
job states). Domain-specific enums live in app.domain.enums.
"""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class ApprovalJobType(_ValuesMixin, str, Enum):
    """Delayed job types owned by the approval scheduler."""

    REMINDER = "approval-reminder"
    ESCALATION = "approval-escalation"


class JobState(_ValuesMixin, str, Enum):
    """Where a job currently sits in the delayed job queue."""

    DELAYED = "delayed"
    WAITING = "waiting"
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"
