"""Shared utilities: enums, telemetry, and cross-cutting helpers.

Used by domain, application, and infrastructure. No business logic.
"""

from app.shared.enums import ApprovalJobType, JobState
from app.shared.utils import ensure_utc, generate_cuid, utc_now

__all__ = [
    "ApprovalJobType",
    "JobState",
    "generate_cuid",
    "utc_now",
    "ensure_utc",
]
