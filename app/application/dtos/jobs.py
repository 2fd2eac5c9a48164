"""DTOs for delayed jobs (no dependency on the queue backend)."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class Job:
    """A delayed job. run_at is when it becomes due; attempts counts claims."""

    id: str
    job_type: str
    payload: dict[str, Any]
    run_at: datetime
    attempts: int = 0
    created_at: datetime | None = None
