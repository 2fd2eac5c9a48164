"""Job queue key builders. Single place for key format (DRY).

Key components (job_type) must not contain JOB_KEY_SEP to avoid
ambiguous or colliding keys.
"""

from dataclasses import dataclass

from app.core.constants import JOB_KEY_PREFIX, JOB_KEY_SEP


def _validate_key_component(value: str, name: str) -> None:
    """Raise ValueError if value is empty or contains the key separator."""
    if not value:
        raise ValueError(f"Job key component {name!r} must not be empty")
    if JOB_KEY_SEP in value:
        raise ValueError(
            f"Job key component {name!r} must not contain separator {JOB_KEY_SEP!r}"
        )


@dataclass(frozen=True)
class JobQueueKeys:
    """Redis keys for one job type.

    delayed: ZSET job_id -> run_at (epoch seconds).
    waiting: LIST of due job ids in FIFO order.
    active: ZSET job_id -> claimed_at (epoch seconds).
    jobs: HASH job_id -> JSON job.
    failed: LIST of JSON failure records (capped).
    """

    delayed: str
    waiting: str
    active: str
    jobs: str
    failed: str


def job_queue_keys(job_type: str, prefix: str = JOB_KEY_PREFIX) -> JobQueueKeys:
    """Build the key set for job_type, e.g. docflow:jobs:approval-reminder:delayed."""
    _validate_key_component(job_type, "job_type")
    base = JOB_KEY_SEP.join((prefix, job_type))
    return JobQueueKeys(
        delayed=f"{base}{JOB_KEY_SEP}delayed",
        waiting=f"{base}{JOB_KEY_SEP}waiting",
        active=f"{base}{JOB_KEY_SEP}active",
        jobs=f"{base}{JOB_KEY_SEP}jobs",
        failed=f"{base}{JOB_KEY_SEP}failed",
    )
