"""Messaging: delayed job queues and the approval job scheduler."""

from app.infrastructure.messaging.approval_scheduler import ApprovalJobScheduler
from app.infrastructure.messaging.delayed_job_queue import (
    InMemoryDelayedJobQueue,
    RedisDelayedJobQueue,
)
from app.infrastructure.messaging.keys import JobQueueKeys, job_queue_keys

__all__ = [
    "ApprovalJobScheduler",
    "InMemoryDelayedJobQueue",
    "JobQueueKeys",
    "RedisDelayedJobQueue",
    "job_queue_keys",
]
