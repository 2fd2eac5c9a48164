"""Composition root: builds the document core from settings.

When database_backend is 'postgres', units of work use SQLAlchemy sessions.
When database_backend is 'memory', they share one InMemoryStore.
When redis_enabled is False, delayed jobs live in process memory.
Switch backends via DATABASE_BACKEND / REDIS_ENABLED in config.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import timedelta
from typing import Annotated

from fastapi import Depends, HTTPException, Request

from app.application.interfaces.repositories import IUnitOfWork
from app.application.interfaces.services import (
    IDelayedJobQueue,
    IMalwareScanner,
    INotificationService,
)
from app.application.interfaces.storage import IObjectStore
from app.application.use_cases.documents import (
    ApprovalDecisionService,
    ApprovalReminderHandler,
    DocumentQueryService,
    DocumentUploadService,
)
from app.core.config import Settings, get_settings
from app.infrastructure.external.scanner import create_malware_scanner
from app.infrastructure.external.storage import StorageFactory
from app.infrastructure.messaging import (
    ApprovalJobScheduler,
    InMemoryDelayedJobQueue,
    RedisDelayedJobQueue,
)
from app.infrastructure.persistence.memory import InMemoryStore, InMemoryUnitOfWork
from app.infrastructure.services import LogOnlyNotificationService


@dataclass
class DocflowServices:
    """Everything the document core needs, built once per application."""

    settings: Settings
    uow_factory: Callable[[], IUnitOfWork]
    storage: IObjectStore
    scanner: IMalwareScanner
    notifier: INotificationService
    job_queue: IDelayedJobQueue
    scheduler: ApprovalJobScheduler
    uploads: DocumentUploadService
    decisions: ApprovalDecisionService
    queries: DocumentQueryService
    reminders: ApprovalReminderHandler
    memory_store: InMemoryStore | None = None


def _build_uow_factory(
    settings: Settings, store: InMemoryStore | None
) -> tuple[Callable[[], IUnitOfWork], InMemoryStore | None]:
    if settings.database_backend == "postgres":
        from app.infrastructure.persistence.database import get_session_factory
        from app.infrastructure.persistence.repositories import SqlUnitOfWork

        session_factory = get_session_factory()
        return (lambda: SqlUnitOfWork(session_factory)), None
    memory_store = store or InMemoryStore()
    return (lambda: InMemoryUnitOfWork(memory_store)), memory_store


def build_services(
    settings: Settings | None = None,
    *,
    store: InMemoryStore | None = None,
    storage: IObjectStore | None = None,
    scanner: IMalwareScanner | None = None,
    notifier: INotificationService | None = None,
    job_queue: IDelayedJobQueue | None = None,
) -> DocflowServices:
    """Wire adapters and use cases. Explicit arguments override the configured backends."""
    s = settings or get_settings()
    uow_factory, memory_store = _build_uow_factory(s, store)
    storage = storage or StorageFactory.create_storage_service(s)
    scanner = scanner or create_malware_scanner(s)
    notifier = notifier or LogOnlyNotificationService()
    if job_queue is None:
        job_queue = RedisDelayedJobQueue() if s.redis_enabled else InMemoryDelayedJobQueue()

    reminders = ApprovalReminderHandler(
        uow_factory, notifier, escalation_delay_hours=s.approval_escalation_delay_hours
    )
    scheduler = ApprovalJobScheduler(
        job_queue,
        reminders,
        reminder_delay=timedelta(hours=s.approval_reminder_delay_hours),
        escalation_delay=timedelta(hours=s.approval_escalation_delay_hours),
        concurrency=s.approval_worker_concurrency,
        poll_interval=s.approval_worker_poll_seconds,
    )
    return DocflowServices(
        settings=s,
        uow_factory=uow_factory,
        storage=storage,
        scanner=scanner,
        notifier=notifier,
        job_queue=job_queue,
        scheduler=scheduler,
        uploads=DocumentUploadService(
            uow_factory, storage, scanner, scheduler, max_upload_size=s.max_upload_size
        ),
        decisions=ApprovalDecisionService(
            uow_factory, scheduler, quorum=s.approval_quorum
        ),
        queries=DocumentQueryService(uow_factory, storage),
        reminders=reminders,
        memory_store=memory_store,
    )


def get_services(request: Request) -> DocflowServices:
    """Return the services built by the lifespan; 503 until startup has finished."""
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(status_code=503, detail="Service is starting up")
    return services


ServicesDep = Annotated[DocflowServices, Depends(get_services)]
