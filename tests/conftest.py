"""Pytest configuration and fixtures for docflow.

Service-level tests run against the in-memory persistence backend, the
in-memory delayed job queue (with a controllable clock) and local storage
under tmp_path. Repository tests marked requires_db use Postgres via
app.infrastructure.persistence.database and skip when it is not configured.
"""

import os

# Defaults for importing app.main; real environment values win.
os.environ.setdefault("DATABASE_BACKEND", "memory")
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("SCANNER_BACKEND", "disabled")
os.environ.setdefault("APPROVAL_WORKERS_ENABLED", "false")

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.dependencies import DocflowServices, build_services
from app.application.dtos.document import DocumentDetail, DocumentInput, UploadedFile
from app.application.dtos.user import ProjectResult, UserResult
from app.core.config import Settings, get_settings
from app.domain.enums import ProjectMemberRole, ScanVerdict
from app.infrastructure.external.storage.local_storage import LocalStorageService
from app.infrastructure.messaging import InMemoryDelayedJobQueue
from app.infrastructure.persistence import database
from app.infrastructure.persistence.memory import InMemoryStore
from app.main import create_app


class FakeClock:
    """Settable UTC clock for the in-memory job queue."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 5, 9, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@dataclass
class Collaborators:
    """Seeded project roster: three reviewers, a PM, the owner, and edge cases."""

    project: ProjectResult
    owner: UserResult
    alice: UserResult
    bob: UserResult
    carol: UserResult
    pm: UserResult
    former_reviewer: UserResult
    inactive_reviewer: UserResult


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    """Each test sees settings built from the current environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def people(store: InMemoryStore) -> Collaborators:
    project = store.add_project("PRJ-1", "Bridge Retrofit")
    owner = store.add_user("owner@example.com", "Olive Owner")
    alice = store.add_user("alice@example.com", "Alice Approver")
    bob = store.add_user("bob@example.com", "Bob Approver")
    carol = store.add_user("carol@example.com", "Carol Approver")
    pm = store.add_user("pm@example.com", "Pat Manager")
    former = store.add_user("former@example.com", "Fred Former")
    inactive = store.add_user("inactive@example.com", "Ivy Inactive", is_active=False)

    store.add_member(project.id, owner.id, ProjectMemberRole.CONTRIBUTOR.value)
    for reviewer in (alice, bob, carol, inactive):
        store.add_member(project.id, reviewer.id, ProjectMemberRole.REVIEWER.value)
    store.add_member(project.id, former.id, ProjectMemberRole.REVIEWER.value, left=True)
    store.add_member(project.id, pm.id, ProjectMemberRole.PM.value)
    return Collaborators(
        project=project,
        owner=owner,
        alice=alice,
        bob=bob,
        carol=carol,
        pm=pm,
        former_reviewer=former,
        inactive_reviewer=inactive,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def job_queue(clock: FakeClock) -> InMemoryDelayedJobQueue:
    return InMemoryDelayedJobQueue(clock=clock)


@pytest.fixture
def storage(tmp_path) -> LocalStorageService:
    return LocalStorageService(storage_root=str(tmp_path / "blobs"))


@pytest.fixture
def scanner() -> MagicMock:
    """Scanner double: CLEAN by default; set scanner.scan.return_value to change."""
    mock = MagicMock()
    mock.bypassed = False
    mock.scan = AsyncMock(return_value=ScanVerdict.CLEAN)
    return mock


@pytest.fixture
def notifier() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        database_backend="memory",
        redis_enabled=False,
        scanner_backend="disabled",
        storage_backend="local",
        storage_root=str(tmp_path / "blobs"),
        approval_workers_enabled=False,
    )


@pytest.fixture
def services(
    settings: Settings,
    store: InMemoryStore,
    storage: LocalStorageService,
    scanner: MagicMock,
    notifier: AsyncMock,
    job_queue: InMemoryDelayedJobQueue,
) -> DocflowServices:
    return build_services(
        settings,
        store=store,
        storage=storage,
        scanner=scanner,
        notifier=notifier,
        job_queue=job_queue,
    )


def _make_file(
    content: bytes = b"%PDF-1.7 quarterly report", mime_type: str = "application/pdf"
) -> UploadedFile:
    return UploadedFile(content=content, mime_type=mime_type, original_name="report.pdf")


@pytest.fixture
def make_file():
    """Factory for UploadedFile payloads."""
    return _make_file


@pytest.fixture
async def document(services: DocflowServices, people: Collaborators) -> DocumentDetail:
    """A CONTRACT document with its first version (1.0.0) in review."""
    return await services.uploads.create_document(
        people.project.id,
        people.owner.id,
        DocumentInput(
            title="Supply Contract",
            doc_type="CONTRACT",
            classification="INTERNAL",
            owner_id=people.owner.id,
            tags=["legal", "supply"],
        ),
        _make_file(),
    )


@pytest.fixture
async def client() -> AsyncClient:
    """Async HTTP client against a fresh FastAPI app (ASGI, lifespan not run)."""
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def db_session() -> AsyncSession:
    """Database session for repository/integration tests. Rolls back after test.

    Requires DATABASE_BACKEND=postgres and DATABASE_URL. Skips (pytest.skip)
    when Postgres is not configured. Use @pytest.mark.requires_db to mark
    tests that need this fixture; run without DB via: pytest -m 'not requires_db'.
    """
    database._ensure_engine()
    if database.AsyncSessionLocal is None:
        pytest.skip(
            "Postgres not configured: set DATABASE_BACKEND=postgres and DATABASE_URL, "
            "then run: alembic upgrade head"
        )
    async with database.AsyncSessionLocal() as session:
        await session.begin()
        yield session
        await session.rollback()
    await database.dispose_engine()
