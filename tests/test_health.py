"""Smoke tests for health, readiness, lifespan wiring and error responses."""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from app.core.exception_handlers import register_exception_handlers
from app.domain.exceptions import (
    ResourceNotFoundException,
    ValidationException,
    VersionClosedException,
)
from app.infrastructure.exceptions import JobQueueUnavailableError, StoragePermissionError
from app.main import create_app


async def test_health_returns_ok(client: AsyncClient) -> None:
    """GET /api/v1/health returns 200 and status ok."""
    response = await client.get("/api/v1/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


async def test_ready_is_503_before_startup(client: AsyncClient) -> None:
    response = await client.get("/api/v1/health/ready")
    assert response.status_code == 503
    assert response.json()["error"] == "HTTP_ERROR"


async def test_ready_reports_backends(services) -> None:
    app = create_app()
    app.state.services = services
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        response = await ac.get("/api/v1/health/ready")
    assert response.status_code == 200
    assert response.json() == {
        "status": "ok",
        "database_backend": "memory",
        "storage_backend": "local",
        "scanner_backend": "disabled",
        "job_queue": "memory",
        "workers_running": False,
    }


async def test_lifespan_wires_and_releases_services(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("STORAGE_ROOT", str(tmp_path / "blobs"))
    monkeypatch.setenv("APPROVAL_WORKERS_ENABLED", "true")
    app = create_app()
    async with app.router.lifespan_context(app):
        services = app.state.services
        assert services is not None
        assert services.memory_store is not None
        assert services.scanner.bypassed is True
        assert services.scheduler.running is True
    assert app.state.services is None
    assert services.scheduler.running is False


async def test_lifespan_keeps_preconfigured_services(services) -> None:
    app = create_app()
    app.state.services = services
    async with app.router.lifespan_context(app):
        assert app.state.services is services


def _app_raising(exc: Exception) -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/boom")
    async def boom() -> None:
        raise exc

    return app


@pytest.mark.parametrize(
    ("exc", "status", "code"),
    [
        (ResourceNotFoundException("document", "d1"), 404, "RESOURCE_NOT_FOUND"),
        (ValidationException("bad title", field="title"), 400, "VALIDATION_ERROR"),
        (VersionClosedException("v1", "PUBLISHED"), 409, "VERSION_CLOSED"),
        (StoragePermissionError("../x", "path_validation"), 403, "STORAGE_PERMISSION_ERROR"),
        (JobQueueUnavailableError("enqueue", "down"), 503, "JOB_QUEUE_UNAVAILABLE"),
    ],
)
async def test_domain_errors_render_as_json(exc, status, code) -> None:
    app = _app_raising(exc)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        response = await ac.get("/boom")
    assert response.status_code == status
    body = response.json()
    assert body["error"] == code
    assert body["message"] == exc.message
    assert body["retryable"] is exc.retryable
    assert ("Retry-After" in response.headers) is exc.retryable


async def test_unhandled_error_hides_detail() -> None:
    app = _app_raising(RuntimeError("secret internals"))
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        response = await ac.get("/boom")
    assert response.status_code == 500
    assert response.json() == {"error": "INTERNAL_ERROR", "message": "Internal server error"}
