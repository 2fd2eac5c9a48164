"""Health check API schemas."""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response for GET /health (liveness)."""

    status: str = Field(default="ok", description="Service status")


class ReadinessResponse(BaseModel):
    """Response for GET /health/ready once the lifespan has wired the services."""

    status: str = Field(default="ok", description="Readiness status")
    database_backend: str = Field(..., description="'postgres' or 'memory'")
    storage_backend: str = Field(..., description="'local' or 's3'")
    scanner_backend: str = Field(..., description="'clamav' or 'disabled'")
    job_queue: str = Field(..., description="'redis' or 'memory'")
    workers_running: bool = Field(..., description="Approval job workers started")
