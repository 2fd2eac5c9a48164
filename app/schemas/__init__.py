"""API schemas (Pydantic response models)."""

from app.schemas.health import HealthResponse, ReadinessResponse

__all__ = ["HealthResponse", "ReadinessResponse"]
