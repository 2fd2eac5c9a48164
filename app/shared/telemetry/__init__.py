"""Shared telemetry: logging setup and tracing helpers."""

from app.shared.telemetry.logging import get_logger, setup_logging
from app.shared.telemetry.tracing import traced

__all__ = [
    "setup_logging",
    "get_logger",
    "traced",
]
