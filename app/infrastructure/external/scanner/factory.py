"""Scanner factory: creates the ClamAV or bypass scanner from settings."""

from __future__ import annotations

from typing import TYPE_CHECKING

from app.application.interfaces.services import IMalwareScanner
from app.infrastructure.external.scanner.clamav_scanner import (
    BypassScanner,
    ClamAVScanner,
)
from app.shared.telemetry.logging import get_logger

if TYPE_CHECKING:
    from app.core.config import Settings

logger = get_logger(__name__)


def create_malware_scanner(settings: "Settings | None" = None) -> IMalwareScanner:
    """Return the scanner selected by scanner_backend ('clamav' or 'disabled')."""
    from app.core.config import get_settings

    s = settings or get_settings()
    backend = s.scanner_backend.lower()
    if backend == "clamav":
        return ClamAVScanner(
            host=s.clamav_host,
            port=s.clamav_port,
            timeout_seconds=s.clamav_timeout_seconds,
            chunk_size=s.clamav_chunk_size,
        )
    if backend == "disabled":
        logger.warning("Malware scanning is disabled; uploads are recorded as BYPASSED")
        return BypassScanner()
    raise ValueError(f"Unknown scanner backend: {backend}. Supported: 'clamav', 'disabled'")
