"""Malware scanning: ClamAV (clamd INSTREAM) and a development bypass."""

from app.infrastructure.external.scanner.clamav_scanner import (
    BypassScanner,
    ClamAVScanner,
    parse_clamd_response,
)
from app.infrastructure.external.scanner.factory import create_malware_scanner

__all__ = [
    "BypassScanner",
    "ClamAVScanner",
    "create_malware_scanner",
    "parse_clamd_response",
]
