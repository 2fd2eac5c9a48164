"""ClamAV malware scanner over the clamd INSTREAM protocol (TCP)."""

from __future__ import annotations

import asyncio
import struct

from app.domain.enums import ScanVerdict
from app.infrastructure.exceptions import ScannerUnavailableError
from app.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

# Null-terminated command; replies are null-terminated too.
_INSTREAM_COMMAND = b"zINSTREAM\0"
_END_OF_STREAM = struct.pack("!L", 0)


def parse_clamd_response(raw: bytes) -> ScanVerdict:
    """Map a clamd INSTREAM reply to a verdict.

    "stream: OK" is clean; "stream: <signature> FOUND" is infected. Errors
    (e.g. "INSTREAM size limit exceeded. ERROR") and empty replies raise
    ScannerUnavailableError.
    """
    text = raw.rstrip(b"\0").decode("utf-8", errors="replace").strip()
    if not text:
        raise ScannerUnavailableError("empty response from clamd")
    if text.endswith("FOUND"):
        return ScanVerdict.INFECTED
    if text.endswith("ERROR"):
        raise ScannerUnavailableError(f"clamd error: {text}")
    if text.endswith("OK"):
        return ScanVerdict.CLEAN
    raise ScannerUnavailableError(f"unexpected clamd response: {text}")


class ClamAVScanner:
    """Scans payloads by streaming them to a clamd daemon.

    Each scan opens its own connection; the payload is sent as
    length-prefixed chunks (4-byte big-endian) followed by a zero-length
    terminator. The whole exchange is bounded by timeout_seconds.
    """

    bypassed = False

    def __init__(
        self,
        host: str,
        port: int = 3310,
        timeout_seconds: float = 30.0,
        chunk_size: int = 64 * 1024,
    ) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.host = host
        self.port = port
        self.timeout_seconds = timeout_seconds
        self.chunk_size = chunk_size

    async def _exchange(self, data: bytes) -> bytes:
        reader, writer = await asyncio.open_connection(self.host, self.port)
        try:
            writer.write(_INSTREAM_COMMAND)
            for offset in range(0, len(data), self.chunk_size):
                chunk = data[offset : offset + self.chunk_size]
                writer.write(struct.pack("!L", len(chunk)) + chunk)
                await writer.drain()
            writer.write(_END_OF_STREAM)
            await writer.drain()
            return await reader.read()
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except OSError:
                logger.debug("clamd connection closed with error", exc_info=True)

    async def scan(self, data: bytes) -> ScanVerdict:
        """Return CLEAN or INFECTED. Raises ScannerUnavailableError on outage or timeout."""
        try:
            raw = await asyncio.wait_for(self._exchange(data), self.timeout_seconds)
        except TimeoutError as e:
            raise ScannerUnavailableError(
                f"clamd scan timed out after {self.timeout_seconds}s"
            ) from e
        except OSError as e:
            raise ScannerUnavailableError(str(e)) from e
        verdict = parse_clamd_response(raw)
        logger.debug("clamd verdict %s for %d bytes", verdict.value, len(data))
        return verdict


class BypassScanner:
    """Development scanner: accepts everything; versions are recorded as BYPASSED."""

    bypassed = True

    async def scan(self, data: bytes) -> ScanVerdict:
        return ScanVerdict.CLEAN
