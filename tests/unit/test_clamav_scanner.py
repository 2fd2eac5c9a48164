"""Tests for the clamd INSTREAM client against an in-process fake daemon."""

import asyncio
import struct

import pytest

from app.domain.enums import ScanVerdict
from app.infrastructure.exceptions import ScannerUnavailableError
from app.infrastructure.external.scanner.clamav_scanner import (
    BypassScanner,
    ClamAVScanner,
    parse_clamd_response,
)

EICAR = b"X5O!P%@AP[4\\PZX54(P^)7CC)7}$EICAR-STANDARD-ANTIVIRUS-TEST-FILE!$H+H*"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (b"stream: OK\0", ScanVerdict.CLEAN),
        (b"stream: OK\n", ScanVerdict.CLEAN),
        (b"stream: Eicar-Test-Signature FOUND\0", ScanVerdict.INFECTED),
    ],
)
def test_parse_clamd_response(raw: bytes, expected: ScanVerdict) -> None:
    assert parse_clamd_response(raw) is expected


@pytest.mark.parametrize(
    "raw", [b"", b"\0", b"INSTREAM size limit exceeded. ERROR\0", b"PONG\0"]
)
def test_parse_clamd_response_unusable(raw: bytes) -> None:
    with pytest.raises(ScannerUnavailableError):
        parse_clamd_response(raw)


class FakeClamd:
    """Minimal clamd: collects INSTREAM chunks and answers per payload."""

    def __init__(self) -> None:
        self.received: list[bytes] = []
        self.chunk_sizes: list[int] = []
        self.server: asyncio.Server | None = None

    async def _handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        command = await reader.readexactly(len(b"zINSTREAM\0"))
        assert command == b"zINSTREAM\0"
        payload = b""
        while True:
            (size,) = struct.unpack("!L", await reader.readexactly(4))
            if size == 0:
                break
            self.chunk_sizes.append(size)
            payload += await reader.readexactly(size)
        self.received.append(payload)
        if b"EICAR" in payload:
            writer.write(b"stream: Eicar-Test-Signature FOUND\0")
        else:
            writer.write(b"stream: OK\0")
        await writer.drain()
        writer.close()

    async def start(self) -> int:
        self.server = await asyncio.start_server(self._handle, "127.0.0.1", 0)
        return self.server.sockets[0].getsockname()[1]

    async def stop(self) -> None:
        assert self.server is not None
        self.server.close()
        await self.server.wait_closed()


@pytest.fixture
async def clamd():
    fake = FakeClamd()
    port = await fake.start()
    yield fake, port
    await fake.stop()


async def test_clean_payload(clamd) -> None:
    fake, port = clamd
    scanner = ClamAVScanner("127.0.0.1", port, timeout_seconds=5)
    assert await scanner.scan(b"%PDF-1.7 harmless") is ScanVerdict.CLEAN
    assert fake.received == [b"%PDF-1.7 harmless"]


async def test_infected_payload_streamed_in_chunks(clamd) -> None:
    fake, port = clamd
    scanner = ClamAVScanner("127.0.0.1", port, timeout_seconds=5, chunk_size=16)
    assert await scanner.scan(EICAR) is ScanVerdict.INFECTED
    assert fake.received == [EICAR]
    assert max(fake.chunk_sizes) == 16
    assert sum(fake.chunk_sizes) == len(EICAR)


async def test_connection_refused_is_unavailable() -> None:
    server = await asyncio.start_server(lambda r, w: None, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    server.close()
    await server.wait_closed()

    with pytest.raises(ScannerUnavailableError):
        await ClamAVScanner("127.0.0.1", port, timeout_seconds=2).scan(b"data")


async def test_silent_daemon_times_out() -> None:
    async def _never_answer(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        await reader.read()
        writer.close()

    server = await asyncio.start_server(_never_answer, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    try:
        with pytest.raises(ScannerUnavailableError) as exc_info:
            await ClamAVScanner("127.0.0.1", port, timeout_seconds=0.1).scan(b"data")
        assert "timed out" in exc_info.value.details["reason"]
    finally:
        server.close()
        await server.wait_closed()


def test_invalid_chunk_size() -> None:
    with pytest.raises(ValueError, match="chunk_size"):
        ClamAVScanner("localhost", chunk_size=0)


async def test_bypass_scanner_accepts_everything() -> None:
    scanner = BypassScanner()
    assert scanner.bypassed is True
    assert await scanner.scan(EICAR) is ScanVerdict.CLEAN
