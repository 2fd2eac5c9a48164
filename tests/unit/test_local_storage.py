"""Tests for LocalStorageService."""

import json

import pytest

from app.infrastructure.exceptions import StorageNotFoundError, StoragePermissionError
from app.infrastructure.external.storage.local_storage import LocalStorageService


async def _read_all(storage: LocalStorageService, key: str) -> bytes:
    return b"".join([chunk async for chunk in storage.get_stream(key)])


async def test_root_created_lazily(tmp_path) -> None:
    root = tmp_path / "lazy"
    storage = LocalStorageService(str(root))
    assert not root.exists()
    await storage.put("a/b.bin", b"x", "application/octet-stream")
    assert root.is_dir()


async def test_put_get_and_metadata_sidecar(storage: LocalStorageService) -> None:
    key = "documents/doc-1/v1/blob"
    await storage.put(key, b"hello world", "text/plain")

    assert await storage.exists(key) is True
    assert await _read_all(storage, key) == b"hello world"
    meta = json.loads((storage.storage_root / f"{key}.meta.json").read_text())
    assert meta["content_type"] == "text/plain"
    assert meta["size"] == 11


async def test_put_overwrites(storage: LocalStorageService) -> None:
    await storage.put("k", b"first", "text/plain")
    await storage.put("k", b"second", "text/plain")
    assert await _read_all(storage, "k") == b"second"
    assert [p.name for p in storage.storage_root.iterdir() if p.name.startswith(".tmp_")] == []


async def test_large_blob_streams_in_chunks(storage: LocalStorageService) -> None:
    data = b"z" * (LocalStorageService.CHUNK_SIZE * 2 + 10)
    await storage.put("big", data, "application/octet-stream")
    chunks = [chunk async for chunk in storage.get_stream("big")]
    assert len(chunks) == 3
    assert b"".join(chunks) == data


async def test_missing_key(storage: LocalStorageService) -> None:
    assert await storage.exists("nope") is False
    with pytest.raises(StorageNotFoundError):
        await _read_all(storage, "nope")
    with pytest.raises(StorageNotFoundError):
        await storage.copy("nope", "elsewhere")
    assert await storage.delete("nope") is False


async def test_copy_includes_sidecar(storage: LocalStorageService) -> None:
    await storage.put("src/blob", b"payload", "application/pdf")
    await storage.copy("src/blob", "dst/nested/blob")
    assert await _read_all(storage, "dst/nested/blob") == b"payload"
    assert (storage.storage_root / "dst/nested/blob.meta.json").is_file()


async def test_delete_prunes_empty_directories(storage: LocalStorageService) -> None:
    await storage.put("a/b/c/blob", b"1", "text/plain")
    await storage.put("a/keep", b"2", "text/plain")
    assert await storage.delete("a/b/c/blob") is True
    assert not (storage.storage_root / "a/b").exists()
    assert (storage.storage_root / "a/keep").is_file()


@pytest.mark.parametrize("key", ["../escape", "a/../../escape", "/etc/passwd", ""])
async def test_path_traversal_rejected(storage: LocalStorageService, key: str) -> None:
    with pytest.raises(StoragePermissionError):
        await storage.put(key, b"x", "text/plain")
    with pytest.raises(StoragePermissionError):
        await storage.exists(key)
