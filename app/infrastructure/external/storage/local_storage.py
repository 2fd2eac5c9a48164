"""Local filesystem object store with path validation and atomic writes."""

from __future__ import annotations

import asyncio
import json
import os
import shutil
import tempfile
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

import aiofiles
import aiofiles.os

from app.infrastructure.exceptions import (
    StorageCopyError,
    StorageDeleteError,
    StorageDownloadError,
    StorageNotFoundError,
    StoragePermissionError,
    StorageUploadError,
)
from app.shared.telemetry.logging import get_logger
from app.shared.utils.datetime import utc_now

logger = get_logger(__name__)

_META_SUFFIX = ".meta.json"


class LocalStorageService:
    """Local filesystem storage with atomic writes and path traversal protection.

    Keys are validated against storage_root. Writes use temp file + rename.
    Content type is kept in a .meta.json sidecar. The root directory is
    created on first use, not at construction.
    """

    CHUNK_SIZE = 64 * 1024  # 64KB

    def __init__(self, storage_root: str) -> None:
        """Initialize local storage.

        Args:
            storage_root: Base directory for all blobs.
        """
        self.storage_root = Path(storage_root).resolve()
        self._root_ready = False
        self._root_lock = asyncio.Lock()

    async def _ensure_root(self) -> None:
        """Create storage_root once (idempotent, safe under concurrent first use)."""
        if self._root_ready:
            return
        async with self._root_lock:
            if not self._root_ready:
                await aiofiles.os.makedirs(self.storage_root, mode=0o750, exist_ok=True)
                self._root_ready = True
                logger.info("Local storage root ready: %s", self.storage_root)

    def _get_full_path(self, key: str) -> Path:
        """Resolve and validate path under storage_root. Raises StoragePermissionError if traversal."""
        full_path = (self.storage_root / key).resolve()
        try:
            full_path.relative_to(self.storage_root)
        except ValueError as e:
            raise StoragePermissionError(key, "path_validation") from e
        if full_path == self.storage_root:
            raise StoragePermissionError(key, "path_validation")
        return full_path

    @staticmethod
    def _meta_path(file_path: Path) -> Path:
        return file_path.with_name(file_path.name + _META_SUFFIX)

    async def _write_metadata(self, file_path: Path, metadata: dict[str, Any]) -> None:
        """Write JSON sidecar."""
        async with aiofiles.open(self._meta_path(file_path), "w") as f:
            await f.write(json.dumps(metadata, indent=2))

    async def put(self, key: str, data: bytes, content_type: str) -> None:
        """Write blob atomically (temp file + rename). Overwrites an existing key."""
        target_path = self._get_full_path(key)
        try:
            await self._ensure_root()
            await aiofiles.os.makedirs(target_path.parent, mode=0o750, exist_ok=True)
            temp_fd, temp_path = tempfile.mkstemp(
                dir=target_path.parent, prefix=".tmp_"
            )
            os.close(temp_fd)
            try:
                async with aiofiles.open(temp_path, "wb") as f:
                    await f.write(data)
                os.chmod(temp_path, 0o640)
                os.replace(temp_path, target_path)
            finally:
                if Path(temp_path).exists():
                    os.unlink(temp_path)
            await self._write_metadata(
                target_path,
                {
                    "key": key,
                    "size": len(data),
                    "content_type": content_type,
                    "uploaded_at": utc_now().isoformat(),
                },
            )
        except StoragePermissionError:
            raise
        except Exception as e:
            raise StorageUploadError(key, str(e)) from e

    async def get_stream(self, key: str) -> AsyncIterator[bytes]:
        """Stream blob content in CHUNK_SIZE pieces."""
        file_path = self._get_full_path(key)
        if not file_path.is_file():
            raise StorageNotFoundError(key)
        try:
            async with aiofiles.open(file_path, "rb") as f:
                while True:
                    chunk = await f.read(self.CHUNK_SIZE)
                    if not chunk:
                        break
                    yield chunk
        except Exception as e:
            raise StorageDownloadError(key, str(e)) from e

    async def copy(self, src_key: str, dst_key: str) -> None:
        """Copy blob and sidecar to a new key."""
        src_path = self._get_full_path(src_key)
        dst_path = self._get_full_path(dst_key)
        if not src_path.is_file():
            raise StorageNotFoundError(src_key)
        try:
            await aiofiles.os.makedirs(dst_path.parent, mode=0o750, exist_ok=True)
            await asyncio.to_thread(shutil.copy2, src_path, dst_path)
            src_meta = self._meta_path(src_path)
            if src_meta.exists():
                await asyncio.to_thread(shutil.copy2, src_meta, self._meta_path(dst_path))
        except Exception as e:
            raise StorageCopyError(src_key, dst_key, str(e)) from e

    async def delete(self, key: str) -> bool:
        """Delete blob and sidecar; prune empty parent dirs. Returns True if deleted."""
        file_path = self._get_full_path(key)
        try:
            if not file_path.exists():
                return False
            await aiofiles.os.remove(file_path)
            meta_path = self._meta_path(file_path)
            if meta_path.exists():
                await aiofiles.os.remove(meta_path)
            parent = file_path.parent
            while parent != self.storage_root:
                try:
                    if not any(parent.iterdir()):
                        parent.rmdir()
                        parent = parent.parent
                    else:
                        break
                except OSError:
                    break
            return True
        except Exception as e:
            raise StorageDeleteError(key, str(e)) from e

    async def exists(self, key: str) -> bool:
        """Return True if blob exists."""
        return self._get_full_path(key).is_file()
