"""S3-compatible object storage (AWS S3, MinIO, etc.)."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from app.infrastructure.exceptions import (
    StorageCopyError,
    StorageDeleteError,
    StorageDownloadError,
    StorageNotFoundError,
    StorageUploadError,
)
from app.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

_NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NotFound", "NoSuchBucket"})


def _error_code(e: ClientError) -> str:
    return str(e.response.get("Error", {}).get("Code", ""))


class S3StorageService:
    """S3-compatible storage with server-side encryption.

    Uses boto3 (sync) via asyncio.to_thread for async API. Compatible with
    AWS S3, MinIO, DigitalOcean Spaces. The bucket is created on first use
    when missing (head, then create on 404).
    """

    CHUNK_SIZE = 64 * 1024  # 64KB

    def __init__(
        self,
        bucket: str,
        region: str = "us-east-1",
        endpoint_url: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
        force_path_style: bool = False,
        client: Any = None,
    ) -> None:
        """Initialize S3 client.

        Args:
            bucket: Bucket name.
            region: AWS region.
            endpoint_url: Custom endpoint (MinIO/Spaces).
            access_key: Optional; uses env/IAM if not set.
            secret_key: Optional.
            force_path_style: Path-style addressing (MinIO).
            client: Optional preconfigured boto3 client (tests).
        """
        self.bucket = bucket
        self.region = region
        self._bucket_ready = False
        self._bucket_lock = asyncio.Lock()
        if client is not None:
            self._client = client
            return
        extra: dict[str, Any] = {} if endpoint_url is None else {"endpoint_url": endpoint_url}
        if force_path_style:
            extra["config"] = Config(s3={"addressing_style": "path"})
        self._client = boto3.client(
            "s3",
            region_name=region,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            **extra,
        )

    def _ensure_bucket_sync(self) -> None:
        try:
            self._client.head_bucket(Bucket=self.bucket)
            return
        except ClientError as e:
            if _error_code(e) not in _NOT_FOUND_CODES:
                raise
        params: dict[str, Any] = {"Bucket": self.bucket}
        if self.region != "us-east-1":
            params["CreateBucketConfiguration"] = {"LocationConstraint": self.region}
        try:
            self._client.create_bucket(**params)
            logger.info("Created S3 bucket %s", self.bucket)
        except ClientError as e:
            # Another process created it between head and create.
            if _error_code(e) not in ("BucketAlreadyOwnedByYou", "BucketAlreadyExists"):
                raise

    async def _ensure_bucket(self) -> None:
        """Create the bucket once per process if it does not exist."""
        if self._bucket_ready:
            return
        async with self._bucket_lock:
            if not self._bucket_ready:
                await asyncio.to_thread(self._ensure_bucket_sync)
                self._bucket_ready = True

    async def put(self, key: str, data: bytes, content_type: str) -> None:
        """Upload object (overwrites an existing key)."""

        def _put() -> None:
            self._client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
                ServerSideEncryption="AES256",
            )

        try:
            await self._ensure_bucket()
            await asyncio.to_thread(_put)
        except (ClientError, BotoCoreError) as e:
            raise StorageUploadError(key, str(e)) from e

    async def get_stream(self, key: str) -> AsyncIterator[bytes]:
        """Stream object content, reading the body in CHUNK_SIZE pieces off-thread."""

        def _open() -> Any:
            try:
                return self._client.get_object(Bucket=self.bucket, Key=key)["Body"]
            except ClientError as e:
                if _error_code(e) in _NOT_FOUND_CODES:
                    raise StorageNotFoundError(key) from e
                raise

        try:
            body = await asyncio.to_thread(_open)
        except (ClientError, BotoCoreError) as e:
            raise StorageDownloadError(key, str(e)) from e
        try:
            while True:
                chunk = await asyncio.to_thread(body.read, self.CHUNK_SIZE)
                if not chunk:
                    break
                yield chunk
        except (ClientError, BotoCoreError) as e:
            raise StorageDownloadError(key, str(e)) from e
        finally:
            body.close()

    async def copy(self, src_key: str, dst_key: str) -> None:
        """Server-side copy within the bucket."""

        def _copy() -> None:
            try:
                self._client.copy_object(
                    Bucket=self.bucket,
                    Key=dst_key,
                    CopySource={"Bucket": self.bucket, "Key": src_key},
                    ServerSideEncryption="AES256",
                )
            except ClientError as e:
                if _error_code(e) in _NOT_FOUND_CODES:
                    raise StorageNotFoundError(src_key) from e
                raise

        try:
            await self._ensure_bucket()
            await asyncio.to_thread(_copy)
        except (ClientError, BotoCoreError) as e:
            raise StorageCopyError(src_key, dst_key, str(e)) from e

    async def delete(self, key: str) -> bool:
        """Delete object. Returns True if deleted, False if it did not exist."""

        def _delete() -> bool:
            try:
                self._client.head_object(Bucket=self.bucket, Key=key)
            except ClientError as e:
                if _error_code(e) in _NOT_FOUND_CODES:
                    return False
                raise
            self._client.delete_object(Bucket=self.bucket, Key=key)
            return True

        try:
            return await asyncio.to_thread(_delete)
        except (ClientError, BotoCoreError) as e:
            raise StorageDeleteError(key, str(e)) from e

    async def exists(self, key: str) -> bool:
        """Return True if object exists."""

        def _exists() -> bool:
            try:
                self._client.head_object(Bucket=self.bucket, Key=key)
                return True
            except ClientError as e:
                if _error_code(e) in _NOT_FOUND_CODES:
                    return False
                raise

        try:
            return await asyncio.to_thread(_exists)
        except (ClientError, BotoCoreError) as e:
            raise StorageDownloadError(key, str(e)) from e
