"""Object store interface (port). Implementations: LocalStorageService, S3StorageService."""

from collections.abc import AsyncIterator
from typing import Protocol


class IObjectStore(Protocol):
    """Protocol for blob storage keyed by opaque strings.

    Implementations create their backing container (directory, bucket)
    lazily and idempotently on first use. Outages raise
    TransientInfrastructureException subclasses.
    """

    async def put(self, key: str, data: bytes, content_type: str) -> None:
        """Store data under key, overwriting any existing blob."""
        ...

    def get_stream(self, key: str) -> AsyncIterator[bytes]:
        """Stream blob content. Raises StorageNotFoundError if missing."""
        ...

    async def copy(self, src_key: str, dst_key: str) -> None:
        """Copy a blob to a new key."""
        ...

    async def delete(self, key: str) -> bool:
        """Delete blob. Returns True if deleted, False if not found."""
        ...

    async def exists(self, key: str) -> bool:
        """Return True if blob exists."""
        ...
