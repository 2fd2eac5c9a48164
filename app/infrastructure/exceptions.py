"""Infrastructure exceptions for storage, scanner and queue operations.

Outages extend TransientInfrastructureException so presentation maps them
to 503 with retryable set, and callers can tell them apart from business
rule violations.
"""

from app.domain.exceptions import TransientInfrastructureException


class StorageException(TransientInfrastructureException):
    """Base exception for storage operations."""


class StorageNotFoundError(StorageException):
    """File or object not found in storage. Not retryable."""

    retryable = False

    def __init__(self, file_path: str) -> None:
        super().__init__(
            f"File not found: {file_path}",
            "STORAGE_NOT_FOUND",
            {"file_path": file_path},
        )


class StorageUploadError(StorageException):
    """File upload failed."""

    def __init__(self, file_path: str, reason: str) -> None:
        super().__init__(
            f"Failed to upload file: {file_path}",
            "STORAGE_UPLOAD_ERROR",
            {"file_path": file_path, "reason": reason},
        )


class StorageDownloadError(StorageException):
    """File download failed."""

    def __init__(self, file_path: str, reason: str) -> None:
        super().__init__(
            f"Failed to download file: {file_path}",
            "STORAGE_DOWNLOAD_ERROR",
            {"file_path": file_path, "reason": reason},
        )


class StorageCopyError(StorageException):
    """Server-side copy failed."""

    def __init__(self, src_path: str, dst_path: str, reason: str) -> None:
        super().__init__(
            f"Failed to copy file: {src_path} -> {dst_path}",
            "STORAGE_COPY_ERROR",
            {"src_path": src_path, "dst_path": dst_path, "reason": reason},
        )


class StorageDeleteError(StorageException):
    """File deletion failed."""

    def __init__(self, file_path: str, reason: str) -> None:
        super().__init__(
            f"Failed to delete file: {file_path}",
            "STORAGE_DELETE_ERROR",
            {"file_path": file_path, "reason": reason},
        )


class ScannerUnavailableError(TransientInfrastructureException):
    """Malware scanner could not be reached or returned an unusable response."""

    def __init__(self, reason: str) -> None:
        super().__init__(
            "Malware scanner unavailable",
            "SCANNER_UNAVAILABLE",
            {"reason": reason},
        )


class JobQueueUnavailableError(TransientInfrastructureException):
    """Delayed job queue could not be reached."""

    def __init__(self, operation: str, reason: str) -> None:
        super().__init__(
            f"Job queue unavailable during {operation}",
            "JOB_QUEUE_UNAVAILABLE",
            {"operation": operation, "reason": reason},
        )


class StoragePermissionError(StorageException):
    """Key resolves outside the storage root or access was denied. Not retryable."""

    retryable = False

    def __init__(self, file_path: str, operation: str) -> None:
        super().__init__(
            f"Permission denied for {operation} on {file_path}",
            "STORAGE_PERMISSION_ERROR",
            {"file_path": file_path, "operation": operation},
        )
