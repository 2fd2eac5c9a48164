"""Domain exceptions for the docflow application.

Defines domain-level exceptions that represent business rule violations.
These exceptions are independent of infrastructure concerns. Presentation
layer maps them to HTTP responses in exception handlers.

Callers react differently to three families, so each carries its own
error_code: invalid input (ValidationException, IntegrityViolationException),
state that can no longer be acted on (StateConflictException) and
infrastructure that should be retried later (TransientInfrastructureException).
"""

from typing import Any


class DocflowException(Exception):
    """Base exception for all docflow application errors.

    All custom exceptions should inherit from this class to allow
    consistent error handling and logging. Presentation layer maps
    these to HTTP responses using message, error_code, and details.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. field, resource_id).
    """

    retryable: bool = False

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for an API error body."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
            "retryable": self.retryable,
        }


class ValidationException(DocflowException):
    """Raised when input validation fails (e.g. empty payload, malformed label)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize with message and optional field name.

        Args:
            message: Description of the validation failure.
            field: Optional field or attribute that failed validation.
        """
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class IntegrityViolationException(DocflowException):
    """Raised when uploaded content fails the malware gate. Nothing is persisted."""

    def __init__(self, document_id: str) -> None:
        super().__init__(
            "Uploaded file failed malware scan",
            "MALWARE_DETECTED",
            {"document_id": document_id},
        )


class ResourceNotFoundException(DocflowException):
    """Raised when a requested resource is not found."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        """Initialize with resource type and id.

        Args:
            resource_type: Type of resource (e.g. 'document', 'document_version').
            resource_id: The ID that was not found.
        """
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class StateConflictException(DocflowException):
    """Raised when the target is in a state that no longer allows the operation. Not retryable."""


class VersionClosedException(StateConflictException):
    """Raised when a decision is submitted for a version that has left IN_REVIEW."""

    def __init__(self, version_id: str, status: str) -> None:
        super().__init__(
            f"Document version {version_id} is closed ({status}); no further decisions accepted",
            "VERSION_CLOSED",
            {"version_id": version_id, "status": status},
        )


class DocumentVersionConflictException(StateConflictException):
    """Raised when a concurrent request created the same version number first."""

    def __init__(self, document_id: str, version_no: str) -> None:
        super().__init__(
            "Document was updated by another request; retry.",
            "DOCUMENT_VERSION_CONFLICT",
            {"document_id": document_id, "version_no": version_no},
        )


class TransientInfrastructureException(DocflowException):
    """Base for storage/scanner/queue outages. Propagated uncaught; the caller decides on retry."""

    retryable = True


class SqlNotConfiguredException(TransientInfrastructureException):
    """Raised when an operation requires Postgres but the backend is not configured."""

    def __init__(self) -> None:
        super().__init__(
            message="This operation requires a SQL database that is not configured.",
            error_code="SERVICE_UNAVAILABLE",
        )
