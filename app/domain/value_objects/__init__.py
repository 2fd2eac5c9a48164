"""Domain value objects and shared value types."""

from app.domain.value_objects.core import Checksum, VersionNumber

__all__ = [
    "Checksum",
    "VersionNumber",
]
