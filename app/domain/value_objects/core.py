"""Domain value objects for docflow.

Value objects are immutable types that represent domain concepts with
self-validation. They have no identity, only value.
"""

import re
from dataclasses import dataclass
from typing import ClassVar

# Dotted triple of non-negative integers, e.g. 1.0.0 or 2.13.7.
_VERSION_RE = re.compile(r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)$")
# 64 lowercase hex characters (SHA-256).
_SHA256_RE = re.compile(r"^[a-f0-9]{64}$")


@dataclass(frozen=True, order=True)
class VersionNumber:
    """Value object for a document version label (major.minor.patch).

    Ordering compares (major, minor, patch) numerically, so 1.10.0 > 1.9.0.
    """

    major: int
    minor: int
    patch: int

    INITIAL: ClassVar[str] = "1.0.0"

    def __post_init__(self) -> None:
        if self.major < 0 or self.minor < 0 or self.patch < 0:
            raise ValueError("Version components must be non-negative")

    @classmethod
    def parse(cls, value: str) -> "VersionNumber":
        """Parse a dotted triple. Raises ValueError if the label is malformed."""
        if not isinstance(value, str):
            raise ValueError("Version label must be a string")
        match = _VERSION_RE.match(value.strip())
        if not match:
            raise ValueError(
                f"Version label must be a dotted triple like '1.0.0', got {value!r}"
            )
        return cls(int(match.group(1)), int(match.group(2)), int(match.group(3)))

    @classmethod
    def initial(cls) -> "VersionNumber":
        return cls.parse(cls.INITIAL)

    @classmethod
    def is_valid(cls, value: str | None) -> bool:
        """Return True if value parses as a version label."""
        if value is None:
            return False
        try:
            cls.parse(value)
        except ValueError:
            return False
        return True

    def next_patch(self) -> "VersionNumber":
        """Return the label with the patch component incremented."""
        return VersionNumber(self.major, self.minor, self.patch + 1)

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


@dataclass(frozen=True)
class Checksum:
    """Value object for a SHA-256 content digest (lowercase hex).

    Used for integrity verification of stored blobs, not deduplication.
    """

    value: str

    def __post_init__(self) -> None:
        if not self.value:
            raise ValueError("Checksum must be a non-empty string")
        if not _SHA256_RE.match(self.value):
            raise ValueError("Checksum must be 64 lowercase hex characters (SHA-256)")

    def __str__(self) -> str:
        return self.value
