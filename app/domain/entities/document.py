"""Document version domain entity.

Encapsulates the version review lifecycle independent of persistence:
IN_REVIEW -> ARCHIVED (rejection) or IN_REVIEW -> PUBLISHED (quorum),
PUBLISHED -> ARCHIVED only when superseded by a later promotion.
"""

from dataclasses import dataclass, field

from app.domain.enums import ApprovalDecision, DocumentVersionStatus
from app.domain.exceptions import ValidationException, VersionClosedException
from app.domain.value_objects.core import VersionNumber


@dataclass
class DocumentVersionEntity:
    """Domain entity for a single document version.

    Validation runs on construction. Transition methods mutate status and
    raise ValueError on an illegal transition.
    """

    id: str
    document_id: str
    version_no: str
    status: DocumentVersionStatus

    def __post_init__(self) -> None:
        self.status = DocumentVersionStatus(self.status)
        self.validate()

    def validate(self) -> None:
        """Validate version business rules. Raises ValidationException if invalid."""
        if not self.id:
            raise ValidationException("Version ID is required", field="id")
        if not self.document_id:
            raise ValidationException("Document ID is required", field="document_id")

    @property
    def number(self) -> VersionNumber | None:
        """Parsed version label, or None when the stored value is malformed."""
        try:
            return VersionNumber.parse(self.version_no)
        except ValueError:
            return None

    def accepts_decisions(self) -> bool:
        """Return True only while the version is IN_REVIEW."""
        return self.status == DocumentVersionStatus.IN_REVIEW

    def ensure_accepts_decisions(self) -> None:
        """Raise VersionClosedException when the version has left IN_REVIEW."""
        if not self.accepts_decisions():
            raise VersionClosedException(self.id, self.status.value)

    def reject(self) -> None:
        """Archive an IN_REVIEW version after a rejection.

        Raises:
            ValueError: If the version is not IN_REVIEW.
        """
        if self.status != DocumentVersionStatus.IN_REVIEW:
            raise ValueError(f"Version is {self.status.value}, cannot reject")
        self.status = DocumentVersionStatus.ARCHIVED

    def publish(self) -> None:
        """Publish an IN_REVIEW version once quorum is reached.

        Raises:
            ValueError: If the version is not IN_REVIEW.
        """
        if self.status != DocumentVersionStatus.IN_REVIEW:
            raise ValueError(f"Version is {self.status.value}, cannot publish")
        self.status = DocumentVersionStatus.PUBLISHED

    def supersede(self) -> None:
        """Archive the previously published version. Archiving is irreversible.

        Raises:
            ValueError: If the version is already archived.
        """
        if self.status == DocumentVersionStatus.ARCHIVED:
            raise ValueError("Version is already archived")
        self.status = DocumentVersionStatus.ARCHIVED


@dataclass
class ApprovalTally:
    """Latest decision per approver for one version."""

    decisions: dict[str, ApprovalDecision] = field(default_factory=dict)

    def record(self, approver_id: str, decision: ApprovalDecision) -> None:
        self.decisions[approver_id] = ApprovalDecision(decision)

    @property
    def approved_count(self) -> int:
        return sum(1 for d in self.decisions.values() if d == ApprovalDecision.APPROVED)

    @property
    def has_rejection(self) -> bool:
        return any(d == ApprovalDecision.REJECTED for d in self.decisions.values())

    def reaches_quorum(self, threshold: int) -> bool:
        """True when at least threshold distinct approvers approved and none rejected."""
        return not self.has_rejection and self.approved_count >= threshold

    def pending(self, roster: list[str]) -> list[str]:
        """Return roster members that have not decided yet, in roster order."""
        return [user_id for user_id in roster if user_id not in self.decisions]
