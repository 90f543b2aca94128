"""Report record and its lifecycle states.

Triage and acceptance are tagged variants rather than independent nullable
fields, so a report can only carry a triage result once triage completed,
an error message once it failed, and a rejection reason once rejected.

Lifecycle:
    triaging -> complete | error
    complete -> resolved (admin resolution or validation)

    acceptance: pending -> accepted | rejected (never back to pending)
"""

import base64
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, Field

from ..llm.schemas import CitationSource, GeoPoint, TriageResult


class ReportStatus(str, Enum):
    TRIAGING = "triaging"
    COMPLETE = "complete"
    ERROR = "error"
    RESOLVED = "resolved"


class KanbanStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    DONE = "done"


class AcceptanceStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


# =============================================================================
# Triage state
# =============================================================================


@dataclass(frozen=True)
class Triaging:
    """Waiting on the analysis service."""


@dataclass(frozen=True)
class Triaged:
    """Analysis succeeded."""

    result: TriageResult
    citations: Optional[tuple[CitationSource, ...]] = None


@dataclass(frozen=True)
class TriageFailed:
    """Analysis failed; the message is shown inline on the report."""

    message: str


TriageState = Union[Triaging, Triaged, TriageFailed]


# =============================================================================
# Acceptance state
# =============================================================================


@dataclass(frozen=True)
class AcceptancePending:
    pass


@dataclass(frozen=True)
class Accepted:
    pass


@dataclass(frozen=True)
class Rejected:
    reason: Optional[str] = None


AcceptanceState = Union[AcceptancePending, Accepted, Rejected]


class Feedback(BaseModel):
    """Citizen rating of a resolved report."""

    rating: int = Field(..., ge=1, le=5)
    comment: str = ""


@dataclass(frozen=True)
class PhotoPayload:
    """Photo attached to a report: base64 data plus its MIME type."""

    data: str
    mime_type: str
    url: Optional[str] = None

    def raw_bytes(self) -> bytes:
        return base64.b64decode(self.data)


@dataclass
class Report:
    """A citizen report, mutated in place by the report store."""

    id: str
    user_id: str
    description: str
    photo: PhotoPayload
    location: Optional[GeoPoint]
    timestamp: datetime
    deep_analysis: bool = False
    triage: TriageState = field(default_factory=Triaging)
    acceptance: AcceptanceState = field(default_factory=AcceptancePending)
    kanban_status: KanbanStatus = KanbanStatus.PENDING
    resolved: bool = False
    feedback: Optional[Feedback] = None
    validated_at: Optional[datetime] = None

    @property
    def status(self) -> ReportStatus:
        if self.resolved:
            return ReportStatus.RESOLVED
        if isinstance(self.triage, Triaged):
            return ReportStatus.COMPLETE
        if isinstance(self.triage, TriageFailed):
            return ReportStatus.ERROR
        return ReportStatus.TRIAGING

    @property
    def acceptance_status(self) -> AcceptanceStatus:
        if isinstance(self.acceptance, Accepted):
            return AcceptanceStatus.ACCEPTED
        if isinstance(self.acceptance, Rejected):
            return AcceptanceStatus.REJECTED
        return AcceptanceStatus.PENDING

    @property
    def triage_result(self) -> Optional[TriageResult]:
        return self.triage.result if isinstance(self.triage, Triaged) else None

    @property
    def citations(self) -> Optional[tuple[CitationSource, ...]]:
        return self.triage.citations if isinstance(self.triage, Triaged) else None

    @property
    def error_message(self) -> Optional[str]:
        return self.triage.message if isinstance(self.triage, TriageFailed) else None

    @property
    def rejection_reason(self) -> Optional[str]:
        return self.acceptance.reason if isinstance(self.acceptance, Rejected) else None

    @property
    def priority_score(self) -> int:
        """Triage priority, or 0 when the report has no triage result."""
        result = self.triage_result
        return result.priority_score if result else 0

    @property
    def is_validated(self) -> bool:
        return self.validated_at is not None
