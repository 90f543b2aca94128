"""Domain records for reports, users and badges."""

from .report import (
    AcceptancePending,
    AcceptanceState,
    AcceptanceStatus,
    Accepted,
    Feedback,
    KanbanStatus,
    PhotoPayload,
    Rejected,
    Report,
    ReportStatus,
    TriageFailed,
    Triaged,
    TriageState,
    Triaging,
)
from .user import Badge, BadgeCriteria, CriteriaKind, User, UserBadge, UserRole

__all__ = [
    "AcceptancePending",
    "AcceptanceState",
    "AcceptanceStatus",
    "Accepted",
    "Badge",
    "BadgeCriteria",
    "CriteriaKind",
    "Feedback",
    "KanbanStatus",
    "PhotoPayload",
    "Rejected",
    "Report",
    "ReportStatus",
    "TriageFailed",
    "Triaged",
    "TriageState",
    "Triaging",
    "User",
    "UserBadge",
    "UserRole",
]
