"""
Engine services.

- report_store: in-memory reports and their guarded transitions
- ledger: user credits and validation streaks
- badges: badge catalog, awards and the award evaluator
- triage_orchestrator: background triage through the analysis port
- lifecycle: the facade tying them together
"""

from .badges import BadgeAwardEvaluator, BadgeAwards, BadgeCatalog, load_badge_catalog
from .ledger import LedgerDelta, UserLedger, next_streak
from .lifecycle import CivicLifecycle, NoOpReason, ValidationOutcome
from .report_store import ReportStore
from .triage_orchestrator import PendingTriage, TriageOrchestrator, TriageRequest

__all__ = [
    "BadgeAwardEvaluator",
    "BadgeAwards",
    "BadgeCatalog",
    "CivicLifecycle",
    "LedgerDelta",
    "NoOpReason",
    "PendingTriage",
    "ReportStore",
    "TriageOrchestrator",
    "TriageRequest",
    "UserLedger",
    "ValidationOutcome",
    "load_badge_catalog",
    "next_streak",
]
