"""
Report Store - owns the in-memory report collection and its transitions.

Every update targets one report by id and returns the updated report, or
None when nothing changed: the id is unknown, or the transition is not
allowed from the report's current state.

Guards:
- triage outcome only while triaging (exactly one terminal outcome)
- acceptance never returns to pending; rejection forces kanban to done
- kanban moves only on accepted reports
- resolution only from complete (repeats are idempotent)
- feedback only on resolved reports, once
- validation once, and only after triage completed
"""

import logging
import uuid
from datetime import datetime
from typing import Iterator, Optional, Union

from ..llm.schemas import GeoPoint
from ..models.report import (
    Accepted,
    AcceptanceState,
    AcceptancePending,
    Feedback,
    KanbanStatus,
    PhotoPayload,
    Rejected,
    Report,
    ReportStatus,
    TriageFailed,
    Triaged,
    Triaging,
)

logger = logging.getLogger(__name__)


def _generate_report_id() -> str:
    return f"report-{uuid.uuid4().hex[:12]}"


class ReportStore:
    """Newest-first collection of reports keyed by id."""

    def __init__(self):
        self._reports: dict[str, Report] = {}
        self._order: list[str] = []  # newest first

    def __len__(self) -> int:
        return len(self._reports)

    def __iter__(self) -> Iterator[Report]:
        return (self._reports[report_id] for report_id in self._order)

    def __contains__(self, report_id: str) -> bool:
        return report_id in self._reports

    def get(self, report_id: str) -> Optional[Report]:
        return self._reports.get(report_id)

    def list_reports(self) -> list[Report]:
        """All reports, newest first."""
        return list(self)

    def reports_for_user(self, user_id: str) -> list[Report]:
        return [r for r in self if r.user_id == user_id]

    def validated_count(self, user_id: str) -> int:
        """Number of the user's reports that have been validated."""
        return sum(1 for r in self._reports.values() if r.user_id == user_id and r.is_validated)

    # =========================================================================
    # Creation
    # =========================================================================

    def create_report(
        self,
        owner_id: str,
        description: str,
        photo: PhotoPayload,
        location: Optional[GeoPoint],
        deep_analysis: bool,
        timestamp: datetime,
    ) -> Report:
        """
        Create a report in the triaging state and put it at the front.

        Args:
            owner_id: Submitting user's id
            description: Citizen's description
            photo: Photo payload
            location: Optional coordinates
            deep_analysis: Request deep analysis from the triage model
            timestamp: Submission time

        Returns:
            The new report
        """
        report_id = _generate_report_id()
        while report_id in self._reports:
            report_id = _generate_report_id()

        report = Report(
            id=report_id,
            user_id=owner_id,
            description=description,
            photo=photo,
            location=location,
            timestamp=timestamp,
            deep_analysis=deep_analysis,
        )
        self._reports[report_id] = report
        self._order.insert(0, report_id)
        logger.debug(f"Report created: {report_id} (owner={owner_id}, deep_analysis={deep_analysis})")
        return report

    # =========================================================================
    # Field-level updates
    # =========================================================================

    def _lookup(self, report_id: str, operation: str) -> Optional[Report]:
        report = self._reports.get(report_id)
        if report is None:
            logger.debug(f"{operation}: unknown report {report_id}, ignoring")
        return report

    def set_triage_outcome(self, report_id: str, outcome: Union[Triaged, TriageFailed]) -> Optional[Report]:
        """Apply the terminal triage outcome to a triaging report."""
        report = self._lookup(report_id, "set_triage_outcome")
        if report is None:
            return None
        if not isinstance(report.triage, Triaging):
            logger.warning(f"Triage outcome for {report_id} ignored: report is already {report.status.value}")
            return None
        report.triage = outcome
        return report

    def restart_triage(self, report_id: str) -> Optional[Report]:
        """Put a failed report back into triaging so it can be resubmitted."""
        report = self._lookup(report_id, "restart_triage")
        if report is None or not isinstance(report.triage, TriageFailed):
            return None
        report.triage = Triaging()
        return report

    def set_acceptance(self, report_id: str, acceptance: AcceptanceState) -> Optional[Report]:
        """Accept or reject a report. Last write wins between the two."""
        if isinstance(acceptance, AcceptancePending):
            raise ValueError("Acceptance cannot be reset to pending")
        report = self._lookup(report_id, "set_acceptance")
        if report is None:
            return None
        report.acceptance = acceptance
        if isinstance(acceptance, Rejected):
            report.kanban_status = KanbanStatus.DONE
        return report

    def set_kanban_status(self, report_id: str, status: KanbanStatus) -> Optional[Report]:
        report = self._lookup(report_id, "set_kanban_status")
        if report is None:
            return None
        if not isinstance(report.acceptance, Accepted):
            logger.debug(f"Kanban move for {report_id} ignored: report is not accepted")
            return None
        report.kanban_status = KanbanStatus(status)
        return report

    def set_resolved(self, report_id: str) -> Optional[Report]:
        report = self._lookup(report_id, "set_resolved")
        if report is None:
            return None
        if report.status not in (ReportStatus.COMPLETE, ReportStatus.RESOLVED):
            logger.debug(f"Resolve for {report_id} ignored: report is {report.status.value}")
            return None
        report.resolved = True
        report.kanban_status = KanbanStatus.DONE
        return report

    def set_feedback(self, report_id: str, feedback: Feedback) -> Optional[Report]:
        report = self._lookup(report_id, "set_feedback")
        if report is None:
            return None
        if report.status != ReportStatus.RESOLVED or report.feedback is not None:
            logger.debug(f"Feedback for {report_id} ignored: not resolved or already rated")
            return None
        report.feedback = feedback
        return report

    def set_validated(self, report_id: str, validated_at: datetime) -> Optional[Report]:
        """
        Mark a triaged report validated: accepted, resolved and done.

        No-op if the report was already validated or has no triage result.
        """
        report = self._lookup(report_id, "set_validated")
        if report is None:
            return None
        if report.is_validated or not isinstance(report.triage, Triaged):
            return None
        report.validated_at = validated_at
        report.acceptance = Accepted()
        report.resolved = True
        report.kanban_status = KanbanStatus.DONE
        return report
