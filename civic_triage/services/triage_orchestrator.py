"""Triage orchestrator: runs the external analysis for submitted reports.

Two-phase protocol:

    handle = orchestrator.submit(report)          # capture the request
    report = orchestrator.resolve(handle, outcome)  # apply exactly one outcome

``run`` awaits the analysis port and resolves; ``dispatch`` schedules ``run``
as a tracked asyncio task so the caller can move on. Failures from the port
never propagate: they are written onto the report as its error message.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Optional, Union

from ..agents.port import AnalysisPort, TriageResponse
from ..constants import UNKNOWN_ERROR_MESSAGE
from ..llm.schemas import GeoPoint
from ..models.report import PhotoPayload, Report, TriageFailed, Triaged
from ..utils.logger import EngineLogger
from .report_store import ReportStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TriageRequest:
    """Snapshot of what is sent to the analysis port for one report."""

    report_id: str
    description: str
    photo: PhotoPayload
    location: Optional[GeoPoint]
    deep_analysis: bool

    @classmethod
    def from_report(cls, report: Report) -> "TriageRequest":
        return cls(
            report_id=report.id,
            description=report.description,
            photo=report.photo,
            location=report.location,
            deep_analysis=report.deep_analysis,
        )


@dataclass
class PendingTriage:
    """Handle for an in-flight triage. Resolve it exactly once."""

    request: TriageRequest
    started_at: float = field(default_factory=time.monotonic)
    resolved: bool = False

    @property
    def report_id(self) -> str:
        return self.request.report_id


def failure_message(error: BaseException) -> str:
    """Human-readable message stored on a failed report."""
    return str(error) or UNKNOWN_ERROR_MESSAGE


class TriageOrchestrator:
    """Submits reports to the analysis port and records the outcome on each."""

    def __init__(self, store: ReportStore, port: AnalysisPort, logger: Optional[EngineLogger] = None):
        """
        Args:
            store: Report store that receives the outcomes
            port: External analysis service
            logger: Optional engine logger for structured triage events
        """
        self.store = store
        self.port = port
        self.engine_logger = logger
        self._tasks: set[asyncio.Task] = set()
        self.stats = {
            "total_submitted": 0,
            "total_completed": 0,
            "total_successful": 0,
            "total_failed": 0,
        }

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def submit(self, report: Report) -> PendingTriage:
        """Phase one: capture the triage request for a report."""
        self.stats["total_submitted"] += 1
        handle = PendingTriage(request=TriageRequest.from_report(report))
        logger.debug(f"Triage submitted for {report.id} (deep_analysis={report.deep_analysis})")
        return handle

    def resolve(self, handle: PendingTriage, outcome: Union[TriageResponse, BaseException]) -> Optional[Report]:
        """
        Phase two: apply the single terminal outcome for a handle.

        Args:
            handle: Handle returned by ``submit``
            outcome: Port response, or the exception the port raised

        Returns:
            The updated report, or None if the handle was already resolved or
            the report can no longer take a triage outcome
        """
        if handle.resolved:
            logger.warning(f"Triage for {handle.report_id} already resolved, ignoring second outcome")
            return None
        handle.resolved = True

        self.stats["total_completed"] += 1
        duration = time.monotonic() - handle.started_at

        if isinstance(outcome, TriageResponse):
            report = self.store.set_triage_outcome(handle.report_id, Triaged(outcome.result, outcome.citations))
            self.stats["total_successful"] += 1
            self._log_complete(handle.report_id, outcome, duration)
            return report

        message = failure_message(outcome)
        report = self.store.set_triage_outcome(handle.report_id, TriageFailed(message))
        self.stats["total_failed"] += 1
        self._log_failed(handle.report_id, message, outcome)
        return report

    async def run(self, handle: PendingTriage) -> Optional[Report]:
        """Await the analysis port for a handle and resolve it. Never raises."""
        request = handle.request
        try:
            response = await self.port.triage(
                request.description,
                request.photo,
                request.location,
                request.deep_analysis,
            )
        except Exception as e:
            return self.resolve(handle, e)
        return self.resolve(handle, response)

    def dispatch(self, report: Report) -> asyncio.Task:
        """Submit a report and run its triage in the background."""
        handle = self.submit(report)
        task = asyncio.create_task(self.run(handle), name=f"triage-{report.id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for every dispatched triage to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    def get_stats(self) -> dict:
        """Get submission statistics."""
        return dict(self.stats, in_flight=self.in_flight)

    def _log_complete(self, report_id: str, response: TriageResponse, duration: float):
        if self.engine_logger:
            self.engine_logger.log_triage_complete(
                report_id, response.result.category, response.result.priority_score, duration
            )
        else:
            logger.info(
                f"Triage complete for {report_id}: {response.result.category} "
                f"(priority {response.result.priority_score})"
            )

    def _log_failed(self, report_id: str, message: str, error: BaseException):
        if self.engine_logger:
            self.engine_logger.log_triage_failed(report_id, message)
        else:
            logger.warning(f"Triage failed for {report_id}: {message}")
        logger.debug(f"Triage failure detail for {report_id}", exc_info=error)
