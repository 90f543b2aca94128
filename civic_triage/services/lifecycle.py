"""
Civic lifecycle: the explicit state object behind the engine.

Owns the report store, the user ledger and badge awards, and exposes the
citizen and admin operations:

- submit_report / retriage: create a report and triage it in the background
- accept_report / reject_report / mark_resolved / update_kanban_status
- validate_report: resolve a report, pay the owner and award badges
- submit_feedback: rate a resolved report
- generate_predictions: forecast infrastructure issues
- read-only views (board, dashboard, leaderboard, badge shelf)

Mutations on a missing or ineligible report are no-ops; only report
submission for an unknown user and feedback with an invalid rating raise.

Usage:
    lifecycle = CivicLifecycle(port, users=demo_users(now))
    report = await lifecycle.submit_report("user-5", "Deep pothole", photo)
    await lifecycle.drain()
    outcome = lifecycle.validate_report(report.id)
    if outcome.notification:
        print(f"Badge unlocked: {outcome.notification.title}")
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional

from ..agents.port import AnalysisPort
from ..config import EngineConfig
from ..constants import VALIDATION_REWARD_CREDITS
from ..errors import UnknownUserError
from ..llm.schemas import GeoPoint, Prediction
from ..models.report import Accepted, Feedback, KanbanStatus, PhotoPayload, Rejected, Report, Triaged
from ..models.user import Badge, User, UserRole
from ..utils.clock import Clock, SystemClock
from ..utils.logger import EngineLogger
from ..views.badges import BadgeShelfItem, badge_shelf
from ..views.board import Board, build_board
from ..views.dashboard import DashboardFilters, DashboardStats, dashboard_stats, filter_reports
from ..views.leaderboard import GLOBAL_SCOPE, LeaderboardEntry, build_leaderboard
from .badges import BadgeAwardEvaluator, BadgeAwards, BadgeCatalog, load_badge_catalog
from .ledger import LedgerDelta, UserLedger
from .report_store import ReportStore
from .triage_orchestrator import TriageOrchestrator

logger = logging.getLogger(__name__)


class NoOpReason(str, Enum):
    NOT_FOUND = "not_found"
    ALREADY_VALIDATED = "already_validated"
    NOT_TRIAGED = "not_triaged"


@dataclass
class ValidationOutcome:
    """
    Result of ``validate_report``.

    Attributes:
        report_id: Target report id
        report: Updated report (None when nothing was applied)
        ledger_delta: Owner's credit/streak change (None if the owner is unknown)
        awarded_badges: Newly earned badges in catalog order
        noop_reason: Why nothing was applied, or None
    """

    report_id: str
    report: Optional[Report] = None
    ledger_delta: Optional[LedgerDelta] = None
    awarded_badges: list[Badge] = field(default_factory=list)
    noop_reason: Optional[NoOpReason] = None

    @property
    def applied(self) -> bool:
        return self.noop_reason is None

    @property
    def notification(self) -> Optional[Badge]:
        """Badge to announce: the last one awarded, if any."""
        return self.awarded_badges[-1] if self.awarded_badges else None


class CivicLifecycle:
    """Report lifecycle and gamification engine for one process."""

    def __init__(
        self,
        port: AnalysisPort,
        users: Iterable[User] = (),
        catalog: Optional[BadgeCatalog] = None,
        clock: Optional[Clock] = None,
        reward_credits: int = VALIDATION_REWARD_CREDITS,
        logger: Optional[EngineLogger] = None,
    ):
        """
        Args:
            port: External analysis service
            users: Initial users
            catalog: Badge catalog (defaults to config/badges.yaml)
            clock: Time source (defaults to the local wall clock)
            reward_credits: Credits paid per validated report
            logger: Optional engine logger for structured events
        """
        self.port = port
        self.clock = clock or SystemClock()
        self.engine_logger = logger
        self.store = ReportStore()
        self.ledger = UserLedger(users, reward_credits=reward_credits)
        self.catalog = catalog if catalog is not None else load_badge_catalog()
        self.awards = BadgeAwards()
        self.evaluator = BadgeAwardEvaluator(self.catalog, self.awards)
        self.orchestrator = TriageOrchestrator(self.store, port, logger=logger)

    @classmethod
    def from_config(
        cls,
        config: EngineConfig,
        port: AnalysisPort,
        users: Iterable[User] = (),
        clock: Optional[Clock] = None,
        logger: Optional[EngineLogger] = None,
    ) -> "CivicLifecycle":
        return cls(
            port,
            users=users,
            catalog=load_badge_catalog(config.badge_catalog_path),
            clock=clock,
            reward_credits=config.reward_credits,
            logger=logger,
        )

    # =========================================================================
    # Citizen submission and triage
    # =========================================================================

    async def submit_report(
        self,
        owner_id: str,
        description: str,
        photo: PhotoPayload,
        location: Optional[GeoPoint] = None,
        deep_analysis: bool = False,
        wait: bool = False,
    ) -> Report:
        """
        Create a report and start its triage.

        The report is returned in the triaging state unless ``wait`` is set,
        in which case triage has finished (complete or error) on return.

        Raises:
            UnknownUserError: ``owner_id`` is not a known user
        """
        if owner_id not in self.ledger:
            raise UnknownUserError(owner_id)

        report = self.store.create_report(
            owner_id=owner_id,
            description=description,
            photo=photo,
            location=location,
            deep_analysis=deep_analysis,
            timestamp=self.clock.now(),
        )
        logger.info(f"Report {report.id} submitted by {owner_id}")
        task = self.orchestrator.dispatch(report)
        if wait:
            await task
        return report

    async def retriage(self, report_id: str, wait: bool = False) -> Optional[Report]:
        """Resubmit a report whose triage failed. No-op for any other report."""
        report = self.store.restart_triage(report_id)
        if report is None:
            logger.debug(f"Retriage ignored for {report_id}: not in error state")
            return None
        logger.info(f"Retriaging report {report_id}")
        task = self.orchestrator.dispatch(report)
        if wait:
            await task
        return report

    async def drain(self) -> None:
        """Wait for all in-flight triages."""
        await self.orchestrator.drain()

    # =========================================================================
    # Admin actions
    # =========================================================================

    def accept_report(self, report_id: str) -> Optional[Report]:
        return self.store.set_acceptance(report_id, Accepted())

    def reject_report(self, report_id: str, reason: Optional[str] = None) -> Optional[Report]:
        return self.store.set_acceptance(report_id, Rejected(reason))

    def mark_resolved(self, report_id: str) -> Optional[Report]:
        return self.store.set_resolved(report_id)

    def update_kanban_status(self, report_id: str, status: KanbanStatus) -> Optional[Report]:
        return self.store.set_kanban_status(report_id, status)

    def submit_feedback(self, report_id: str, rating: int, comment: str = "") -> Optional[Report]:
        """
        Attach a citizen rating to a resolved report.

        Raises:
            pydantic.ValidationError: rating outside 1-5
        """
        return self.store.set_feedback(report_id, Feedback(rating=rating, comment=comment))

    def validate_report(self, report_id: str) -> ValidationOutcome:
        """
        Validate a triaged report and reward its owner.

        Sets the report accepted, resolved and done; pays the owner the
        validation reward and advances their streak; awards every badge the
        owner newly qualifies for. Never raises.
        """
        report = self.store.get(report_id)
        if report is None:
            return ValidationOutcome(report_id=report_id, noop_reason=NoOpReason.NOT_FOUND)
        if report.is_validated:
            return ValidationOutcome(report_id=report_id, noop_reason=NoOpReason.ALREADY_VALIDATED)
        if not isinstance(report.triage, Triaged):
            return ValidationOutcome(report_id=report_id, noop_reason=NoOpReason.NOT_TRIAGED)

        now = self.clock.now()
        self.store.set_validated(report_id, now)
        outcome = ValidationOutcome(report_id=report_id, report=report)

        outcome.ledger_delta = self.ledger.credit_validation(report.user_id, now)
        if outcome.ledger_delta is None:
            return outcome

        validated_count = self.store.validated_count(report.user_id)
        outcome.awarded_badges = self.evaluator.award(
            report.user_id, validated_count, outcome.ledger_delta.streak_after, now
        )
        for badge in outcome.awarded_badges:
            if self.engine_logger:
                self.engine_logger.log_badge_awarded(report.user_id, badge.id, badge.title)
            else:
                logger.info(f"Badge awarded to {report.user_id}: {badge.title}")

        logger.info(
            f"Report {report_id} validated: +{outcome.ledger_delta.credits_earned} credits, "
            f"streak {outcome.ledger_delta.streak_after}, {len(outcome.awarded_badges)} new badges"
        )
        return outcome

    # =========================================================================
    # Predictions
    # =========================================================================

    async def generate_predictions(self, location: Optional[GeoPoint] = None) -> list[Prediction]:
        """
        Forecast infrastructure issues around a location.

        Raises:
            AnalysisError: The analysis service failed or answered off-schema
        """
        predictions = await self.port.predict(location)
        logger.info(f"Received {len(predictions)} predictions")
        return predictions

    # =========================================================================
    # Views
    # =========================================================================

    def users(self) -> list[User]:
        return self.ledger.users()

    def get_user(self, user_id: str) -> Optional[User]:
        return self.ledger.get(user_id)

    def board(self) -> Board:
        return build_board(self.store)

    def leaderboard(self, scope: str = GLOBAL_SCOPE) -> list[LeaderboardEntry]:
        return build_leaderboard(self.ledger.users(), scope)

    def dashboard(
        self, role: UserRole, user_id: str, filters: Optional[DashboardFilters] = None
    ) -> tuple[DashboardStats, list[Report]]:
        """Stats and filtered reports as seen by the given viewer."""
        reports = self.store.list_reports()
        stats = dashboard_stats(reports, role, user_id)
        listed = filter_reports(reports, filters or DashboardFilters(), role, user_id, self.ledger.users())
        return stats, listed

    def badge_shelf(self, user_id: str) -> list[BadgeShelfItem]:
        return badge_shelf(self.catalog, self.awards, user_id)


async def run_to_completion(lifecycle: CivicLifecycle, timeout: Optional[float] = None) -> None:
    """Drain a lifecycle's in-flight triages, optionally bounded by a timeout."""
    if timeout is None:
        await lifecycle.drain()
    else:
        await asyncio.wait_for(lifecycle.drain(), timeout=timeout)
