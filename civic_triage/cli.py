"""
Command-line front-end for the civic triage engine.

Usage:
    # Triage a photo report with Gemini
    python -m civic_triage triage photo.jpg --description "Deep pothole" --lat 40.71 --lon -74.00

    # Deep analysis (pro model with thinking)
    python -m civic_triage triage photo.jpg -d "Cracked overpass" --deep

    # Forecast infrastructure issues around a location
    python -m civic_triage predict --lat 40.71 --lon -74.00

    # Offline walkthrough with demo users and scripted triage answers
    python -m civic_triage demo
"""

import argparse
import asyncio
import sys
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

from dotenv import load_dotenv
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .agents.gemini_analysis import GeminiAnalysisClient
from .agents.port import TriageResponse
from .agents.scripted import ScriptedAnalysisPort
from .config import EngineConfig
from .data.seed import DEMO_ROLE_USERS, demo_users
from .errors import AnalysisError, CivicTriageError, GeolocationUnavailable, ResponseParseError
from .llm.schemas import GeoPoint, Prediction, PredictionType, RiskLevel, TriageResult
from .models.report import KanbanStatus, PhotoPayload, Report, ReportStatus
from .models.user import UserRole
from .services.lifecycle import CivicLifecycle, ValidationOutcome, run_to_completion
from .utils.clock import FrozenClock
from .utils.logger import EngineLogger
from .utils.photo import load_photo
from .views.board import Board
from .views.dashboard import DashboardFilters, SortOrder
from .views.leaderboard import LeaderboardEntry

load_dotenv(Path(__file__).resolve().parent.parent / ".env")
console = Console()

# 1x1 transparent PNG used as the photo for demo reports
DEMO_PHOTO = PhotoPayload(
    data="iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII=",
    mime_type="image/png",
)

DEMO_TIMEOUT_SECONDS = 30

STATUS_STYLES = {
    ReportStatus.TRIAGING: "yellow",
    ReportStatus.COMPLETE: "green",
    ReportStatus.ERROR: "red",
    ReportStatus.RESOLVED: "blue",
}


def parse_location(lat: Optional[float], lon: Optional[float]) -> Optional[GeoPoint]:
    """Build a GeoPoint from optional CLI coordinates."""
    if lat is None and lon is None:
        return None
    if lat is None or lon is None:
        raise GeolocationUnavailable("Both --lat and --lon are required to attach a location")
    try:
        return GeoPoint(latitude=lat, longitude=lon)
    except ValidationError as e:
        raise GeolocationUnavailable(f"Invalid coordinates ({lat}, {lon}): {e.errors()[0]['msg']}") from e


# =============================================================================
# Rendering
# =============================================================================


def render_triage(result: TriageResult) -> None:
    table = Table(title="Triage Result", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Category", result.category)
    table.add_row("Severity", f"{result.severity}/5")
    table.add_row("Priority", str(result.priority_score))
    table.add_row("Summary", result.summary)
    table.add_row("Suggested action", result.suggested_action)
    table.add_row("Probable cause", result.probable_cause)
    table.add_row("Confidence", f"{result.confidence_level:.0%}")
    console.print(table)


def render_reports(reports: Iterable[Report], title: str = "Reports") -> None:
    table = Table(title=title)
    table.add_column("ID", style="cyan")
    table.add_column("Owner")
    table.add_column("Description")
    table.add_column("Status", justify="center")
    table.add_column("Acceptance", justify="center")
    table.add_column("Category")
    table.add_column("Priority", justify="right")

    for report in reports:
        style = STATUS_STYLES[report.status]
        result = report.triage_result
        description = report.description
        table.add_row(
            report.id,
            report.user_id,
            description[:30] + "..." if len(description) > 30 else description,
            f"[{style}]{report.status.value}[/{style}]",
            report.acceptance_status.value,
            result.category if result else (report.error_message or ""),
            str(result.priority_score) if result else "-",
        )
    console.print(table)


def render_board(board: Board) -> None:
    table = Table(title="Kanban Board")
    for status in KanbanStatus:
        table.add_column(status.value, ratio=1)

    columns = [board.column(status) for status in KanbanStatus]
    depth = max((len(c) for c in columns), default=0)
    for i in range(depth):
        cells = []
        for column in columns:
            if i < len(column):
                report = column[i]
                cells.append(f"{report.id}\n[dim]priority {report.priority_score}[/dim]")
            else:
                cells.append("")
        table.add_row(*cells)
    console.print(table)


def render_leaderboard(entries: list[LeaderboardEntry], scope: str) -> None:
    table = Table(title=f"Leaderboard ({scope})")
    table.add_column("#", justify="right")
    table.add_column("Name")
    table.add_column("Neighborhood")
    table.add_column("Credits", justify="right", style="green")
    if not entries:
        console.print("[dim]There are no verified users in this leaderboard scope yet.[/dim]")
        return
    for entry in entries:
        table.add_row(str(entry.rank), entry.name, entry.neighborhood, str(entry.credits))
    console.print(table)


def render_predictions(predictions: list[Prediction]) -> None:
    table = Table(title="Predicted Infrastructure Issues")
    table.add_column("Type", style="cyan")
    table.add_column("Risk", justify="center")
    table.add_column("Timeframe")
    table.add_column("Location")
    table.add_column("Confidence", justify="right")
    risk_styles = {RiskLevel.HIGH: "red", RiskLevel.MEDIUM: "yellow", RiskLevel.LOW: "green"}
    for prediction in predictions:
        style = risk_styles[prediction.risk_level]
        table.add_row(
            prediction.issue_type.value,
            f"[{style}]{prediction.risk_level.value}[/{style}]",
            prediction.timeframe,
            f"{prediction.location.latitude:.4f}, {prediction.location.longitude:.4f}",
            f"{prediction.confidence:.0%}",
        )
    console.print(table)


def render_validation(outcome: ValidationOutcome, user_name: str) -> None:
    if not outcome.applied:
        console.print(f"[yellow]Validation of {outcome.report_id} skipped: {outcome.noop_reason.value}[/yellow]")
        return
    delta = outcome.ledger_delta
    if delta:
        console.print(
            f"Validated {outcome.report_id}: {user_name} +{delta.credits_earned} credits "
            f"({delta.credits_after} total), streak {delta.streak_before} -> {delta.streak_after}"
        )
    if outcome.notification:
        console.print(f"[bold magenta]Badge unlocked: {outcome.notification.title}[/bold magenta]")


# =============================================================================
# Commands
# =============================================================================


async def run_triage(args, config: EngineConfig, logger: EngineLogger) -> int:
    location = parse_location(args.lat, args.lon)
    photo = load_photo(args.photo)
    client = GeminiAnalysisClient.from_config(config)

    # Single-user session: the submitter is the first demo citizen
    now = datetime.now().astimezone()
    lifecycle = CivicLifecycle.from_config(config, client, users=demo_users(now), logger=logger)
    report = await lifecycle.submit_report(
        DEMO_ROLE_USERS[UserRole.CITIZEN],
        args.description,
        photo,
        location=location,
        deep_analysis=args.deep,
        wait=True,
    )

    if report.status == ReportStatus.ERROR:
        console.print(f"[red]Triage failed:[/red] {report.error_message}")
        return 1

    render_triage(report.triage_result)
    if report.citations:
        console.print("\n[bold]Sources[/bold]")
        for citation in report.citations:
            console.print(f"  [{citation.kind.value}] {citation.title or ''} {citation.uri or ''}")
    console.print(f"\n[dim]Estimated cost: ${client.total_cost_usd:.6f}[/dim]")
    return 0


async def run_predict(args, config: EngineConfig, logger: EngineLogger) -> int:
    location = parse_location(args.lat, args.lon)
    client = GeminiAnalysisClient.from_config(config)
    lifecycle = CivicLifecycle.from_config(config, client, logger=logger)

    try:
        with logger.time_operation("predictions", located=location is not None):
            predictions = await lifecycle.generate_predictions(location)
    except AnalysisError as e:
        console.print(f"[red]Prediction failed:[/red] {e}")
        return 1

    render_predictions(predictions)
    return 0


def _demo_result(category: str, severity: int, priority: int, summary: str) -> TriageResponse:
    return TriageResponse(
        result=TriageResult(
            category=category,
            severity=severity,
            priority_score=priority,
            summary=summary,
            suggested_action="Dispatch maintenance crew",
            probable_cause="Natural wear and tear",
            confidence_level=0.9,
        )
    )


def _demo_predictions() -> list[Prediction]:
    return [
        Prediction(
            id="pred-1",
            issue_type=PredictionType.POTHOLE_CRACK,
            location=GeoPoint(latitude=40.7150, longitude=-74.0020),
            risk_level=RiskLevel.HIGH,
            timeframe="Next 2-4 weeks",
            reasoning="Heavy freight traffic and recent freeze-thaw cycles on an ageing surface.",
            confidence=0.82,
        ),
        Prediction(
            id="pred-2",
            issue_type=PredictionType.FLOODING,
            location=GeoPoint(latitude=40.7080, longitude=-74.0110),
            risk_level=RiskLevel.MEDIUM,
            timeframe="Next heavy rainfall",
            reasoning="Low-lying intersection with storm drains reported as partially blocked.",
            confidence=0.64,
        ),
    ]


async def run_demo(args, config: EngineConfig, logger: EngineLogger) -> int:
    clock = FrozenClock(datetime.now().astimezone().replace(hour=12, minute=0, second=0, microsecond=0))
    port = ScriptedAnalysisPort(
        triage_outcomes=[
            _demo_result("Pothole", 4, 82, "A deep pothole spans the eastbound lane."),
            _demo_result("Streetlight Out", 2, 35, "A streetlight is out near the park entrance."),
            ResponseParseError("Could not parse AI response. Please try again."),
            _demo_result("Water Leak", 5, 95, "Water is gushing from a broken main."),
            _demo_result("Graffiti", 1, 12, "Graffiti on the underpass wall."),
        ],
        predictions=_demo_predictions(),
    )
    lifecycle = CivicLifecycle.from_config(config, port, users=demo_users(clock.now()), clock=clock, logger=logger)
    citizen_id = DEMO_ROLE_USERS[UserRole.CITIZEN]
    admin_id = DEMO_ROLE_USERS[UserRole.ADMIN]

    console.print(Panel("Citizens submit reports; triage runs in the background", title="1. Submission"))
    pothole = await lifecycle.submit_report(citizen_id, "Huge pothole on Main St", DEMO_PHOTO)
    light = await lifecycle.submit_report(citizen_id, "Streetlight out by the park", DEMO_PHOTO)
    flaky = await lifecycle.submit_report(citizen_id, "Something wrong with the bench", DEMO_PHOTO)
    leak = await lifecycle.submit_report("user-3", "Water main break", DEMO_PHOTO, deep_analysis=True)
    await run_to_completion(lifecycle, timeout=DEMO_TIMEOUT_SECONDS)
    render_reports(lifecycle.store.list_reports(), title="After triage")

    console.print(Panel("A failed triage is resubmitted by hand", title="2. Retriage"))
    await lifecycle.retriage(flaky.id, wait=True)
    render_reports([flaky], title="Retriaged")

    console.print(Panel("Admin accepts, rejects and validates", title="3. Admin review"))
    lifecycle.accept_report(light.id)
    lifecycle.update_kanban_status(light.id, KanbanStatus.IN_PROGRESS)
    lifecycle.reject_report(flaky.id, reason="Not a municipal asset")
    citizen = lifecycle.get_user(citizen_id)
    render_validation(lifecycle.validate_report(pothole.id), citizen.name)
    chen = lifecycle.get_user("user-3")
    render_validation(lifecycle.validate_report(leak.id), chen.name)
    render_validation(lifecycle.validate_report(leak.id), chen.name)

    lifecycle.submit_feedback(pothole.id, rating=5, comment="Fixed within a day!")

    console.print(Panel("Board, dashboard, leaderboard and badges", title="4. Views"))
    render_board(lifecycle.board())

    stats, listed = lifecycle.dashboard(UserRole.ADMIN, admin_id, DashboardFilters(sort=SortOrder.PRIORITY))
    console.print(f"Dashboard: {stats.total} reports, {stats.pending} pending review, {stats.critical} critical")
    render_reports(listed, title="Admin dashboard (by priority)")

    render_leaderboard(lifecycle.leaderboard(), "global")
    render_leaderboard(lifecycle.leaderboard(citizen.neighborhood), citizen.neighborhood)

    table = Table(title=f"Badges for {chen.name}")
    table.add_column("Badge", style="cyan")
    table.add_column("Description")
    table.add_column("Earned", justify="center")
    for item in lifecycle.badge_shelf(chen.id):
        table.add_row(item.badge.title, item.badge.description, "[green]yes[/green]" if item.earned else "[dim]no[/dim]")
    console.print(table)

    console.print(Panel("Forecast around the default city centre", title="5. Predictions"))
    render_predictions(await lifecycle.generate_predictions())

    stats = lifecycle.orchestrator.get_stats()
    console.print(
        f"\n[dim]Triage: {stats['total_successful']} successful, {stats['total_failed']} failed "
        f"of {stats['total_submitted']} submitted[/dim]"
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Civic issue triage and gamification engine")
    parser.add_argument("--log-level", type=str, help="Logging level (default: CIVIC_LOG_LEVEL or INFO)")
    parser.add_argument("--log-file", type=str, help="Also write logs to logs/<name>")
    subparsers = parser.add_subparsers(dest="command", required=True)

    triage = subparsers.add_parser("triage", help="Triage a photo report with Gemini")
    triage.add_argument("photo", type=Path, help="Path to the photo of the issue")
    triage.add_argument("-d", "--description", type=str, default="", help="Description of the issue")
    triage.add_argument("--lat", type=float, help="Latitude of the issue")
    triage.add_argument("--lon", type=float, help="Longitude of the issue")
    triage.add_argument("--deep", action="store_true", help="Deep analysis (pro model with thinking)")

    predict = subparsers.add_parser("predict", help="Forecast infrastructure issues")
    predict.add_argument("--lat", type=float, help="Centre latitude (default: New York City)")
    predict.add_argument("--lon", type=float, help="Centre longitude (default: New York City)")

    subparsers.add_parser("demo", help="Offline walkthrough with demo users and scripted triage")
    return parser


COMMANDS = {
    "triage": run_triage,
    "predict": run_predict,
    "demo": run_demo,
}


def main(argv: Optional[list[str]] = None) -> None:
    args = build_parser().parse_args(argv)

    try:
        config = EngineConfig.from_env(log_level=args.log_level, log_file=args.log_file)
    except ValueError as e:
        console.print(f"[red]Invalid configuration:[/red] {e}")
        sys.exit(2)

    logger = EngineLogger(log_level=config.log_level, log_file=config.log_file)

    try:
        exit_code = asyncio.run(COMMANDS[args.command](args, config, logger))
    except (CivicTriageError, FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    summary = logger.get_error_summary()
    if summary["total_errors"]:
        console.print(f"[yellow]{summary['total_errors']} errors logged[/yellow]")
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
