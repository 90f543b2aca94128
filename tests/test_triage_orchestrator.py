"""Tests for background triage through the analysis port."""

import asyncio

import pytest
from conftest import NOON, make_response

from civic_triage.agents.port import TriageResponse
from civic_triage.agents.scripted import ScriptedAnalysisPort
from civic_triage.errors import ExternalServiceUnavailable, ResponseParseError
from civic_triage.llm.schemas import CitationKind, CitationSource, GeoPoint
from civic_triage.models.report import ReportStatus
from civic_triage.services.report_store import ReportStore
from civic_triage.services.triage_orchestrator import TriageOrchestrator


@pytest.fixture
def store():
    return ReportStore()


def _report(store, photo, deep_analysis=False, location=None):
    return store.create_report("citizen", "Pothole on Main St", photo, location, deep_analysis, NOON)


# ─── Two-phase protocol ──────────────────────────────────────────────────────


class TestSubmitResolve:
    """submit captures the request; resolve applies one outcome."""

    def test_submit_captures_request(self, store, photo):
        """The handle carries the report's description, photo and flags."""
        location = GeoPoint(latitude=40.7, longitude=-74.0)
        report = _report(store, photo, deep_analysis=True, location=location)
        orchestrator = TriageOrchestrator(store, ScriptedAnalysisPort())

        handle = orchestrator.submit(report)

        assert handle.report_id == report.id
        assert handle.request.description == "Pothole on Main St"
        assert handle.request.deep_analysis is True
        assert handle.request.location == location
        assert orchestrator.get_stats()["total_submitted"] == 1

    def test_resolve_success(self, store, photo):
        """A response → complete report with result and citations."""
        report = _report(store, photo)
        orchestrator = TriageOrchestrator(store, ScriptedAnalysisPort())
        citation = CitationSource(kind=CitationKind.WEB, uri="https://example.com", title="Example")
        response = TriageResponse(result=make_response(priority_score=88).result, citations=(citation,))

        orchestrator.resolve(orchestrator.submit(report), response)

        assert report.status == ReportStatus.COMPLETE
        assert report.priority_score == 88
        assert report.citations == (citation,)

    def test_resolve_failure(self, store, photo):
        """An exception → error report carrying its message."""
        report = _report(store, photo)
        orchestrator = TriageOrchestrator(store, ScriptedAnalysisPort())

        orchestrator.resolve(orchestrator.submit(report), ResponseParseError("Could not parse AI response."))

        assert report.status == ReportStatus.ERROR
        assert report.error_message == "Could not parse AI response."

    def test_empty_message_gets_fallback(self, store, photo):
        """An exception without text → generic message."""
        report = _report(store, photo)
        orchestrator = TriageOrchestrator(store, ScriptedAnalysisPort())

        orchestrator.resolve(orchestrator.submit(report), RuntimeError())

        assert report.error_message == "An unknown error occurred."

    def test_handle_resolves_once(self, store, photo):
        """A second outcome for the same handle is ignored."""
        report = _report(store, photo)
        orchestrator = TriageOrchestrator(store, ScriptedAnalysisPort())
        handle = orchestrator.submit(report)

        orchestrator.resolve(handle, make_response())
        assert orchestrator.resolve(handle, ExternalServiceUnavailable("late")) is None

        assert report.status == ReportStatus.COMPLETE
        stats = orchestrator.get_stats()
        assert stats["total_completed"] == 1
        assert stats["total_failed"] == 0


# ─── Running against the port ────────────────────────────────────────────────


class TestRunAndDispatch:
    """run/dispatch await the port and never raise."""

    @pytest.mark.asyncio
    async def test_run_success(self, store, photo):
        """Port response lands on the report."""
        port = ScriptedAnalysisPort([make_response(category="Graffiti")])
        report = _report(store, photo, deep_analysis=True)
        orchestrator = TriageOrchestrator(store, port)

        await orchestrator.run(orchestrator.submit(report))

        assert report.triage_result.category == "Graffiti"
        assert port.triage_calls[0].deep_analysis is True
        assert port.triage_calls[0].mime_type == "image/png"

    @pytest.mark.asyncio
    async def test_run_captures_errors(self, store, photo):
        """Port exceptions are stored on the report, not raised."""
        port = ScriptedAnalysisPort([ExternalServiceUnavailable("API key not found")])
        report = _report(store, photo)
        orchestrator = TriageOrchestrator(store, port)

        result = await orchestrator.run(orchestrator.submit(report))

        assert result is report
        assert report.status == ReportStatus.ERROR
        assert report.error_message == "API key not found"
        assert orchestrator.get_stats()["total_failed"] == 1

    @pytest.mark.asyncio
    async def test_dispatch_returns_immediately(self, store, photo):
        """dispatch leaves the report triaging until the task runs."""
        port = ScriptedAnalysisPort([make_response()], delay_seconds=0.01)
        report = _report(store, photo)
        orchestrator = TriageOrchestrator(store, port)

        task = orchestrator.dispatch(report)
        assert report.status == ReportStatus.TRIAGING
        assert orchestrator.in_flight == 1

        await task
        assert report.status == ReportStatus.COMPLETE
        await asyncio.sleep(0)
        assert orchestrator.in_flight == 0

    @pytest.mark.asyncio
    async def test_drain_waits_for_all(self, store, photo):
        """drain returns once every dispatched triage finished."""
        port = ScriptedAnalysisPort(
            [make_response(), ResponseParseError("bad json"), make_response()],
        )
        orchestrator = TriageOrchestrator(store, port)
        reports = [_report(store, photo) for _ in range(3)]
        for report in reports:
            orchestrator.dispatch(report)

        await orchestrator.drain()

        assert [r.status for r in reports] == [ReportStatus.COMPLETE, ReportStatus.ERROR, ReportStatus.COMPLETE]
        stats = orchestrator.get_stats()
        assert stats["total_submitted"] == 3
        assert stats["total_successful"] == 2
        assert stats["total_failed"] == 1
        assert stats["in_flight"] == 0

    @pytest.mark.asyncio
    async def test_outcome_applies_after_caller_moved_on(self, store, photo):
        """Other reports can change while a triage is in flight."""
        port = ScriptedAnalysisPort([make_response()], delay_seconds=0.01)
        orchestrator = TriageOrchestrator(store, port)
        slow = _report(store, photo)
        orchestrator.dispatch(slow)

        other = _report(store, photo)
        assert store.list_reports()[0] is other

        await orchestrator.drain()
        assert slow.status == ReportStatus.COMPLETE
        assert other.status == ReportStatus.TRIAGING
