"""Tests for report validation: report state, credits, streaks and badges together."""

from datetime import timedelta

import pytest
from conftest import make_response

from civic_triage.errors import ExternalServiceUnavailable
from civic_triage.models.report import AcceptanceStatus, KanbanStatus, ReportStatus
from civic_triage.services.lifecycle import NoOpReason
from civic_triage.utils.clock import date_key


async def _triaged_report(lifecycle, scripted_port, photo, owner="citizen", **kwargs):
    scripted_port.queue(make_response(**kwargs))
    return await lifecycle.submit_report(owner, "Pothole on Main St", photo, wait=True)


class TestValidateReport:
    """Validation is applied once and rewards the owner."""

    @pytest.mark.asyncio
    async def test_first_validation(self, lifecycle, scripted_port, photo, frozen_clock):
        """First validation → resolved report, +10 credits, streak 1, First Report badge."""
        report = await _triaged_report(lifecycle, scripted_port, photo)

        outcome = lifecycle.validate_report(report.id)

        assert outcome.applied
        assert report.validated_at == frozen_clock.now()
        assert report.status == ReportStatus.RESOLVED
        assert report.acceptance_status == AcceptanceStatus.ACCEPTED
        assert report.kanban_status == KanbanStatus.DONE

        user = lifecycle.get_user("citizen")
        assert user.credits == 10
        assert user.streak == 1
        assert user.last_validation_date == date_key(frozen_clock.now())
        assert [b.title for b in outcome.awarded_badges] == ["First Report"]
        assert outcome.notification.title == "First Report"

    @pytest.mark.asyncio
    async def test_idempotent(self, lifecycle, scripted_port, photo):
        """Validating twice changes nothing the second time."""
        report = await _triaged_report(lifecycle, scripted_port, photo)
        lifecycle.validate_report(report.id)
        validated_at = report.validated_at

        outcome = lifecycle.validate_report(report.id)

        assert not outcome.applied
        assert outcome.noop_reason == NoOpReason.ALREADY_VALIDATED
        assert report.validated_at == validated_at
        assert lifecycle.get_user("citizen").credits == 10
        assert outcome.awarded_badges == []

    def test_unknown_report(self, lifecycle):
        """Unknown id → no-op, never raises."""
        outcome = lifecycle.validate_report("report-missing")
        assert outcome.noop_reason == NoOpReason.NOT_FOUND
        assert outcome.report is None

    @pytest.mark.asyncio
    async def test_failed_triage_not_validated(self, lifecycle, scripted_port, photo):
        """A report whose triage failed cannot be validated."""
        scripted_port.queue(ExternalServiceUnavailable("down"))
        report = await lifecycle.submit_report("citizen", "Pothole", photo, wait=True)

        outcome = lifecycle.validate_report(report.id)

        assert outcome.noop_reason == NoOpReason.NOT_TRIAGED
        assert report.validated_at is None
        assert lifecycle.get_user("citizen").credits == 0

    @pytest.mark.asyncio
    async def test_three_day_streak_awards_hot_streak(self, lifecycle, scripted_port, photo, frozen_clock):
        """Validations on three consecutive days → streak 3 and Hot Streak as the notification."""
        outcomes = []
        for day in range(3):
            report = await _triaged_report(lifecycle, scripted_port, photo)
            outcomes.append(lifecycle.validate_report(report.id))
            if day < 2:
                frozen_clock.advance(days=1)

        user = lifecycle.get_user("citizen")
        assert user.streak == 3
        assert user.credits == 30
        assert outcomes[-1].notification.title == "Hot Streak"
        assert [b.id for b in outcomes[-1].awarded_badges] == ["badge-4"]

    @pytest.mark.asyncio
    async def test_same_day_validations(self, lifecycle, scripted_port, photo, frozen_clock):
        """Two validations on one day → credits twice, streak stays 1."""
        first = await _triaged_report(lifecycle, scripted_port, photo)
        second = await _triaged_report(lifecycle, scripted_port, photo)

        lifecycle.validate_report(first.id)
        frozen_clock.advance(hours=3)
        outcome = lifecycle.validate_report(second.id)

        user = lifecycle.get_user("citizen")
        assert user.credits == 20
        assert user.streak == 1
        assert outcome.ledger_delta.streak_before == 1
        assert outcome.awarded_badges == []

    @pytest.mark.asyncio
    async def test_gap_resets_streak(self, lifecycle, scripted_port, photo, frozen_clock):
        """Skipping a day resets the streak to 1."""
        first = await _triaged_report(lifecycle, scripted_port, photo)
        lifecycle.validate_report(first.id)

        frozen_clock.advance(days=2)
        second = await _triaged_report(lifecycle, scripted_port, photo)
        lifecycle.validate_report(second.id)

        assert lifecycle.get_user("citizen").streak == 1

    @pytest.mark.asyncio
    async def test_badges_counted_per_owner(self, lifecycle, scripted_port, photo):
        """Only the owner's validated reports count toward their badges."""
        for _ in range(4):
            report = await _triaged_report(lifecycle, scripted_port, photo, owner="admin")
            lifecycle.validate_report(report.id)

        mine = await _triaged_report(lifecycle, scripted_port, photo)
        outcome = lifecycle.validate_report(mine.id)
        assert [b.id for b in outcome.awarded_badges] == ["badge-1"]

    @pytest.mark.asyncio
    async def test_fifth_validation_awards_community_helper(self, lifecycle, scripted_port, photo):
        """Five validated reports → Community Helper."""
        outcome = None
        for _ in range(5):
            report = await _triaged_report(lifecycle, scripted_port, photo)
            outcome = lifecycle.validate_report(report.id)
        assert outcome.notification.title == "Community Helper"
        assert lifecycle.store.validated_count("citizen") == 5

    @pytest.mark.asyncio
    async def test_multiple_badges_at_once(self, scripted_port, users, catalog, frozen_clock, photo):
        """A user on a long streak gets First Report and Hot Streak together; the last is the notification."""
        from civic_triage.models.user import User
        from civic_triage.services.lifecycle import CivicLifecycle

        yesterday = date_key(frozen_clock.now() - timedelta(days=1))
        streaker = User(id="chen", name="Chen Wei", credits=240, streak=5, last_validation_date=yesterday)
        lifecycle = CivicLifecycle(scripted_port, users=[streaker], catalog=catalog, clock=frozen_clock)

        report = await _triaged_report(lifecycle, scripted_port, photo, owner="chen")
        outcome = lifecycle.validate_report(report.id)

        assert [b.title for b in outcome.awarded_badges] == ["First Report", "Hot Streak"]
        assert outcome.notification.title == "Hot Streak"
        assert streaker.streak == 6
        assert streaker.credits == 250
