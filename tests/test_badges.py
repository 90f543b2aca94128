"""Tests for the badge catalog loader and award evaluator."""

from pathlib import Path

import pytest
from conftest import NOON

from civic_triage.models.user import CriteriaKind
from civic_triage.services.badges import (
    BadgeAwardEvaluator,
    BadgeAwards,
    BadgeCatalog,
    DEFAULT_BADGES,
    clear_cache,
    load_badge_catalog,
)
from civic_triage.views.badges import badge_shelf

REPO_BADGES = Path(__file__).parent.parent / "config" / "badges.yaml"


@pytest.fixture(autouse=True)
def _fresh_cache():
    clear_cache()
    yield
    clear_cache()


# ─── Catalog loading ─────────────────────────────────────────────────────────


class TestLoadBadgeCatalog:
    """YAML catalog with a built-in fallback."""

    def test_repo_catalog(self):
        """config/badges.yaml defines the four standard badges."""
        catalog = load_badge_catalog(REPO_BADGES)
        assert [b.id for b in catalog] == ["badge-1", "badge-2", "badge-3", "badge-4"]
        hot_streak = catalog.get("badge-4")
        assert hot_streak.title == "Hot Streak"
        assert hot_streak.criteria.kind == CriteriaKind.STREAK_LENGTH
        assert hot_streak.criteria.threshold == 3

    def test_default_path(self):
        """No path → the repo catalog."""
        assert len(load_badge_catalog()) == 4

    def test_missing_file_falls_back(self, tmp_path):
        """Missing file → built-in badges."""
        catalog = load_badge_catalog(tmp_path / "nope.yaml")
        assert [b.id for b in catalog] == [b.id for b in DEFAULT_BADGES]

    def test_cached(self):
        """Repeated loads return the same catalog object."""
        assert load_badge_catalog(REPO_BADGES) is load_badge_catalog(REPO_BADGES)

    def test_custom_catalog(self, tmp_path):
        """A custom YAML file is parsed."""
        path = tmp_path / "badges.yaml"
        path.write_text(
            "badges:\n"
            "  - id: early-bird\n"
            "    title: Early Bird\n"
            "    criteria: {kind: streak_length, threshold: 2}\n"
        )
        catalog = load_badge_catalog(path)
        assert len(catalog) == 1
        assert catalog.get("early-bird").criteria.threshold == 2

    def test_unknown_criteria_kind(self, tmp_path):
        """An unknown criteria kind is rejected."""
        path = tmp_path / "badges.yaml"
        path.write_text("badges:\n  - id: x\n    title: X\n    criteria: {kind: karma, threshold: 1}\n")
        with pytest.raises(ValueError, match="unknown criteria kind"):
            load_badge_catalog(path)

    def test_bad_threshold(self, tmp_path):
        """Thresholds must be positive integers."""
        path = tmp_path / "badges.yaml"
        path.write_text("badges:\n  - id: x\n    title: X\n    criteria: {kind: streak_length, threshold: 0}\n")
        with pytest.raises(ValueError, match="threshold"):
            load_badge_catalog(path)

    def test_boolean_threshold(self, tmp_path):
        """YAML booleans are not accepted as thresholds."""
        path = tmp_path / "badges.yaml"
        path.write_text("badges:\n  - id: x\n    title: X\n    criteria: {kind: streak_length, threshold: true}\n")
        with pytest.raises(ValueError, match="threshold"):
            load_badge_catalog(path)

    def test_criteria_not_a_mapping(self, tmp_path):
        """Criteria given as a scalar → ValueError."""
        path = tmp_path / "badges.yaml"
        path.write_text("badges:\n  - id: x\n    title: X\n    criteria: streak_length\n")
        with pytest.raises(ValueError, match="mapping"):
            load_badge_catalog(path)

    def test_duplicate_ids(self):
        """Duplicate badge ids are rejected."""
        with pytest.raises(ValueError):
            BadgeCatalog([DEFAULT_BADGES[0], DEFAULT_BADGES[0]])


# ─── Award evaluation ────────────────────────────────────────────────────────


class TestBadgeAwardEvaluator:
    """Every qualifying unearned badge is awarded, once."""

    @pytest.fixture
    def evaluator(self, catalog):
        return BadgeAwardEvaluator(catalog, BadgeAwards())

    def test_first_report(self, evaluator):
        """One validation → First Report only."""
        awarded = evaluator.award("u1", validated_count=1, streak=1, now=NOON)
        assert [b.title for b in awarded] == ["First Report"]

    def test_multiple_in_catalog_order(self, evaluator):
        """Several thresholds crossed at once → all awarded in catalog order."""
        awarded = evaluator.award("u1", validated_count=5, streak=3, now=NOON)
        assert [b.id for b in awarded] == ["badge-1", "badge-2", "badge-4"]

    def test_no_reaward(self, evaluator):
        """Already earned badges are not awarded again."""
        evaluator.award("u1", validated_count=1, streak=1, now=NOON)
        assert evaluator.award("u1", validated_count=2, streak=2, now=NOON) == []
        assert len(evaluator.awards) == 1

    def test_per_user(self, evaluator):
        """Awards are tracked per user."""
        evaluator.award("u1", validated_count=1, streak=1, now=NOON)
        awarded = evaluator.award("u2", validated_count=1, streak=1, now=NOON)
        assert [b.id for b in awarded] == ["badge-1"]

    def test_nothing_qualifies(self, evaluator):
        """Below every threshold → no awards."""
        assert evaluator.award("u1", validated_count=0, streak=0, now=NOON) == []

    def test_record_is_idempotent(self):
        """Recording the same (user, badge) twice keeps the first."""
        from civic_triage.models.user import UserBadge

        awards = BadgeAwards()
        assert awards.record(UserBadge("u1", "badge-1", NOON)) is True
        assert awards.record(UserBadge("u1", "badge-1", NOON)) is False
        assert len(awards.for_user("u1")) == 1


class TestBadgeShelf:
    """Shelf shows every badge with its earned state."""

    def test_earned_and_locked(self, catalog):
        """Earned badges carry their award time; the rest are locked."""
        awards = BadgeAwards()
        BadgeAwardEvaluator(catalog, awards).award("u1", validated_count=1, streak=1, now=NOON)
        shelf = badge_shelf(catalog, awards, "u1")
        assert len(shelf) == 4
        assert shelf[0].earned and shelf[0].awarded_at == NOON
        assert not any(item.earned for item in shelf[1:])
