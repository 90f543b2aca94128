"""Badge Catalog and Award Evaluator.

The catalog is static, loaded from ``config/badges.yaml`` and cached. After a
validation the evaluator awards every catalog badge whose criteria the user
now meets and that they have not earned yet.

Usage:
    from civic_triage.services.badges import BadgeAwardEvaluator, BadgeAwards, load_badge_catalog

    evaluator = BadgeAwardEvaluator(load_badge_catalog(), BadgeAwards())
    new_badges = evaluator.award("user-5", validated_count=1, streak=1, now=now)
"""

import logging
from pathlib import Path
from typing import Iterable, Iterator, Optional

import yaml

from ..models.user import Badge, BadgeCriteria, CriteriaKind, UserBadge

logger = logging.getLogger(__name__)

DEFAULT_BADGES = [
    Badge(
        id="badge-1",
        title="First Report",
        description="Submit your first validated report.",
        icon="TrophyIcon",
        criteria=BadgeCriteria(CriteriaKind.VALIDATED_COUNT, 1),
    ),
    Badge(
        id="badge-2",
        title="Community Helper",
        description="Get 5 reports validated.",
        icon="HeartIcon",
        criteria=BadgeCriteria(CriteriaKind.VALIDATED_COUNT, 5),
    ),
    Badge(
        id="badge-3",
        title="Civic Champion",
        description="Get 10 reports validated.",
        icon="SparklesIcon",
        criteria=BadgeCriteria(CriteriaKind.VALIDATED_COUNT, 10),
    ),
    Badge(
        id="badge-4",
        title="Hot Streak",
        description="Maintain a 3-day validation streak.",
        icon="RocketLaunchIcon",
        criteria=BadgeCriteria(CriteriaKind.STREAK_LENGTH, 3),
    ),
]


class BadgeCatalog:
    """Ordered, read-only set of badge definitions."""

    def __init__(self, badges: Iterable[Badge]):
        self._badges: dict[str, Badge] = {}
        for badge in badges:
            if badge.id in self._badges:
                raise ValueError(f"Duplicate badge id: {badge.id}")
            self._badges[badge.id] = badge

    def __iter__(self) -> Iterator[Badge]:
        return iter(self._badges.values())

    def __len__(self) -> int:
        return len(self._badges)

    def get(self, badge_id: str) -> Optional[Badge]:
        return self._badges.get(badge_id)


# Module-level cache, keyed by resolved path
_catalog_cache: dict[Path, BadgeCatalog] = {}


def _get_config_path() -> Path:
    return Path(__file__).parent.parent.parent / "config" / "badges.yaml"


def _parse_badge(raw: dict) -> Badge:
    """Build a Badge from one YAML entry."""
    for key in ("id", "title", "criteria"):
        if key not in raw:
            raise ValueError(f"Badge entry missing '{key}': {raw}")

    criteria = raw["criteria"]
    if not isinstance(criteria, dict):
        raise ValueError(f"Badge {raw['id']} criteria must be a mapping, got {criteria!r}")
    try:
        kind = CriteriaKind(criteria.get("kind"))
    except ValueError:
        raise ValueError(f"Badge {raw['id']} has unknown criteria kind: {criteria.get('kind')}")

    threshold = criteria.get("threshold")
    if isinstance(threshold, bool) or not isinstance(threshold, int) or threshold < 1:
        raise ValueError(f"Badge {raw['id']} threshold must be a positive integer, got {threshold!r}")

    return Badge(
        id=str(raw["id"]),
        title=raw["title"],
        description=raw.get("description", ""),
        icon=raw.get("icon", ""),
        criteria=BadgeCriteria(kind, threshold),
    )


def load_badge_catalog(path: Optional[Path] = None) -> BadgeCatalog:
    """Load and cache the badge catalog, falling back to the built-in badges."""
    config_path = Path(path) if path else _get_config_path()
    cache_key = config_path.resolve()
    if cache_key in _catalog_cache:
        return _catalog_cache[cache_key]

    if not config_path.exists():
        logger.warning(f"Badge catalog not found at {config_path}, using defaults")
        catalog = BadgeCatalog(DEFAULT_BADGES)
    else:
        with open(config_path) as f:
            raw = yaml.safe_load(f) or {}
        catalog = BadgeCatalog(_parse_badge(entry) for entry in raw.get("badges", []))
        logger.info(f"Loaded {len(catalog)} badges from {config_path.name}")

    _catalog_cache[cache_key] = catalog
    return catalog


def clear_cache() -> None:
    """Clear cached catalogs (for testing)."""
    _catalog_cache.clear()


class BadgeAwards:
    """Earned badges, at most one per (user, badge)."""

    def __init__(self):
        self._awards: dict[tuple[str, str], UserBadge] = {}

    def __len__(self) -> int:
        return len(self._awards)

    def has(self, user_id: str, badge_id: str) -> bool:
        return (user_id, badge_id) in self._awards

    def get(self, user_id: str, badge_id: str) -> Optional[UserBadge]:
        return self._awards.get((user_id, badge_id))

    def for_user(self, user_id: str) -> list[UserBadge]:
        return [award for (uid, _), award in self._awards.items() if uid == user_id]

    def record(self, award: UserBadge) -> bool:
        """Store an award. Returns False if the user already holds the badge."""
        key = (award.user_id, award.badge_id)
        if key in self._awards:
            return False
        self._awards[key] = award
        return True


class BadgeAwardEvaluator:
    """Awards catalog badges whose criteria a user meets."""

    def __init__(self, catalog: BadgeCatalog, awards: BadgeAwards):
        self.catalog = catalog
        self.awards = awards

    def qualifying(self, user_id: str, validated_count: int, streak: int) -> list[Badge]:
        """Unearned badges the user now qualifies for, in catalog order."""
        return [
            badge
            for badge in self.catalog
            if not self.awards.has(user_id, badge.id) and badge.criteria.is_met(validated_count, streak)
        ]

    def award(self, user_id: str, validated_count: int, streak: int, now) -> list[Badge]:
        """Record every qualifying badge and return them in catalog order."""
        awarded = []
        for badge in self.qualifying(user_id, validated_count, streak):
            if self.awards.record(UserBadge(user_id=user_id, badge_id=badge.id, awarded_at=now)):
                awarded.append(badge)
        return awarded
