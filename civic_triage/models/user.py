"""User, badge and award records for the gamification layer."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class UserRole(str, Enum):
    CITIZEN = "citizen"
    ADMIN = "admin"


@dataclass
class User:
    """
    A participant and their gamification stats.

    Attributes:
        id: Opaque user ID
        name: Display name
        avatar_url: Avatar image URL
        credits: Credit balance (never negative)
        is_phone_verified: Only verified users appear on leaderboards
        last_validation_date: Date key (YYYY-MM-DD) of the last validation, or None
        streak: Consecutive-day validation streak
        neighborhood: Neighborhood label used for leaderboard scopes
    """

    id: str
    name: str
    avatar_url: str = ""
    credits: int = 0
    is_phone_verified: bool = False
    last_validation_date: Optional[str] = None
    streak: int = 0
    neighborhood: str = ""

    def __post_init__(self):
        if self.credits < 0:
            raise ValueError(f"credits must be >= 0, got {self.credits}")
        if self.streak < 0:
            raise ValueError(f"streak must be >= 0, got {self.streak}")


class CriteriaKind(str, Enum):
    VALIDATED_COUNT = "validated_count"
    STREAK_LENGTH = "streak_length"


@dataclass(frozen=True)
class BadgeCriteria:
    kind: CriteriaKind
    threshold: int

    def is_met(self, validated_count: int, streak: int) -> bool:
        if self.kind == CriteriaKind.VALIDATED_COUNT:
            return validated_count >= self.threshold
        return streak >= self.threshold


@dataclass(frozen=True)
class Badge:
    """Static badge definition from the catalog."""

    id: str
    title: str
    description: str
    icon: str
    criteria: BadgeCriteria


@dataclass(frozen=True)
class UserBadge:
    """A badge earned by a user. One per (user, badge) pair."""

    user_id: str
    badge_id: str
    awarded_at: datetime
