"""Leaderboard of phone-verified users by credits."""

from dataclasses import dataclass
from typing import Iterable

from ..models.user import User

GLOBAL_SCOPE = "global"


@dataclass(frozen=True)
class LeaderboardEntry:
    rank: int
    user_id: str
    name: str
    avatar_url: str
    credits: int
    neighborhood: str


def build_leaderboard(users: Iterable[User], scope: str = GLOBAL_SCOPE) -> list[LeaderboardEntry]:
    """
    Rank verified users by credits, highest first.

    Args:
        users: All known users
        scope: "global" or a neighborhood name

    Returns:
        Entries ranked from 1; ties keep their original order
    """
    eligible = [
        u for u in users if u.is_phone_verified and (scope == GLOBAL_SCOPE or u.neighborhood == scope)
    ]
    eligible.sort(key=lambda u: u.credits, reverse=True)
    return [
        LeaderboardEntry(
            rank=index,
            user_id=u.id,
            name=u.name,
            avatar_url=u.avatar_url,
            credits=u.credits,
            neighborhood=u.neighborhood,
        )
        for index, u in enumerate(eligible, start=1)
    ]


def neighborhoods(users: Iterable[User]) -> list[str]:
    return sorted({u.neighborhood for u in users if u.neighborhood})
