"""Demo users for the offline demo and for local experiments."""

from datetime import datetime, timedelta
from typing import Optional

from ..models.user import User, UserRole
from ..utils.clock import date_key

AVATAR_URL_TEMPLATE = "https://api.dicebear.com/8.x/adventurer/svg?seed={seed}"

# Which demo user acts for each role
DEMO_ROLE_USERS = {
    UserRole.CITIZEN: "user-5",
    UserRole.ADMIN: "user-1",
}


def _avatar(name: str) -> str:
    return AVATAR_URL_TEMPLATE.format(seed=name.split()[0])


def _days_ago(now: datetime, days: Optional[int]) -> Optional[str]:
    if days is None:
        return None
    return date_key(now - timedelta(days=days))


def demo_users(now: datetime) -> list[User]:
    """
    Five demo users; last-validation dates are relative to ``now``.

    Chen Wei validated yesterday (streak 5) and Alex Johnson two days ago
    (streak 2), so their next validation extends or resets the streak.
    """
    rows = [
        # id, name, credits, verified, days since last validation, streak, neighborhood
        ("user-1", "Alex Johnson", 150, True, 2, 2, "Downtown Core"),
        ("user-2", "Maria Garcia", 75, True, None, 0, "North Park"),
        ("user-3", "Chen Wei", 240, True, 1, 5, "Downtown Core"),
        ("user-4", "Fatima Al-Fassi", 30, False, None, 0, "West End"),
        ("user-5", "John Smith", 0, True, None, 0, "North Park"),
    ]
    return [
        User(
            id=user_id,
            name=name,
            avatar_url=_avatar(name),
            credits=credits,
            is_phone_verified=verified,
            last_validation_date=_days_ago(now, days),
            streak=streak,
            neighborhood=neighborhood,
        )
        for user_id, name, credits, verified, days, streak, neighborhood in rows
    ]
