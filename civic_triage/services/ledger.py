"""
User / Credit Ledger - per-user credits and validation streaks.

Streak rule (calendar days on the caller's local clock):
- last validation yesterday -> streak + 1
- last validation today     -> unchanged (same-day validations never double-count)
- anything else             -> streak resets to 1
Credits are paid on every validation regardless of the streak branch.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from ..constants import VALIDATION_REWARD_CREDITS
from ..models.user import User
from ..utils.clock import date_key, previous_date_key

logger = logging.getLogger(__name__)


def next_streak(current_streak: int, last_validation_date: Optional[str], today: str, yesterday: str) -> int:
    """Streak after a validation on ``today``."""
    if last_validation_date == yesterday:
        return current_streak + 1
    if last_validation_date != today:
        return 1
    return current_streak


@dataclass(frozen=True)
class LedgerDelta:
    """Before/after snapshot of one validation reward."""

    user_id: str
    credits_before: int
    credits_after: int
    streak_before: int
    streak_after: int
    last_validation_before: Optional[str]
    last_validation_after: str

    @property
    def credits_earned(self) -> int:
        return self.credits_after - self.credits_before


class UserLedger:
    """Owns the users and applies validation rewards to them."""

    def __init__(self, users: Iterable[User] = (), reward_credits: int = VALIDATION_REWARD_CREDITS):
        if reward_credits < 0:
            raise ValueError(f"reward_credits must be >= 0, got {reward_credits}")
        self.reward_credits = reward_credits
        self._users: dict[str, User] = {}
        for user in users:
            self.add_user(user)

    def __len__(self) -> int:
        return len(self._users)

    def __contains__(self, user_id: str) -> bool:
        return user_id in self._users

    def add_user(self, user: User) -> None:
        if user.id in self._users:
            raise ValueError(f"Duplicate user id: {user.id}")
        self._users[user.id] = user

    def get(self, user_id: str) -> Optional[User]:
        return self._users.get(user_id)

    def users(self) -> list[User]:
        return list(self._users.values())

    def credit_validation(self, user_id: str, now: datetime) -> Optional[LedgerDelta]:
        """
        Pay the validation reward and advance the user's streak.

        Args:
            user_id: Owner of the validated report
            now: Validation time (local)

        Returns:
            LedgerDelta, or None if the user is unknown
        """
        user = self._users.get(user_id)
        if user is None:
            logger.warning(f"Validation reward skipped: unknown user {user_id}")
            return None

        today = date_key(now)
        yesterday = previous_date_key(now)

        credits_before = user.credits
        streak_before = user.streak
        last_before = user.last_validation_date

        user.credits += self.reward_credits
        # streak and last_validation_date move together
        user.streak = next_streak(user.streak, user.last_validation_date, today, yesterday)
        user.last_validation_date = today

        logger.debug(
            f"Ledger update for {user_id}: credits {credits_before}->{user.credits}, "
            f"streak {streak_before}->{user.streak}"
        )
        return LedgerDelta(
            user_id=user_id,
            credits_before=credits_before,
            credits_after=user.credits,
            streak_before=streak_before,
            streak_after=user.streak,
            last_validation_before=last_before,
            last_validation_after=today,
        )
