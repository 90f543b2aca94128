"""Per-user badge shelf: every catalog badge with its earned state."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..models.user import Badge
from ..services.badges import BadgeAwards, BadgeCatalog


@dataclass(frozen=True)
class BadgeShelfItem:
    badge: Badge
    earned: bool
    awarded_at: Optional[datetime] = None


def badge_shelf(catalog: BadgeCatalog, awards: BadgeAwards, user_id: str) -> list[BadgeShelfItem]:
    items = []
    for badge in catalog:
        award = awards.get(user_id, badge.id)
        items.append(BadgeShelfItem(badge=badge, earned=award is not None, awarded_at=award.awarded_at if award else None))
    return items
