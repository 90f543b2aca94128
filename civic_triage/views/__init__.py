"""Read-only projections over reports and users."""

from .badges import BadgeShelfItem, badge_shelf
from .board import Board, build_board
from .dashboard import (
    DashboardFilters,
    DashboardStats,
    SortOrder,
    StatusFilter,
    dashboard_stats,
    filter_reports,
    neighborhood_options,
    report_categories,
)
from .leaderboard import GLOBAL_SCOPE, LeaderboardEntry, build_leaderboard, neighborhoods

__all__ = [
    "GLOBAL_SCOPE",
    "Board",
    "BadgeShelfItem",
    "DashboardFilters",
    "DashboardStats",
    "LeaderboardEntry",
    "SortOrder",
    "StatusFilter",
    "badge_shelf",
    "build_board",
    "build_leaderboard",
    "dashboard_stats",
    "filter_reports",
    "neighborhood_options",
    "neighborhoods",
    "report_categories",
]
