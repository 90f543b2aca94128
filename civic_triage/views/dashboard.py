"""
Dashboard projection: headline stats and the filtered report list.

Admins see every report and can narrow by the submitter's neighborhood;
citizens see only their own reports.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Iterable, Optional

from ..constants import CRITICAL_SEVERITY
from ..models.report import AcceptanceStatus, Report, ReportStatus
from ..models.user import User, UserRole


class StatusFilter(str, Enum):
    ALL = "all"
    TRIAGING = "triaging"  # "Pending" in the UI: still triaging or awaiting an admin decision
    COMPLETE = "complete"
    ERROR = "error"
    RESOLVED = "resolved"


class SortOrder(str, Enum):
    NEWEST = "newest"
    PRIORITY = "priority"


@dataclass(frozen=True)
class DashboardStats:
    total: int
    pending: int
    critical: int


@dataclass
class DashboardFilters:
    """
    Attributes:
        status: Status filter
        category: Triage category to keep, or None for all
        start_date: Keep reports submitted on or after this day (local)
        end_date: Keep reports submitted on or before this day (local)
        neighborhood: Submitter neighborhood (admin only), or None for all
        sort: Result ordering
    """

    status: StatusFilter = StatusFilter.ALL
    category: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    neighborhood: Optional[str] = None
    sort: SortOrder = SortOrder.NEWEST

    def __post_init__(self):
        self.status = StatusFilter(self.status)
        self.sort = SortOrder(self.sort)
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError(f"start_date {self.start_date} is after end_date {self.end_date}")


def visible_reports(reports: Iterable[Report], role: UserRole, user_id: str) -> list[Report]:
    if UserRole(role) == UserRole.ADMIN:
        return list(reports)
    return [r for r in reports if r.user_id == user_id]


def _is_pending(report: Report) -> bool:
    return report.status == ReportStatus.TRIAGING or report.acceptance_status == AcceptanceStatus.PENDING


def dashboard_stats(reports: Iterable[Report], role: UserRole, user_id: str) -> DashboardStats:
    relevant = visible_reports(reports, role, user_id)
    return DashboardStats(
        total=len(relevant),
        pending=sum(1 for r in relevant if _is_pending(r)),
        critical=sum(1 for r in relevant if r.triage_result and r.triage_result.severity == CRITICAL_SEVERITY),
    )


def filter_reports(
    reports: Iterable[Report],
    filters: DashboardFilters,
    role: UserRole,
    user_id: str,
    users: Iterable[User] = (),
) -> list[Report]:
    """Apply the dashboard filters and ordering to the reports visible to the viewer."""
    is_admin = UserRole(role) == UserRole.ADMIN
    neighborhood_members = None
    if is_admin and filters.neighborhood:
        neighborhood_members = {u.id for u in users if u.neighborhood == filters.neighborhood}

    selected = []
    for report in visible_reports(reports, role, user_id):
        if neighborhood_members is not None and report.user_id not in neighborhood_members:
            continue
        if filters.status == StatusFilter.TRIAGING:
            if not _is_pending(report):
                continue
        elif filters.status != StatusFilter.ALL and report.status.value != filters.status.value:
            continue
        if filters.category and (report.triage_result is None or report.triage_result.category != filters.category):
            continue
        submitted_on = report.timestamp.date()
        if filters.start_date and submitted_on < filters.start_date:
            continue
        if filters.end_date and submitted_on > filters.end_date:
            continue
        selected.append(report)

    if filters.sort == SortOrder.PRIORITY:
        selected.sort(key=lambda r: r.priority_score, reverse=True)
    else:
        selected.sort(key=lambda r: r.timestamp, reverse=True)
    return selected


def report_categories(reports: Iterable[Report]) -> list[str]:
    """Distinct triage categories, sorted."""
    return sorted({r.triage_result.category for r in reports if r.triage_result and r.triage_result.category})


def neighborhood_options(users: Iterable[User], role: UserRole) -> list[str]:
    """Distinct user neighborhoods for the admin filter, sorted; empty for citizens."""
    if UserRole(role) != UserRole.ADMIN:
        return []
    return sorted({u.neighborhood for u in users if u.neighborhood})
