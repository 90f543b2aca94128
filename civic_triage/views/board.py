"""Kanban board projection over accepted reports."""

from dataclasses import dataclass, field
from typing import Iterable

from ..models.report import AcceptanceStatus, KanbanStatus, Report


@dataclass
class Board:
    pending: list[Report] = field(default_factory=list)
    in_progress: list[Report] = field(default_factory=list)
    done: list[Report] = field(default_factory=list)

    def column(self, status: KanbanStatus) -> list[Report]:
        return {
            KanbanStatus.PENDING: self.pending,
            KanbanStatus.IN_PROGRESS: self.in_progress,
            KanbanStatus.DONE: self.done,
        }[KanbanStatus(status)]

    def __len__(self) -> int:
        return len(self.pending) + len(self.in_progress) + len(self.done)


def build_board(reports: Iterable[Report]) -> Board:
    """
    Group accepted reports into kanban columns.

    Pending and in-progress columns are ordered by priority score (highest
    first, untriaged counts as 0); the done column by submission time
    (newest first).
    """
    board = Board()
    for report in reports:
        if report.acceptance_status != AcceptanceStatus.ACCEPTED:
            continue
        board.column(report.kanban_status).append(report)

    board.pending.sort(key=lambda r: r.priority_score, reverse=True)
    board.in_progress.sort(key=lambda r: r.priority_score, reverse=True)
    board.done.sort(key=lambda r: r.timestamp, reverse=True)
    return board
