"""Value objects for browsed history."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class CommitSummary:
    """A commit as presented in browsed history."""

    hash: str
    date: str
    message: str
    can_undo: bool
    can_rollback: bool
    is_enabled: bool
    is_initial: bool
    changes: tuple[dict[str, Any], ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "hash": self.hash,
            "date": self.date,
            "message": self.message,
            "canUndo": self.can_undo,
            "canRollback": self.can_rollback,
            "isEnabled": self.is_enabled,
            "isInitial": self.is_initial,
            "changes": list(self.changes),
        }


@dataclass(frozen=True)
class HistoryPage:
    """One page of browsed history with its navigation steps."""

    pages: tuple[int, ...]
    commits: tuple[CommitSummary, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "pages": list(self.pages),
            "commits": [commit.to_dict() for commit in self.commits],
        }
