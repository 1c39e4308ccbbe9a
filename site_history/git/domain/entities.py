"""Git domain entities."""

from dataclasses import dataclass, field
from datetime import datetime

from site_history.git.domain.value_objects import FileChange


@dataclass(frozen=True)
class Commit:
    """Commit entity.

    A commit in the linear history of the mirrored site. ``parent_hash`` is
    None only for the root commit.
    """

    hash: str
    author: str
    date: datetime
    message: str
    parent_hash: str | None = None
    file_changes: tuple[FileChange, ...] = field(default_factory=tuple)

    @property
    def short_hash(self) -> str:
        return self.hash[:7]
