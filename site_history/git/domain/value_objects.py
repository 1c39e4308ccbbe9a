"""Value objects for Git domain."""

from dataclasses import dataclass
from enum import Enum


class FileChangeType(str, Enum):
    """Type of file change in a commit."""

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"


@dataclass(frozen=True)
class FileChange:
    """Information about a file change in a commit."""

    file_path: str
    change_type: FileChangeType


@dataclass(frozen=True)
class FileContentChange:
    """Target content of a single path in the working tree.

    Attributes:
        file_path: Path relative to repository root
        content: New raw file content, or None to delete the file
    """

    file_path: str
    content: bytes | None


@dataclass(frozen=True)
class CommitDiff:
    """Diff information for a commit."""

    commit_hash: str
    diff_content: str


@dataclass(frozen=True)
class DiffSizeConfig:
    """Configuration for the maximum diff size returned to callers."""

    max_diff_size: int = 50 * 1024

    def __post_init__(self) -> None:
        """Validate the size limit."""
        if self.max_diff_size <= 0:
            raise ValueError("max_diff_size must be a positive number of bytes")
