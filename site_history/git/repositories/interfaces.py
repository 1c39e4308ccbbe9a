"""Repository interfaces for Git operations."""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from site_history.git.domain.entities import Commit
from site_history.git.domain.value_objects import CommitDiff, FileChange, FileContentChange


class GitRepository(ABC):
    """Interface for the append-only commit log of the mirrored site."""

    @abstractmethod
    def get_head(self) -> str | None:
        """
        Get the hash of the current HEAD commit.

        Returns:
            Hash of HEAD, or None if the repository has no commits yet
        """
        ...

    @abstractmethod
    def count_commits(self) -> int:
        """
        Count the commits reachable from HEAD.

        Returns:
            Number of commits, 0 for an empty repository
        """
        ...

    @abstractmethod
    def list_commits(self, skip: int, limit: int) -> tuple[Commit, ...]:
        """
        List a window of commits walking backward from HEAD.

        Args:
            skip: Number of newest commits to skip
            limit: Maximum number of commits to return

        Returns:
            Tuple of commits ordered from newest to oldest
        """
        ...

    @abstractmethod
    def get_commit(self, commit_hash: str) -> Commit:
        """
        Get a single commit with its file changes.

        Args:
            commit_hash: Hash (or any revision) of the commit

        Returns:
            The commit

        Raises:
            CommitNotFoundError: If the hash does not resolve to a commit
        """
        ...

    @abstractmethod
    def get_initial_commit(self) -> Commit:
        """
        Get the root commit of the history.

        Returns:
            The commit without parent
        """
        ...

    @abstractmethod
    def get_child_commit(self, commit_hash: str) -> str | None:
        """
        Get the commit that directly follows the given one on the way to HEAD.

        Args:
            commit_hash: Hash of the parent commit

        Returns:
            Hash of the child commit, or None if the commit is HEAD
        """
        ...

    @abstractmethod
    def was_created_after(self, commit_hash: str, after_commit_hash: str) -> bool:
        """
        Check whether a commit is a strict descendant of another one.

        Args:
            commit_hash: Hash of the commit to test
            after_commit_hash: Hash of the reference commit

        Returns:
            True if commit_hash was created after after_commit_hash
        """
        ...

    @abstractmethod
    def list_changes_between(self, commit_a: str, commit_b: str) -> tuple[FileChange, ...]:
        """
        List files that differ between two commits.

        Args:
            commit_a: Hash of the older commit
            commit_b: Hash of the newer commit

        Returns:
            File changes needed to go from commit_a to commit_b
        """
        ...

    @abstractmethod
    def read_file(self, revision: str, file_path: str) -> bytes | None:
        """
        Read the content of a file at a given revision.

        Args:
            revision: Commit hash or revision name
            file_path: Path to the file relative to repository root

        Returns:
            The raw file content, or None if the file does not exist at that revision
        """
        ...

    @abstractmethod
    def get_commit_diff(self, commit_hash: str, max_size: int) -> CommitDiff:
        """
        Get the diff content for a specific commit.

        Args:
            commit_hash: Hash of the commit
            max_size: Maximum size of the diff in bytes

        Returns:
            CommitDiff containing the diff content

        Raises:
            PayloadTooLargeError: If the diff is larger than max_size
        """
        ...

    @abstractmethod
    def has_uncommitted_changes(self) -> bool:
        """Check whether the working tree has modified or untracked files."""
        ...

    @abstractmethod
    def commit_changes(self, changes: Sequence[FileContentChange], message: str) -> str:
        """
        Write file contents to the working tree and record them as one commit.

        Args:
            changes: Target contents per path
            message: Commit message

        Returns:
            Hash of the new commit
        """
        ...

    @abstractmethod
    def discard_changes(self, file_paths: Sequence[str] = ()) -> None:
        """
        Reset the index and working tree to HEAD.

        Args:
            file_paths: Paths written by an aborted commit; untracked ones are removed
        """
        ...
