"""Git service for coordinating read-only history operations."""

import logging
from pathlib import Path

from site_history.git.domain.value_objects import CommitDiff, DiffSizeConfig
from site_history.git.repositories.interfaces import GitRepository

logger = logging.getLogger(__name__)


class GitService:
    """Service for diffs and commit-order queries over the mirrored history."""

    def __init__(
        self,
        git_repository: GitRepository,
        diff_size_config: DiffSizeConfig | None = None,
        activation_file: Path | None = None,
    ) -> None:
        """
        Initialize GitService.

        Args:
            git_repository: Repository implementation for Git operations
            diff_size_config: Configuration for diff size limits. Defaults to DiffSizeConfig()
            activation_file: File holding the hash of the last commit made before
                tracking started. Missing or empty means the whole history is tracked.
        """
        self._git_repository = git_repository
        self._diff_size_config = diff_size_config or DiffSizeConfig()
        self._activation_file = activation_file

    def get_diff(self, commit_hash: str) -> CommitDiff:
        """
        Get the diff content for a specific commit.

        Args:
            commit_hash: Hash of the commit

        Returns:
            CommitDiff containing the diff content

        Raises:
            PayloadTooLargeError: If the diff exceeds the configured size limit
        """
        return self._git_repository.get_commit_diff(
            commit_hash, self._diff_size_config.max_diff_size
        )

    def get_initial_commit_hash(self) -> str:
        """
        Get the hash of the first commit made by the tracking.

        Nothing before this commit can be undone or rolled back to.

        Returns:
            Hash of the initial commit
        """
        pre_activation_hash = self._read_pre_activation_hash()
        if pre_activation_hash:
            child = self._git_repository.get_child_commit(pre_activation_hash)
            if child is not None:
                return child
            logger.warning(
                f"No commit follows the pre-activation commit {pre_activation_hash}"
            )
        return self._git_repository.get_initial_commit().hash

    def was_created_after(self, commit_hash: str, after_commit_hash: str) -> bool:
        return self._git_repository.was_created_after(commit_hash, after_commit_hash)

    def should_update(self, latest_commit_hash: str) -> bool:
        """
        Check whether HEAD moved past the newest commit a caller has seen.

        Args:
            latest_commit_hash: Hash of the newest commit known to the caller

        Returns:
            True if HEAD was created after latest_commit_hash
        """
        return self._git_repository.was_created_after("HEAD", latest_commit_hash)

    def _read_pre_activation_hash(self) -> str:
        if self._activation_file is None or not self._activation_file.exists():
            return ""
        return self._activation_file.read_text(encoding="utf-8").strip()
