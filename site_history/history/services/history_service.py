"""History service: the operations offered to an API or CLI boundary."""

import logging
from typing import Any

from site_history.changeinfo.domain.value_objects import (
    describe,
    list_changes,
    to_change_payload,
)
from site_history.changeinfo.services.matcher import ChangeInfoMatcher
from site_history.dataset.repositories.interfaces import EntityStorage
from site_history.git.domain.entities import Commit
from site_history.git.domain.exceptions import NoMoreHistoryError
from site_history.git.domain.value_objects import CommitDiff, FileChangeType
from site_history.git.services.git_service import GitService
from site_history.git.services.paginator import GitLogPaginator
from site_history.history.domain.value_objects import CommitSummary, HistoryPage
from site_history.revert.domain.value_objects import (
    CommitEligibility,
    RevertResult,
    RevertStatus,
)
from site_history.revert.services.eligibility_service import compute_eligibility
from site_history.revert.services.maintenance_lock import MaintenanceLock
from site_history.revert.services.reverter import Reverter

logger = logging.getLogger(__name__)

_FILE_ACTIONS = {
    FileChangeType.ADDED: "add",
    FileChangeType.MODIFIED: "modify",
    FileChangeType.DELETED: "delete",
}


class HistoryService:
    """Service for browsing, diffing and reverting the mirrored history.

    Reverts run under the exclusive maintenance lock; reads share it, so they
    never observe a revert half way.
    """

    STATUS_MESSAGES: dict[RevertStatus, str] = {
        RevertStatus.OK: "The change was reverted.",
        RevertStatus.MERGE_CONFLICT: "Error: Overwritten changes can not be reverted.",
        RevertStatus.NOTHING_TO_COMMIT: (
            "There was nothing to commit. "
            "Current state is the same as the one you want rollback to."
        ),
        RevertStatus.VIOLATED_REFERENTIAL_INTEGRITY: (
            "Error: Objects with missing references cannot be restored. "
            "For example we cannot restore comment where the related post was deleted."
        ),
    }

    def __init__(
        self,
        git_service: GitService,
        paginator: GitLogPaginator,
        reverter: Reverter,
        matcher: ChangeInfoMatcher,
        storage: EntityStorage,
        maintenance_lock: MaintenanceLock,
    ) -> None:
        """
        Initialize HistoryService.

        Args:
            git_service: Service for diffs and commit-order queries
            paginator: Paginator over the commit log
            reverter: Reverter performing undo and rollback
            matcher: Decoder of commit messages
            storage: Mapping between entities and repository files
            maintenance_lock: Lock separating reverts from reads
        """
        self._git_service = git_service
        self._paginator = paginator
        self._reverter = reverter
        self._matcher = matcher
        self._storage = storage
        self._maintenance_lock = maintenance_lock

    def get_commits(self, page: int = 0) -> HistoryPage:
        """
        Get one page of history with revert flags and decoded changes.

        Args:
            page: Zero-based page index, 0 is the newest page

        Returns:
            The page and the navigation steps around it

        Raises:
            NoMoreHistoryError: If the page is past the end of the history
        """
        with self._maintenance_lock.shared():
            commits = self._paginator.get_page(page)
            if not commits:
                raise NoMoreHistoryError(page)

            initial_commit_hash = self._git_service.get_initial_commit_hash()
            eligibilities = compute_eligibility(
                commits,
                initial_commit_hash,
                newest_is_revertible=self._git_service.was_created_after(
                    commits[0].hash, initial_commit_hash
                ),
                is_first_page=page == 0,
            )
            return HistoryPage(
                pages=self._paginator.get_pretty_steps(page),
                commits=tuple(
                    self._summarize(commit, eligibility)
                    for commit, eligibility in zip(commits, eligibilities)
                ),
            )

    def undo(self, commit_hash: str) -> RevertResult:
        with self._maintenance_lock.exclusive(f"undo {commit_hash}"):
            return self._reverter.undo(commit_hash)

    def rollback(self, commit_hash: str) -> RevertResult:
        with self._maintenance_lock.exclusive(f"rollback {commit_hash}"):
            return self._reverter.rollback(commit_hash)

    def can_revert(self) -> bool:
        with self._maintenance_lock.shared():
            return self._reverter.can_revert()

    def get_diff(self, commit_hash: str) -> CommitDiff:
        with self._maintenance_lock.shared():
            return self._git_service.get_diff(commit_hash)

    def was_created_after(self, commit_hash: str, after_commit_hash: str) -> bool:
        with self._maintenance_lock.shared():
            return self._git_service.was_created_after(commit_hash, after_commit_hash)

    def should_update(self, latest_commit_hash: str) -> bool:
        with self._maintenance_lock.shared():
            return self._git_service.should_update(latest_commit_hash)

    @classmethod
    def status_message(cls, status: RevertStatus) -> str:
        return cls.STATUS_MESSAGES[status]

    def _summarize(self, commit: Commit, eligibility: CommitEligibility) -> CommitSummary:
        change_info = self._matcher.build_change_info(commit.message)
        return CommitSummary(
            hash=commit.hash,
            date=commit.date.isoformat(),
            message=describe(change_info),
            can_undo=eligibility.can_undo,
            can_rollback=eligibility.can_rollback,
            is_enabled=eligibility.is_enabled,
            is_initial=eligibility.is_initial,
            changes=tuple(
                [to_change_payload(change) for change in list_changes(change_info)]
                + self._file_changes(commit)
            ),
        )

    def _file_changes(self, commit: Commit) -> list[dict[str, Any]]:
        # Mirrored entities are already described by the decoded changes.
        return [
            {
                "type": "file",
                "action": _FILE_ACTIONS[file_change.change_type],
                "name": file_change.file_path,
            }
            for file_change in commit.file_changes
            if not self._storage.is_mirrored_path(file_change.file_path)
        ]
