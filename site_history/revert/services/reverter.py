"""Undo and rollback of commits in the mirrored history."""

import logging
from collections.abc import Callable, Mapping

from site_history.changeinfo.domain.value_objects import (
    ACTION_TAG,
    RevertChangeInfo,
    describe,
)
from site_history.dataset.domain.value_objects import EntityKey
from site_history.dataset.repositories.interfaces import EntityStorage
from site_history.dataset.services.integrity_service import ReferentialIntegrityChecker
from site_history.git.domain.entities import Commit
from site_history.git.domain.exceptions import LogStoreError
from site_history.git.domain.value_objects import FileContentChange
from site_history.git.repositories.interfaces import GitRepository
from site_history.revert.domain.value_objects import (
    RevertConflict,
    RevertResult,
    RevertState,
    RevertStatus,
)

logger = logging.getLogger(__name__)

_MISSING = object()


class RevertConflictError(Exception):
    """Raised while staging when later commits depend on the reverted change."""

    def __init__(self, conflicts: list[RevertConflict]) -> None:
        super().__init__(", ".join(str(c) for c in conflicts))
        self.conflicts = tuple(conflicts)


class Reverter:
    """Undoes single commits and rolls the site back to earlier commits.

    Both operations go through the same stages: the target content of every
    affected file is computed in memory (staging), the resulting dataset is
    checked for dangling references (validating), and only then the files are
    written and recorded as one new commit (committing). An aborted operation
    leaves the working tree and the history untouched.

    Callers must hold the exclusive maintenance lock for the whole call.
    """

    def __init__(
        self,
        repository: GitRepository,
        storage: EntityStorage,
        integrity_checker: ReferentialIntegrityChecker,
    ) -> None:
        """
        Initialize Reverter.

        Args:
            repository: Repository holding the mirrored history
            storage: Mapping between entities and repository files
            integrity_checker: Validator of proposed dataset states
        """
        self._repository = repository
        self._storage = storage
        self._integrity_checker = integrity_checker
        self._state = RevertState.IDLE

    @property
    def state(self) -> RevertState:
        return self._state

    def can_revert(self) -> bool:
        """Check whether the working tree is clean enough to revert anything."""
        return not self._repository.has_uncommitted_changes()

    def undo(self, commit_hash: str) -> RevertResult:
        """
        Remove the changes of a single commit, keeping every later change.

        An undo whose changes are already absent from HEAD, for example
        because the commit was undone before, has nothing to commit.

        Args:
            commit_hash: Hash of the commit to undo

        Returns:
            Result of the operation

        Raises:
            CommitNotFoundError: If the hash does not resolve to a commit
        """
        commit = self._repository.get_commit(commit_hash)
        return self._revert("undo", commit, lambda: self._stage_undo(commit))

    def rollback(self, commit_hash: str) -> RevertResult:
        """
        Restore the exact state of a commit, recorded as a new commit.

        Args:
            commit_hash: Hash of the commit to roll back to

        Returns:
            Result of the operation

        Raises:
            CommitNotFoundError: If the hash does not resolve to a commit
        """
        commit = self._repository.get_commit(commit_hash)
        return self._revert("rollback", commit, lambda: self._stage_rollback(commit))

    def _revert(
        self,
        action: str,
        commit: Commit,
        stage: Callable[[], list[FileContentChange]],
    ) -> RevertResult:
        if not self.can_revert():
            logger.warning(f"Cannot {action} {commit.short_hash}: uncommitted changes")
            return RevertResult(status=RevertStatus.MERGE_CONFLICT)

        try:
            self._transition(RevertState.STAGING)
            try:
                changes = stage()
            except RevertConflictError as e:
                logger.warning(f"Cannot {action} {commit.short_hash}: conflicts in {e}")
                return RevertResult(status=RevertStatus.MERGE_CONFLICT, conflicts=e.conflicts)

            self._transition(RevertState.VALIDATING)
            live = self._storage.load_snapshot()
            target = live.overlay(self._entity_changes(changes))
            violations = self._integrity_checker.find_violations(target, live)
            if violations:
                logger.warning(
                    f"Cannot {action} {commit.short_hash}: "
                    + "; ".join(str(v) for v in violations)
                )
                return RevertResult(
                    status=RevertStatus.VIOLATED_REFERENTIAL_INTEGRITY,
                    violations=violations,
                )

            changes = [
                change
                for change in changes
                if change.content != self._repository.read_file("HEAD", change.file_path)
            ]
            if not changes:
                logger.info(f"Nothing to commit for {action} of {commit.short_hash}")
                return RevertResult(status=RevertStatus.NOTHING_TO_COMMIT)

            self._transition(RevertState.COMMITTING)
            try:
                new_hash = self._repository.commit_changes(
                    changes, self._revert_message(action, commit)
                )
            except (LogStoreError, OSError) as e:
                logger.warning(f"Cannot {action} {commit.short_hash}: {e}")
                return RevertResult(status=RevertStatus.MERGE_CONFLICT)

            logger.info(f"{action.capitalize()} of {commit.short_hash} recorded as {new_hash[:7]}")
            return RevertResult(status=RevertStatus.OK, commit_hash=new_hash)
        finally:
            self._transition(RevertState.IDLE)

    def _stage_undo(self, commit: Commit) -> list[FileContentChange]:
        changes: list[FileContentChange] = []
        conflicts: list[RevertConflict] = []
        for file_change in commit.file_changes:
            path = file_change.file_path
            before = (
                self._repository.read_file(commit.parent_hash, path)
                if commit.parent_hash
                else None
            )
            after = self._repository.read_file(commit.hash, path)
            current = self._repository.read_file("HEAD", path)

            key = self._storage.key_for_path(path)
            if key is None:
                content = self._invert_file(path, before, after, current, conflicts)
            else:
                content = self._invert_entity(key, path, before, after, current, conflicts)
            changes.append(FileContentChange(file_path=path, content=content))

        if conflicts:
            raise RevertConflictError(conflicts)
        return changes

    def _stage_rollback(self, commit: Commit) -> list[FileContentChange]:
        return [
            FileContentChange(
                file_path=file_change.file_path,
                content=self._repository.read_file(commit.hash, file_change.file_path),
            )
            for file_change in self._repository.list_changes_between(commit.hash, "HEAD")
        ]

    @staticmethod
    def _invert_file(
        path: str,
        before: bytes | None,
        after: bytes | None,
        current: bytes | None,
        conflicts: list[RevertConflict],
    ) -> bytes | None:
        if current == after or current == before:
            return before
        conflicts.append(RevertConflict(file_path=path))
        return current

    def _invert_entity(
        self,
        key: EntityKey,
        path: str,
        before: bytes | None,
        after: bytes | None,
        current: bytes | None,
        conflicts: list[RevertConflict],
    ) -> bytes | None:
        """Invert a commit's change of one entity field by field.

        A field changed by the commit is restored only while it still holds the
        value the commit gave it. A later commit touching the same field is a
        conflict; later changes of other fields are kept.
        """
        try:
            before_fields, after_fields, current_fields = (
                None if content is None else self._parse_entity(key, content)
                for content in (before, after, current)
            )
        except ValueError as e:
            logger.debug(f"Falling back to whole-file undo of {path}: {e}")
            return self._invert_file(path, before, after, current, conflicts)

        if current_fields == after_fields:
            return before
        if current_fields == before_fields:
            return current
        if before_fields is None or after_fields is None or current_fields is None:
            # Created, deleted or removed by the commit or a later one.
            conflicts.append(RevertConflict(file_path=path))
            return current

        merged = dict(current_fields)
        for name in sorted(set(before_fields) | set(after_fields)):
            old = before_fields.get(name, _MISSING)
            new = after_fields.get(name, _MISSING)
            now = current_fields.get(name, _MISSING)
            if old == new or now == old:
                continue
            if now != new:
                conflicts.append(RevertConflict(file_path=path, field=name))
            elif old is _MISSING:
                del merged[name]
            else:
                merged[name] = old
        return self._storage.serialize(key, merged).encode("utf-8")

    def _entity_changes(
        self, changes: list[FileContentChange]
    ) -> list[tuple[EntityKey, Mapping[str, str] | None]]:
        entity_changes = []
        for change in changes:
            key = self._storage.key_for_path(change.file_path)
            if key is None:
                continue
            if change.content is None:
                entity_changes.append((key, None))
                continue
            try:
                fields = self._parse_entity(key, change.content)
            except ValueError as e:
                # Still an existing entity, but none of its references can be read.
                logger.warning(f"Validating {change.file_path} without its references: {e}")
                fields = {}
            entity_changes.append((key, fields))
        return entity_changes

    def _parse_entity(self, key: EntityKey, content: bytes) -> dict[str, str]:
        return self._storage.parse(key, content.decode("utf-8"))

    @staticmethod
    def _revert_message(action: str, commit: Commit) -> str:
        change_info = RevertChangeInfo(action=action, commit_hash=commit.hash)
        return f"{describe(change_info)}\n\n{ACTION_TAG}: versionpress/{action}/{commit.hash}\n"

    def _transition(self, state: RevertState) -> None:
        if state is not self._state:
            logger.debug(f"Reverter {self._state.value} -> {state.value}")
        self._state = state
