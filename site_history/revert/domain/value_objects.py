"""Value objects for revert operations."""

from dataclasses import dataclass
from enum import Enum

from site_history.dataset.domain.value_objects import IntegrityViolation


class RevertStatus(str, Enum):
    """Outcome of an undo or rollback."""

    OK = "ok"
    MERGE_CONFLICT = "merge_conflict"
    NOTHING_TO_COMMIT = "nothing_to_commit"
    VIOLATED_REFERENTIAL_INTEGRITY = "violated_referential_integrity"


class RevertState(str, Enum):
    """Stage a revert operation is in."""

    IDLE = "idle"
    STAGING = "staging"
    VALIDATING = "validating"
    COMMITTING = "committing"


@dataclass(frozen=True)
class RevertConflict:
    """A change that cannot be reverted because a later commit depends on it.

    Attributes:
        file_path: Path of the conflicting file
        field: Conflicting entity field, or None when the whole file conflicts
    """

    file_path: str
    field: str | None = None

    def __str__(self) -> str:
        return self.file_path if self.field is None else f"{self.file_path} [{self.field}]"


@dataclass(frozen=True)
class RevertResult:
    """Result of an undo or rollback.

    Attributes:
        status: Outcome of the operation
        commit_hash: Hash of the commit recording the revert, set only on success
        violations: References that blocked the revert
        conflicts: Changes that blocked the revert
    """

    status: RevertStatus
    commit_hash: str | None = None
    violations: tuple[IntegrityViolation, ...] = ()
    conflicts: tuple[RevertConflict, ...] = ()

    @property
    def ok(self) -> bool:
        return self.status is RevertStatus.OK


@dataclass(frozen=True)
class CommitEligibility:
    """Revert operations offered for a commit in browsed history."""

    commit_hash: str
    can_undo: bool
    can_rollback: bool
    is_enabled: bool
    is_initial: bool
