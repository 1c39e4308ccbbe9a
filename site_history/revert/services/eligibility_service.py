"""Undo and rollback affordances for a page of browsed history."""

from collections.abc import Sequence
from itertools import accumulate

from site_history.git.domain.entities import Commit
from site_history.revert.domain.value_objects import CommitEligibility


def compute_eligibility(
    commits: Sequence[Commit],
    initial_commit_hash: str,
    newest_is_revertible: bool,
    is_first_page: bool,
) -> tuple[CommitEligibility, ...]:
    """
    Derive the revert flags of each commit on a page.

    Undo eligibility is a running conjunction from the newest commit backward:
    reaching the initial commit turns it off for that commit and every older one.

    Args:
        commits: Commits of the page, newest first
        initial_commit_hash: Hash of the first tracked commit
        newest_is_revertible: Whether the newest commit of the page was created
            after the initial commit
        is_first_page: Whether the page starts at HEAD

    Returns:
        Eligibility of each commit, in the order of commits
    """
    undoable = accumulate(
        commits,
        lambda still_undoable, commit: still_undoable and commit.hash != initial_commit_hash,
        initial=newest_is_revertible,
    )
    next(undoable)  # the seed itself

    eligibilities = []
    for index, (commit, can_undo) in enumerate(zip(commits, undoable)):
        is_initial = commit.hash == initial_commit_hash
        is_head = is_first_page and index == 0
        can_rollback = not is_head and (can_undo or is_initial)
        eligibilities.append(
            CommitEligibility(
                commit_hash=commit.hash,
                can_undo=can_undo,
                can_rollback=can_rollback,
                is_enabled=can_undo or can_rollback or is_initial,
                is_initial=is_initial,
            )
        )
    return tuple(eligibilities)
