"""Paginated, lazy access to the commit log."""

import logging
import math
from collections.abc import Iterator

from site_history.git.domain.entities import Commit
from site_history.git.repositories.interfaces import GitRepository

logger = logging.getLogger(__name__)


class GitLogPaginator:
    """Walks the commit log backward from HEAD in fixed-size pages.

    Page 0 holds the commits closest to HEAD. Only the requested page is read
    from the repository, so browsing does not depend on the size of the history.
    """

    DEFAULT_COMMITS_PER_PAGE = 25

    # Pages shown on each side of the current page by get_pretty_steps().
    STEP_RADIUS = 3
    # Number of evenly spaced intervals between the first and the last page.
    STEP_INTERVALS = 4

    def __init__(
        self, repository: GitRepository, commits_per_page: int = DEFAULT_COMMITS_PER_PAGE
    ) -> None:
        """
        Initialize GitLogPaginator.

        Args:
            repository: Repository providing the commit log
            commits_per_page: Number of commits on a single page
        """
        self._repository = repository
        self.set_commits_per_page(commits_per_page)

    @property
    def commits_per_page(self) -> int:
        return self._commits_per_page

    def set_commits_per_page(self, commits_per_page: int) -> None:
        if commits_per_page <= 0:
            raise ValueError("commits_per_page must be positive")
        self._commits_per_page = commits_per_page

    def get_page(self, page: int) -> tuple[Commit, ...]:
        """
        Get the commits of a single page.

        Args:
            page: Zero-based page index, 0 is the newest page

        Returns:
            Commits ordered from newest to oldest; empty when the page is past the end
        """
        if page < 0:
            raise ValueError(f"Page index cannot be negative: {page}")

        skip = page * self._commits_per_page
        if skip >= self._repository.count_commits():
            logger.debug(f"Page {page} is past the end of the history")
            return ()
        return self._repository.list_commits(skip=skip, limit=self._commits_per_page)

    def get_number_of_pages(self) -> int:
        return math.ceil(self._repository.count_commits() / self._commits_per_page)

    def get_pretty_steps(self, current_page: int) -> tuple[int, ...]:
        """
        Get page indices worth offering as navigation steps.

        The result contains the pages around current_page plus a few evenly spaced
        pages between the first and the last one, sorted and without duplicates.

        Args:
            current_page: Zero-based index of the page being displayed

        Returns:
            Sorted tuple of page indices, empty when the history has no commits
        """
        last_page = self.get_number_of_pages() - 1
        if last_page < 0:
            return ()

        steps = set(
            range(
                max(0, current_page - self.STEP_RADIUS),
                min(last_page, current_page + self.STEP_RADIUS) + 1,
            )
        )
        quotient = last_page / self.STEP_INTERVALS
        steps.update(
            math.floor(quotient * i + 0.5) for i in range(self.STEP_INTERVALS + 1)
        )
        return tuple(sorted(steps))

    def iter_commits(self, start_page: int = 0) -> Iterator[Commit]:
        """Yield commits from newest to oldest, loading one page at a time."""
        page = start_page
        while commits := self.get_page(page):
            yield from commits
            page += 1
