"""Exceptions raised by the log store and history readers."""


class LogStoreError(RuntimeError):
    """The underlying git repository failed or is corrupted."""


class CommitNotFoundError(LogStoreError):
    """A commit hash does not resolve to a commit in the repository."""

    def __init__(self, commit_hash: str) -> None:
        super().__init__(f"Commit {commit_hash} not found")
        self.commit_hash = commit_hash


class PayloadTooLargeError(ValueError):
    """A diff exceeds the configured size limit."""

    def __init__(self, commit_hash: str, size_limit: int) -> None:
        super().__init__(
            f"The diff of {commit_hash} is larger than {size_limit} bytes. "
            "Please use a git client to inspect it."
        )
        self.commit_hash = commit_hash
        self.size_limit = size_limit


class NoMoreHistoryError(LookupError):
    """A history page past the end of the log was requested."""

    def __init__(self, page: int) -> None:
        super().__init__("No more commits to show.")
        self.page = page
