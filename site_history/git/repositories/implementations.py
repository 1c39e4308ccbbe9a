"""Concrete implementation of Git repository operations."""

import logging
import subprocess
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path

from site_history.git.domain.entities import Commit
from site_history.git.domain.exceptions import (
    CommitNotFoundError,
    LogStoreError,
    PayloadTooLargeError,
)
from site_history.git.domain.value_objects import (
    CommitDiff,
    FileChange,
    FileChangeType,
    FileContentChange,
)
from site_history.git.repositories.interfaces import GitRepository

logger = logging.getLogger(__name__)

# Record and field separators for `git log --format`; commit bodies are multi-line.
_RECORD_SEPARATOR = "\x1e"
_FIELD_SEPARATOR = "\x1f"
_LOG_FORMAT = "--format=%x1e%H%x1f%P%x1f%an%x1f%aI%x1f%B%x1f"

_DIFF_CHUNK_SIZE = 8192


class GitRepositoryImpl(GitRepository):
    """Concrete implementation of Git repository operations using git commands."""

    def __init__(
        self,
        repo_path: Path,
        author_name: str | None = None,
        author_email: str | None = None,
    ) -> None:
        """
        Initialize GitRepositoryImpl.

        Args:
            repo_path: Path to the git repository
            author_name: Optional author name for commits created by reverts
            author_email: Optional author email for commits created by reverts
        """
        self._repo_path = Path(repo_path)
        self._author_name = author_name
        self._author_email = author_email

    def get_head(self) -> str | None:
        result = self._run(["rev-parse", "--verify", "-q", "HEAD"], check=False)
        if result.returncode != 0:
            return None
        return result.stdout.strip()

    def count_commits(self) -> int:
        if self.get_head() is None:
            return 0
        result = self._run(["rev-list", "--count", "HEAD"])
        return int(result.stdout.strip())

    def list_commits(self, skip: int, limit: int) -> tuple[Commit, ...]:
        if limit <= 0 or self.get_head() is None:
            return ()
        result = self._run(
            [
                "log",
                "--no-renames",
                "--name-status",
                _LOG_FORMAT,
                f"--skip={skip}",
                f"--max-count={limit}",
                "HEAD",
            ]
        )
        return self._parse_log(result.stdout)

    def get_commit(self, commit_hash: str) -> Commit:
        full_hash = self._resolve_commit(commit_hash)
        result = self._run(
            ["log", "--no-renames", "--name-status", _LOG_FORMAT, "--max-count=1", full_hash]
        )
        commits = self._parse_log(result.stdout)
        if not commits:
            raise CommitNotFoundError(commit_hash)
        return commits[0]

    def get_initial_commit(self) -> Commit:
        if self.get_head() is None:
            raise LogStoreError("The repository has no commits")
        result = self._run(["rev-list", "--max-parents=0", "HEAD"])
        root_hashes = result.stdout.split()
        return self.get_commit(root_hashes[-1])

    def get_child_commit(self, commit_hash: str) -> str | None:
        full_hash = self._resolve_commit(commit_hash)
        result = self._run(
            ["rev-list", "--reverse", "--ancestry-path", f"{full_hash}..HEAD"]
        )
        children = result.stdout.split()
        return children[0] if children else None

    def was_created_after(self, commit_hash: str, after_commit_hash: str) -> bool:
        full_hash = self._resolve_commit(commit_hash)
        after_hash = self._resolve_commit(after_commit_hash)
        if full_hash == after_hash:
            return False
        result = self._run(
            ["merge-base", "--is-ancestor", after_hash, full_hash], check=False
        )
        if result.returncode not in (0, 1):
            raise LogStoreError(
                f"Failed to compare {commit_hash} and {after_commit_hash}: "
                f"{result.stderr.strip()}"
            )
        return result.returncode == 0

    def list_changes_between(self, commit_a: str, commit_b: str) -> tuple[FileChange, ...]:
        hash_a = self._resolve_commit(commit_a)
        hash_b = self._resolve_commit(commit_b)
        result = self._run(["diff", "--no-renames", "--name-status", hash_a, hash_b])
        return self._parse_name_status(result.stdout)

    def read_file(self, revision: str, file_path: str) -> bytes | None:
        # Blobs may be binary (uploads, plugin assets), so they stay undecoded.
        result = subprocess.run(
            ["git", "cat-file", "blob", f"{revision}:{file_path}"],
            cwd=self._repo_path,
            capture_output=True,
            check=False,
        )
        if result.returncode != 0:
            return None
        return result.stdout

    def get_commit_diff(self, commit_hash: str, max_size: int) -> CommitDiff:
        full_hash = self._resolve_commit(commit_hash)
        command = ["git", "show", "--format=", "--no-color", "--no-renames", full_hash]
        logger.debug(f"Running {' '.join(command)}")

        # The diff is read in chunks so oversized output is never held in memory.
        chunks: list[bytes] = []
        size = 0
        with subprocess.Popen(
            command,
            cwd=self._repo_path,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
        ) as process:
            assert process.stdout is not None
            while chunk := process.stdout.read(_DIFF_CHUNK_SIZE):
                size += len(chunk)
                if size > max_size:
                    process.kill()
                    raise PayloadTooLargeError(full_hash, max_size)
                chunks.append(chunk)
            returncode = process.wait()

        if returncode != 0:
            raise LogStoreError(f"Failed to get commit diff for {commit_hash}")
        return CommitDiff(
            commit_hash=full_hash,
            diff_content=b"".join(chunks).decode("utf-8", errors="replace"),
        )

    def has_uncommitted_changes(self) -> bool:
        result = self._run(["status", "--porcelain", "--untracked-files=all"])
        return bool(result.stdout.strip())

    def commit_changes(self, changes: Sequence[FileContentChange], message: str) -> str:
        file_paths = [change.file_path for change in changes]
        try:
            for change in changes:
                self._write_working_file(change)
            self._run(["add", "--all", "--", *file_paths])
            self._run([*self._author_options(), "commit", "--quiet", "--file=-"], input=message)
        except (LogStoreError, OSError):
            logger.warning("Commit failed, restoring working tree to HEAD")
            self.discard_changes(file_paths)
            raise

        head = self.get_head()
        if head is None:
            raise LogStoreError("HEAD is missing after commit")
        return head

    def discard_changes(self, file_paths: Sequence[str] = ()) -> None:
        if self.get_head() is not None:
            self._run(["reset", "--quiet", "--hard", "HEAD"])
        if file_paths:
            self._run(["clean", "--force", "--quiet", "--", *file_paths])

    def _write_working_file(self, change: FileContentChange) -> None:
        path = self._repo_path / change.file_path
        if change.content is None:
            path.unlink(missing_ok=True)
            return
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(change.content)

    def _author_options(self) -> list[str]:
        options: list[str] = []
        if self._author_name:
            options += ["-c", f"user.name={self._author_name}"]
        if self._author_email:
            options += ["-c", f"user.email={self._author_email}"]
        return options

    def _resolve_commit(self, commit_hash: str) -> str:
        if not commit_hash or commit_hash.startswith("-"):
            raise CommitNotFoundError(commit_hash)
        result = self._run(
            ["rev-parse", "--verify", "-q", f"{commit_hash}^{{commit}}"], check=False
        )
        if result.returncode != 0:
            raise CommitNotFoundError(commit_hash)
        return result.stdout.strip()

    def _run(
        self, args: list[str], check: bool = True, input: str | None = None
    ) -> subprocess.CompletedProcess[str]:
        command = ["git", "-c", "core.quotepath=false", *args]
        logger.debug(f"Running {' '.join(command)}")
        try:
            return subprocess.run(
                command,
                cwd=self._repo_path,
                capture_output=True,
                text=True,
                encoding="utf-8",
                input=input,
                check=check,
            )
        except subprocess.CalledProcessError as e:
            raise LogStoreError(
                f"git {args[0]} failed: {e.stderr.strip() if e.stderr else str(e)}"
            ) from e
        except FileNotFoundError as e:
            raise LogStoreError(f"Repository path or git executable not found: {e}") from e

    @classmethod
    def _parse_log(cls, output: str) -> tuple[Commit, ...]:
        commits: list[Commit] = []
        for record in output.split(_RECORD_SEPARATOR):
            if not record.strip():
                continue
            parts = record.split(_FIELD_SEPARATOR, 5)
            if len(parts) != 6:
                raise LogStoreError(f"Invalid commit format: {record[:80]!r}")

            commit_hash, parents, author, date_str, message, name_status = parts
            parent_hashes = parents.split()
            commits.append(
                Commit(
                    hash=commit_hash,
                    author=author,
                    date=datetime.fromisoformat(date_str),
                    message=message.strip(),
                    parent_hash=parent_hashes[0] if parent_hashes else None,
                    file_changes=cls._parse_name_status(name_status),
                )
            )
        return tuple(commits)

    @classmethod
    def _parse_name_status(cls, output: str) -> tuple[FileChange, ...]:
        file_changes: list[FileChange] = []
        for line in output.strip().split("\n"):
            if not line:
                continue
            parts = line.split("\t")
            if len(parts) == 2:
                status, file_path = parts
                file_changes.append(
                    FileChange(
                        file_path=file_path,
                        change_type=cls._parse_status_to_change_type(status),
                    )
                )
        return tuple(file_changes)

    @staticmethod
    def _parse_status_to_change_type(status: str) -> FileChangeType:
        """Parse git status code to FileChangeType."""
        status_code = status[0] if status else ""
        match status_code:
            case "A":
                return FileChangeType.ADDED
            case "D":
                return FileChangeType.DELETED
            case _:
                return FileChangeType.MODIFIED
