"""System-wide lock separating reverts from history reads.

Reverts hold the lock exclusively from staging until the commit is recorded or
the operation is aborted; reads share it. The lock is an ``fcntl.flock`` on a
file, so it serializes threads and processes alike. Release happens on every
exit path, including exceptions.
"""

import fcntl
import logging
import os
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

logger = logging.getLogger(__name__)


class MaintenanceLock:
    """Shared/exclusive lock over the mirrored repository."""

    def __init__(self, lock_file: Path) -> None:
        """
        Initialize MaintenanceLock.

        Args:
            lock_file: File used for locking, created when missing
        """
        self.lock_file = Path(lock_file)

    @contextmanager
    def exclusive(self, operation: str = "revert") -> Generator[None, None, None]:
        """Hold the lock exclusively, blocking until no reader or writer holds it."""
        with self._locked(fcntl.LOCK_EX) as lock_f:
            lock_f.seek(0)
            lock_f.truncate()
            lock_f.write(f"{os.getpid()} {operation}\n")
            lock_f.flush()
            logger.info(f"Maintenance started: {operation}")
            try:
                yield
            finally:
                lock_f.seek(0)
                lock_f.truncate()
                lock_f.flush()
                logger.info(f"Maintenance finished: {operation}")

    @contextmanager
    def shared(self) -> Generator[None, None, None]:
        """Hold the lock in shared mode, blocking while a revert is in progress."""
        with self._locked(fcntl.LOCK_SH):
            yield

    def is_locked(self) -> bool:
        """Check, without waiting, whether another holder has the lock exclusively."""
        if not self.lock_file.exists():
            return False
        with open(self.lock_file, "r") as lock_f:
            try:
                fcntl.flock(lock_f.fileno(), fcntl.LOCK_SH | fcntl.LOCK_NB)
            except BlockingIOError:
                return True
            fcntl.flock(lock_f.fileno(), fcntl.LOCK_UN)
            return False

    @contextmanager
    def _locked(self, mode: int) -> Generator:
        self.lock_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.lock_file, "a+") as lock_f:
            try:
                fcntl.flock(lock_f.fileno(), mode)
                logger.debug(f"Acquired lock {self.lock_file} (mode {mode})")
                yield lock_f
            finally:
                fcntl.flock(lock_f.fileno(), fcntl.LOCK_UN)
                logger.debug(f"Released lock {self.lock_file}")
