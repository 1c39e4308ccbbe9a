"""Settings loaded from the environment and an optional .env file."""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "SITE_HISTORY_"


@dataclass(frozen=True)
class HistorySettings:
    """Configuration of the history engine.

    Attributes:
        repo_path: Path to the git repository mirroring the site
        mirror_dir: Directory, relative to repo_path, holding the mirrored entities
        commits_per_page: Page size of browsed history
        max_diff_size: Largest diff, in bytes, returned to callers
        activation_file: File holding the last commit made before tracking started
        lock_file: File used for the maintenance lock
        author_name: Author name of commits recording reverts
        author_email: Author email of commits recording reverts
        log_level: Name of the logging level
    """

    repo_path: Path
    mirror_dir: str = "db"
    commits_per_page: int = 25
    max_diff_size: int = 50 * 1024
    activation_file: Path | None = None
    lock_file: Path | None = None
    author_name: str | None = None
    author_email: str | None = None
    log_level: str = "WARNING"

    @property
    def resolved_activation_file(self) -> Path:
        return self.activation_file or self.repo_path / self.mirror_dir / ".active"

    @property
    def resolved_lock_file(self) -> Path:
        return self.lock_file or self.repo_path / ".git" / "site-history.lock"


def _load_env_file() -> None:
    """Load environment variables from .env file."""
    # Try to find .env file in project root (parent of site_history package)
    project_root = Path(__file__).parent.parent.parent
    env_file = project_root / ".env"
    if env_file.exists():
        load_dotenv(env_file)
    else:
        # Fallback: try current directory
        load_dotenv()


def _get_int(name: str, default: int) -> int:
    value = os.getenv(ENV_PREFIX + name)
    if value is None or value == "":
        return default
    try:
        parsed = int(value)
    except ValueError as e:
        raise ValueError(f"{ENV_PREFIX}{name} must be an integer, got {value!r}") from e
    if parsed <= 0:
        raise ValueError(f"{ENV_PREFIX}{name} must be positive, got {parsed}")
    return parsed


def _get_path(name: str) -> Path | None:
    value = os.getenv(ENV_PREFIX + name)
    return Path(value) if value else None


def load_settings(repo_path: Path | None = None) -> HistorySettings:
    """
    Build settings from environment variables.

    Args:
        repo_path: Optional repository path override. If not provided, uses
                   SITE_HISTORY_REPO_PATH or the current directory.

    Returns:
        The settings

    Raises:
        ValueError: If a numeric setting is not a positive integer
    """
    _load_env_file()

    if repo_path is None:
        repo_path = _get_path("REPO_PATH") or Path(".")

    return HistorySettings(
        repo_path=Path(repo_path),
        mirror_dir=os.getenv(ENV_PREFIX + "MIRROR_DIR") or "db",
        commits_per_page=_get_int("COMMITS_PER_PAGE", 25),
        max_diff_size=_get_int("MAX_DIFF_SIZE", 50 * 1024),
        activation_file=_get_path("ACTIVATION_FILE"),
        lock_file=_get_path("LOCK_FILE"),
        author_name=os.getenv(ENV_PREFIX + "AUTHOR_NAME") or None,
        author_email=os.getenv(ENV_PREFIX + "AUTHOR_EMAIL") or None,
        log_level=(os.getenv(ENV_PREFIX + "LOG_LEVEL") or "WARNING").upper(),
    )
