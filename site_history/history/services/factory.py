"""Factory wiring the history engine from settings."""

import logging

from site_history.changeinfo.services.matcher import ChangeInfoMatcher
from site_history.config.settings import HistorySettings, load_settings
from site_history.dataset.domain.value_objects import WORDPRESS_SCHEMA, DatasetSchema
from site_history.dataset.repositories.implementations import IniEntityStorage
from site_history.dataset.services.integrity_service import ReferentialIntegrityChecker
from site_history.git.domain.value_objects import DiffSizeConfig
from site_history.git.repositories.implementations import GitRepositoryImpl
from site_history.git.services.git_service import GitService
from site_history.git.services.paginator import GitLogPaginator
from site_history.history.services.history_service import HistoryService
from site_history.revert.services.maintenance_lock import MaintenanceLock
from site_history.revert.services.reverter import Reverter

logger = logging.getLogger(__name__)


def create_history_service(
    settings: HistorySettings | None = None,
    schema: DatasetSchema = WORDPRESS_SCHEMA,
) -> HistoryService:
    """
    Create a history service with all its collaborators.

    Args:
        settings: Optional settings. If not provided, they are loaded from the
                  environment and the .env file.
        schema: Relation rules of the mirrored dataset

    Returns:
        HistoryService instance

    Raises:
        ValueError: If the repository path is not a git repository
    """
    settings = settings or load_settings()

    if not (settings.repo_path / ".git").exists():
        raise ValueError(f"Path is not a git repository: {settings.repo_path}")

    repository = GitRepositoryImpl(
        settings.repo_path,
        author_name=settings.author_name,
        author_email=settings.author_email,
    )
    storage = IniEntityStorage(settings.repo_path, settings.mirror_dir)
    matcher = ChangeInfoMatcher()
    paginator = GitLogPaginator(repository, settings.commits_per_page)
    reverter = Reverter(repository, storage, ReferentialIntegrityChecker(schema))
    git_service = GitService(
        repository,
        DiffSizeConfig(max_diff_size=settings.max_diff_size),
        activation_file=settings.resolved_activation_file,
    )
    logger.debug(f"History service created for {settings.repo_path}")
    return HistoryService(
        git_service=git_service,
        paginator=paginator,
        reverter=reverter,
        matcher=matcher,
        storage=storage,
        maintenance_lock=MaintenanceLock(settings.resolved_lock_file),
    )
