"""Shared fixtures: throwaway git repositories mirroring a small site."""

import subprocess
from collections.abc import Mapping
from pathlib import Path

import pytest

from site_history.dataset.domain.value_objects import EntityKey
from site_history.dataset.repositories.implementations import IniEntityStorage


def git(repo_path: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args], cwd=repo_path, capture_output=True, text=True, check=True
    )
    return result.stdout.strip()


class SiteRepo:
    """A git repository with helpers to write mirrored entities and commit them."""

    def __init__(self, path: Path, mirror_dir: str = "db") -> None:
        self.path = path
        self.mirror_dir = mirror_dir
        self.storage = IniEntityStorage(path, mirror_dir)

    def write_entity(self, entity_type: str, entity_id: str, fields: Mapping[str, str]) -> None:
        key = EntityKey(entity_type, entity_id)
        self.write_file(self.storage.path_for_key(key), self.storage.serialize(key, fields))

    def delete_entity(self, entity_type: str, entity_id: str) -> None:
        (self.path / self.storage.path_for_key(EntityKey(entity_type, entity_id))).unlink()

    def read_entity(self, entity_type: str, entity_id: str) -> dict[str, str] | None:
        key = EntityKey(entity_type, entity_id)
        file = self.path / self.storage.path_for_key(key)
        if not file.exists():
            return None
        return self.storage.parse(key, file.read_text(encoding="utf-8"))

    def write_file(self, file_path: str, content: str) -> None:
        file = self.path / file_path
        file.parent.mkdir(parents=True, exist_ok=True)
        file.write_text(content, encoding="utf-8")

    def write_bytes(self, file_path: str, content: bytes) -> None:
        file = self.path / file_path
        file.parent.mkdir(parents=True, exist_ok=True)
        file.write_bytes(content)

    def commit(self, message: str) -> str:
        git(self.path, "add", "--all")
        git(self.path, "commit", "--quiet", "--allow-empty", "-m", message)
        return self.head()

    def head(self) -> str:
        return git(self.path, "rev-parse", "HEAD")

    def count_commits(self) -> int:
        return int(git(self.path, "rev-list", "--count", "HEAD"))


@pytest.fixture
def site_repo(tmp_path: Path) -> SiteRepo:
    repo_path = tmp_path / "site"
    repo_path.mkdir()
    git(repo_path, "init", "--quiet")
    git(repo_path, "config", "user.name", "Test")
    git(repo_path, "config", "user.email", "test@test.com")
    git(repo_path, "config", "commit.gpgsign", "false")
    return SiteRepo(repo_path)


def entity_message(
    entity: str, action: str, entity_id: str, tags: Mapping[str, str] | None = None
) -> str:
    """Build a commit message the way the mirroring plugin writes them."""
    lines = [
        f"{action.capitalize()} {entity} {entity_id}",
        "",
        f"VP-Action: {entity}/{action}/{entity_id}",
    ]
    lines += [f"{key}: {value}" for key, value in (tags or {}).items()]
    return "\n".join(lines)
