"""Tests for GitRepositoryImpl and GitService against real git repositories."""

import pytest

from site_history.git.domain.exceptions import (
    CommitNotFoundError,
    LogStoreError,
    PayloadTooLargeError,
)
from site_history.git.domain.value_objects import (
    DiffSizeConfig,
    FileChange,
    FileChangeType,
    FileContentChange,
)
from site_history.git.repositories.implementations import GitRepositoryImpl
from site_history.git.services.git_service import GitService


@pytest.fixture
def repository(site_repo) -> GitRepositoryImpl:
    return GitRepositoryImpl(site_repo.path)


class TestReadingHistory:
    def test_commit_carries_message_and_file_changes(self, site_repo, repository):
        site_repo.write_file("a.txt", "one\n")
        site_repo.write_file("b.txt", "two\n")
        first = site_repo.commit("First")
        site_repo.write_file("a.txt", "changed\n")
        (site_repo.path / "b.txt").unlink()
        site_repo.write_file("c.txt", "three\n")
        second = site_repo.commit("Second\n\nVP-Action: post/edit/ABC\nVP-Post-Title: Hi")

        commit = repository.get_commit(second)

        assert commit.hash == second
        assert commit.parent_hash == first
        assert commit.author == "Test"
        assert commit.message == "Second\n\nVP-Action: post/edit/ABC\nVP-Post-Title: Hi"
        assert commit.date.tzinfo is not None
        assert set(commit.file_changes) == {
            FileChange("a.txt", FileChangeType.MODIFIED),
            FileChange("b.txt", FileChangeType.DELETED),
            FileChange("c.txt", FileChangeType.ADDED),
        }

    def test_root_commit_lists_added_files(self, site_repo, repository):
        site_repo.write_file("a.txt", "one\n")
        root = site_repo.commit("Root")

        commit = repository.get_commit(root)

        assert commit.parent_hash is None
        assert commit.file_changes == (FileChange("a.txt", FileChangeType.ADDED),)
        assert repository.get_initial_commit().hash == root

    def test_unknown_commit(self, site_repo, repository):
        site_repo.commit("Root")

        with pytest.raises(CommitNotFoundError):
            repository.get_commit("0" * 40)
        with pytest.raises(CommitNotFoundError):
            repository.get_commit("--all")

    def test_commit_order_queries(self, site_repo, repository):
        c0 = site_repo.commit("c0")
        c1 = site_repo.commit("c1")
        c2 = site_repo.commit("c2")

        assert repository.was_created_after(c2, c0)
        assert not repository.was_created_after(c0, c2)
        assert not repository.was_created_after(c1, c1)
        assert repository.get_child_commit(c0) == c1
        assert repository.get_child_commit(c2) is None
        assert repository.count_commits() == 3

    def test_read_file_at_revision(self, site_repo, repository):
        site_repo.write_file("a.txt", "one\r\nwindows line\n")
        first = site_repo.commit("First")
        (site_repo.path / "a.txt").unlink()
        site_repo.commit("Second")

        assert repository.read_file(first, "a.txt") == b"one\r\nwindows line\n"
        assert repository.read_file("HEAD", "a.txt") is None

    def test_changes_between_commits(self, site_repo, repository):
        site_repo.write_file("a.txt", "one\n")
        first = site_repo.commit("First")
        site_repo.write_file("b.txt", "two\n")
        site_repo.commit("Second")

        assert repository.list_changes_between(first, "HEAD") == (
            FileChange("b.txt", FileChangeType.ADDED),
        )


class TestWritingHistory:
    def test_commit_changes_records_one_commit(self, site_repo, repository):
        site_repo.write_file("a.txt", "one\n")
        site_repo.commit("First")

        new_hash = repository.commit_changes(
            [
                FileContentChange("a.txt", None),
                FileContentChange("dir/b.txt", b"two\n"),
            ],
            "Reverted change\n\nVP-Action: versionpress/undo/abc",
        )

        assert site_repo.head() == new_hash
        assert site_repo.count_commits() == 2
        assert not (site_repo.path / "a.txt").exists()
        assert (site_repo.path / "dir/b.txt").read_text() == "two\n"
        assert not repository.has_uncommitted_changes()

    def test_binary_content_is_kept_byte_for_byte(self, site_repo, repository):
        site_repo.commit("First")
        image = b"\x89PNG\r\n\x1a\n\x00\xff\xfe"

        new_hash = repository.commit_changes(
            [FileContentChange("wp-content/uploads/a.png", image)], "Upload"
        )

        assert (site_repo.path / "wp-content/uploads/a.png").read_bytes() == image
        assert repository.read_file(new_hash, "wp-content/uploads/a.png") == image

    def test_failed_commit_restores_working_tree(self, site_repo, repository):
        site_repo.write_file("a.txt", "one\n")
        head = site_repo.commit("First")

        # Nothing differs from HEAD, so git refuses to commit.
        with pytest.raises(LogStoreError):
            repository.commit_changes([FileContentChange("a.txt", b"one\n")], "No-op")

        assert site_repo.head() == head
        assert not repository.has_uncommitted_changes()

    def test_untracked_files_count_as_uncommitted(self, site_repo, repository):
        site_repo.commit("First")
        assert not repository.has_uncommitted_changes()

        site_repo.write_file("new.txt", "x")

        assert repository.has_uncommitted_changes()


class TestDiff:
    def test_diff_of_small_commit(self, site_repo):
        site_repo.write_file("a.txt", "hello\n")
        commit_hash = site_repo.commit("First")
        service = GitService(GitRepositoryImpl(site_repo.path))

        diff = service.get_diff(commit_hash)

        assert diff.commit_hash == commit_hash
        assert "+hello" in diff.diff_content

    def test_diff_above_limit_is_rejected(self, site_repo):
        site_repo.write_file("big.txt", "line\n" * 12000)
        commit_hash = site_repo.commit("Big")
        service = GitService(GitRepositoryImpl(site_repo.path), DiffSizeConfig())

        with pytest.raises(PayloadTooLargeError) as excinfo:
            service.get_diff(commit_hash)

        assert excinfo.value.size_limit == 50 * 1024

    def test_limit_is_configurable(self, site_repo):
        site_repo.write_file("a.txt", "hello\n" * 20)
        commit_hash = site_repo.commit("First")
        repository = GitRepositoryImpl(site_repo.path)

        with pytest.raises(PayloadTooLargeError):
            GitService(repository, DiffSizeConfig(max_diff_size=50)).get_diff(commit_hash)
        assert GitService(repository).get_diff(commit_hash).diff_content


class TestInitialCommit:
    def test_without_activation_file_root_commit_is_initial(self, site_repo, tmp_path):
        root = site_repo.commit("Root")
        site_repo.commit("Next")
        service = GitService(
            GitRepositoryImpl(site_repo.path), activation_file=tmp_path / "missing"
        )

        assert service.get_initial_commit_hash() == root

    def test_activation_file_marks_pre_activation_commit(self, site_repo, tmp_path):
        pre_activation = site_repo.commit("Before tracking")
        activation = site_repo.commit("VP-Action: versionpress/activate")
        site_repo.commit("After")
        activation_file = tmp_path / ".active"
        activation_file.write_text(pre_activation + "\n")
        service = GitService(GitRepositoryImpl(site_repo.path), activation_file=activation_file)

        assert service.get_initial_commit_hash() == activation

    def test_should_update(self, site_repo):
        old = site_repo.commit("Old")
        service = GitService(GitRepositoryImpl(site_repo.path))

        assert not service.should_update(old)
        site_repo.commit("New")
        assert service.should_update(old)
