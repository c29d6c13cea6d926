"""Tests for the git diff source against real throwaway repositories."""

import shutil
import subprocess
from pathlib import Path

import pytest

from git_explain.exceptions import RepositoryError
from git_explain.git import (
    get_contributor_stats,
    get_file_diffs,
    get_full_diff,
    has_commits,
    list_contributors,
    open_repository,
)

pytestmark = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")


def git(repo: Path, *args: str, author: str = "Ada Lovelace") -> None:
    email = author.split()[0].lower() + "@example.com"
    subprocess.run(
        [
            "git",
            "-c",
            f"user.name={author}",
            "-c",
            f"user.email={email}",
            "-c",
            "commit.gpgsign=false",
            *args,
        ],
        cwd=repo,
        check=True,
        capture_output=True,
    )


@pytest.fixture
def repo_dir(tmp_path: Path) -> Path:
    path = tmp_path / "repo"
    path.mkdir()
    git(path, "init", "-q")
    return path


@pytest.fixture
def committed_repo(repo_dir: Path) -> Path:
    (repo_dir / "a.txt").write_text("one\n")
    (repo_dir / "b.txt").write_text("two\n")
    git(repo_dir, "add", ".")
    git(repo_dir, "commit", "-q", "-m", "Initial commit")
    return repo_dir


class TestOpenRepository:
    def test_opens_repository_root(self, committed_repo: Path):
        repo = open_repository(str(committed_repo))
        assert repo.root == committed_repo.resolve()

    def test_subdirectory_resolves_to_root(self, committed_repo: Path):
        sub = committed_repo / "sub"
        sub.mkdir()
        assert open_repository(str(sub)).root == committed_repo.resolve()

    def test_idempotent(self, committed_repo: Path):
        assert open_repository(str(committed_repo)) == open_repository(str(committed_repo))

    def test_missing_path(self, tmp_path: Path):
        with pytest.raises(RepositoryError, match="Not a directory"):
            open_repository(str(tmp_path / "missing"))

    def test_not_a_repository(self, tmp_path: Path):
        plain = tmp_path / "plain"
        plain.mkdir()
        with pytest.raises(RepositoryError, match="Not a git repository"):
            open_repository(str(plain))


class TestGetFileDiffs:
    def test_clean_repository_has_no_diffs(self, committed_repo: Path):
        assert get_file_diffs(open_repository(str(committed_repo))) == []

    def test_staged_unstaged_and_untracked(self, committed_repo: Path):
        (committed_repo / "a.txt").write_text("one\nmore\n")
        (committed_repo / "b.txt").write_text("changed\n")
        git(committed_repo, "add", "b.txt")
        (committed_repo / "new.txt").write_text("brand new\n")

        diffs = get_file_diffs(open_repository(str(committed_repo)))

        assert [d.path for d in diffs] == ["a.txt", "b.txt", "new.txt"]
        assert "+more" in diffs[0].diff_text
        assert "+changed" in diffs[1].diff_text
        assert "+brand new" in diffs[2].diff_text

    def test_ignored_files_are_skipped(self, committed_repo: Path):
        (committed_repo / ".gitignore").write_text("*.log\n")
        (committed_repo / "debug.log").write_text("noise\n")

        paths = [d.path for d in get_file_diffs(open_repository(str(committed_repo)))]

        assert paths == [".gitignore"]

    def test_repository_without_commits(self, repo_dir: Path):
        (repo_dir / "first.txt").write_text("hello\n")
        git(repo_dir, "add", "first.txt")
        repo = open_repository(str(repo_dir))

        assert not has_commits(repo)
        diffs = get_file_diffs(repo)
        assert [d.path for d in diffs] == ["first.txt"]
        assert "+hello" in diffs[0].diff_text


class TestGetFullDiff:
    def test_prefers_staged_changes(self, committed_repo: Path):
        (committed_repo / "a.txt").write_text("staged\n")
        git(committed_repo, "add", "a.txt")
        (committed_repo / "b.txt").write_text("unstaged\n")

        diff = get_full_diff(open_repository(str(committed_repo)))

        assert "+staged" in diff
        assert "+unstaged" not in diff

    def test_falls_back_to_all_changes(self, committed_repo: Path):
        (committed_repo / "b.txt").write_text("unstaged\n")
        (committed_repo / "c.txt").write_text("untracked\n")

        diff = get_full_diff(open_repository(str(committed_repo)))

        assert "+unstaged" in diff
        assert "+untracked" in diff


class TestContributors:
    def test_list_and_stats(self, committed_repo: Path):
        (committed_repo / "c.txt").write_text("x\ny\n")
        git(committed_repo, "add", "c.txt")
        git(committed_repo, "commit", "-q", "-m", "Add c", author="Grace Hopper")
        (committed_repo / "a.txt").write_text("one\nthree\n")
        git(committed_repo, "commit", "-q", "-am", "Extend a")

        repo = open_repository(str(committed_repo))
        assert list_contributors(repo) == ["Ada Lovelace", "Grace Hopper"]

        stats = get_contributor_stats(repo, "Ada Lovelace")
        assert stats.commits == 2
        assert stats.files_touched == 2
        assert stats.insertions == 3
        assert stats.recent_subjects == ["Extend a", "Initial commit"]
        assert "Commits: 2" in stats.to_text()

    def test_bot_author_with_brackets(self, committed_repo: Path):
        (committed_repo / "b.txt").write_text("bumped\n")
        git(committed_repo, "commit", "-q", "-am", "Bump deps", author="dependabot[bot]")

        repo = open_repository(str(committed_repo))
        bot = [name for name in list_contributors(repo) if name.endswith("[bot]")]

        assert bot == ["dependabot[bot]"]
        stats = get_contributor_stats(repo, bot[0])
        assert stats.commits == 1
        assert stats.recent_subjects == ["Bump deps"]

    def test_unknown_author(self, committed_repo: Path):
        with pytest.raises(RepositoryError, match="No commits found"):
            get_contributor_stats(open_repository(str(committed_repo)), "Nobody Here")

    def test_empty_repository(self, repo_dir: Path):
        repo = open_repository(str(repo_dir))
        assert list_contributors(repo) == []
        with pytest.raises(RepositoryError):
            get_contributor_stats(repo, "Ada")
