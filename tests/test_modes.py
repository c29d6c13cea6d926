"""Tests for analysis modes against real throwaway repositories."""

import io
import shutil
import subprocess
from pathlib import Path

import pytest
from rich.console import Console

from git_explain.exceptions import PipelineError
from git_explain.git import list_contributors, open_repository
from git_explain.modes import (
    CommitMessageMode,
    ContributorMode,
    ExplainChangesMode,
    available_modes,
)
from git_explain.session import Session
from tests.fixtures.fake_backends import FakeBackend, ScriptedPrompter

pytestmark = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")


def git(repo: Path, *args: str) -> None:
    subprocess.run(
        [
            "git",
            "-c",
            "user.name=Ada Lovelace",
            "-c",
            "user.email=ada@example.com",
            "-c",
            "commit.gpgsign=false",
            *args,
        ],
        cwd=repo,
        check=True,
        capture_output=True,
    )


@pytest.fixture
def repo_path(tmp_path: Path) -> Path:
    path = tmp_path / "repo"
    path.mkdir()
    git(path, "init", "-q")
    for name, content in [("a.txt", "0\n"), ("b.txt", "0\n"), ("c.txt", "0\n")]:
        (path / name).write_text(content)
    git(path, "add", ".")
    git(path, "commit", "-q", "-m", "Initial commit")
    return path


def console_and_output():
    output = io.StringIO()
    return Console(file=output, width=200), output


def change_all(repo_path: Path) -> None:
    for i, name in enumerate(["a.txt", "b.txt", "c.txt"], 1):
        (repo_path / name).write_text(f"0\n{i}\n")


class TestExplainChangesMode:
    @pytest.mark.asyncio
    async def test_renders_every_file_in_order(self, repo_path: Path):
        change_all(repo_path)
        repo = open_repository(str(repo_path))
        backend = FakeBackend()
        session = Session(backend=backend, repository_path=repo.path)
        console, output = console_and_output()

        await ExplainChangesMode().execute(session, repo, ScriptedPrompter([]), console)

        text = output.getvalue()
        positions = [text.index(name) for name in ["a.txt", "b.txt", "c.txt"]]
        assert positions == sorted(positions)
        assert backend.call_count == 3

    @pytest.mark.asyncio
    async def test_failure_on_one_file_raises_for_that_file(self, repo_path: Path):
        change_all(repo_path)
        repo = open_repository(str(repo_path))

        class FailOnB(FakeBackend):
            async def analyze_file_changes(self, diff):
                if "+2" in diff:
                    self.failures[diff] = "boom"
                return await super().analyze_file_changes(diff)

        backend = FailOnB()
        session = Session(backend=backend, repository_path=repo.path)
        console, _ = console_and_output()

        with pytest.raises(PipelineError) as exc_info:
            await ExplainChangesMode().execute(session, repo, ScriptedPrompter([]), console)

        assert exc_info.value.path == "b.txt"
        assert str(exc_info.value.cause) == "boom"
        assert backend.call_count == 3

    @pytest.mark.asyncio
    async def test_clean_repository(self, repo_path: Path):
        repo = open_repository(str(repo_path))
        backend = FakeBackend()
        console, output = console_and_output()

        await ExplainChangesMode().execute(
            Session(backend=backend, repository_path=repo.path), repo, ScriptedPrompter([]), console
        )

        assert "No changes to explain" in output.getvalue()
        assert backend.call_count == 0


class TestCommitMessageMode:
    @pytest.mark.asyncio
    async def test_uses_full_diff(self, repo_path: Path):
        change_all(repo_path)
        repo = open_repository(str(repo_path))
        backend = FakeBackend()
        console, output = console_and_output()

        await CommitMessageMode().execute(
            Session(backend=backend, repository_path=repo.path), repo, ScriptedPrompter([]), console
        )

        assert [op for op, _ in backend.calls] == ["commit"]
        assert "a.txt" in backend.calls[0][1] and "c.txt" in backend.calls[0][1]
        assert "Suggested commit message" in output.getvalue()

    @pytest.mark.asyncio
    async def test_no_changes(self, repo_path: Path):
        repo = open_repository(str(repo_path))
        backend = FakeBackend()
        console, output = console_and_output()

        await CommitMessageMode().execute(
            Session(backend=backend, repository_path=repo.path), repo, ScriptedPrompter([]), console
        )

        assert "No changes to describe" in output.getvalue()
        assert backend.call_count == 0


class TestContributorMode:
    @pytest.mark.asyncio
    async def test_summarizes_selected_contributor(self, repo_path: Path):
        repo = open_repository(str(repo_path))
        backend = FakeBackend()
        prompter = ScriptedPrompter([0])
        console, output = console_and_output()

        await ContributorMode().execute(
            Session(backend=backend, repository_path=repo.path), repo, prompter, console
        )

        assert prompter.prompts == ["Which contributor?"]
        operation, stats = backend.calls[0]
        assert operation == "contributor"
        assert "Author: Ada Lovelace" in stats
        assert "Commits: 1" in stats
        assert "Ada Lovelace" in output.getvalue()

    @pytest.mark.asyncio
    async def test_someone_else_asks_for_name(self, repo_path: Path):
        repo = open_repository(str(repo_path))
        backend = FakeBackend()
        prompter = ScriptedPrompter([1, "ada@example.com"])
        console, _ = console_and_output()

        await ContributorMode().execute(
            Session(backend=backend, repository_path=repo.path), repo, prompter, console
        )

        assert "Author: ada@example.com" in backend.calls[0][1]


def test_available_modes_cover_each_operation():
    labels = [mode.label for mode in available_modes()]
    assert len(labels) == 3
    assert len(set(labels)) == 3


class TestContributorModeInput:
    @pytest.mark.asyncio
    async def test_blank_name_is_asked_again(self, repo_path: Path):
        repo = open_repository(str(repo_path))
        backend = FakeBackend()
        prompter = ScriptedPrompter([1, "", "   ", "Ada"])
        console, output = console_and_output()

        await ContributorMode().execute(
            Session(backend=backend, repository_path=repo.path), repo, prompter, console
        )

        assert prompter.prompts.count("Author name or email") == 3
        assert output.getvalue().count("Please enter a name or email") == 2
        assert "Author: Ada\n" in backend.calls[0][1]

    @pytest.mark.asyncio
    async def test_bot_contributor_title_keeps_brackets(self, repo_path: Path):
        (repo_path / "a.txt").write_text("bumped\n")
        subprocess.run(
            [
                "git",
                "-c",
                "user.name=dependabot[bot]",
                "-c",
                "user.email=bot@example.com",
                "-c",
                "commit.gpgsign=false",
                "commit",
                "-q",
                "-am",
                "Bump deps",
            ],
            cwd=repo_path,
            check=True,
            capture_output=True,
        )
        repo = open_repository(str(repo_path))
        backend = FakeBackend()
        console, output = console_and_output()

        prompter = ScriptedPrompter([list_contributors(repo).index("dependabot[bot]")])
        await ContributorMode().execute(
            Session(backend=backend, repository_path=repo.path), repo, prompter, console
        )

        assert "Author: dependabot[bot]" in backend.calls[0][1]
        assert "dependabot[bot]" in output.getvalue()
