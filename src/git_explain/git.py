"""Git integration for git-explain.

This module talks to the git CLI to validate repositories, extract per-file
diffs of the current changes and gather contributor statistics. Every git
invocation goes through ``_run_git`` so error handling and logging stay in
one place.
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from git_explain.exceptions import RepositoryError
from git_explain.models import ContributorStats, FileDiff

logger = logging.getLogger(__name__)

# Hash of the empty tree, used as the diff base before the first commit
EMPTY_TREE = "4b825dc642cb6eb9a060e54bf8d69288fbee4904"

_RECORD_SEP = "\x1e"
_FIELD_SEP = "\x1f"


@dataclass(frozen=True)
class Repository:
    """Read handle on an opened git repository."""

    root: Path

    @property
    def path(self) -> str:
        return str(self.root)


def _run_git(
    args: list[str],
    cwd: Path | str,
    ok_codes: Iterable[int] = (0,),
) -> subprocess.CompletedProcess[str]:
    """Run a git command and return the completed process.

    Raises:
        RepositoryError: If git cannot be executed or exits with a code
            outside ``ok_codes``
    """
    cmd = ["git", *args]
    logger.debug(f"Running git command in {cwd}: {' '.join(cmd)}")
    try:
        completed = subprocess.run(
            cmd,
            cwd=cwd,
            check=False,
            text=True,
            capture_output=True,
            encoding="utf-8",
            errors="replace",
        )
    except OSError as e:
        raise RepositoryError(f"Failed to execute git: {e}") from e

    if completed.returncode not in tuple(ok_codes):
        logger.debug(f"git stderr: {completed.stderr.strip()}")
        raise RepositoryError(
            f"git command failed ({completed.returncode}): {' '.join(cmd)}"
        )

    return completed


def open_repository(path: str) -> Repository:
    """Validate ``path`` and open a read handle on the enclosing repository.

    Idempotent and side-effect free; safe to call on every repository switch.

    Args:
        path: Path to the repository or any directory inside it

    Returns:
        Repository handle rooted at the working tree top level

    Raises:
        RepositoryError: If the path does not exist or is not inside a git
            working tree
    """
    candidate = Path(path).expanduser()
    if not candidate.is_dir():
        raise RepositoryError(f"Not a directory: {candidate}")

    try:
        toplevel = _run_git(["rev-parse", "--show-toplevel"], cwd=candidate)
    except RepositoryError as e:
        raise RepositoryError(f"Not a git repository: {candidate}") from e

    root = Path(toplevel.stdout.strip()).resolve()
    logger.info(f"Opened repository at {root}")
    return Repository(root=root)


def has_commits(repo: Repository) -> bool:
    """Return True if HEAD resolves to a commit."""
    completed = _run_git(
        ["rev-parse", "--verify", "--quiet", "HEAD"], cwd=repo.root, ok_codes=(0, 1)
    )
    return completed.returncode == 0


def _split_nul(output: str) -> list[str]:
    return [item for item in output.split("\0") if item]


def _diff_base(repo: Repository) -> str:
    return "HEAD" if has_commits(repo) else EMPTY_TREE


def _untracked_diff(repo: Repository, path: str) -> str:
    # --no-index exits with 1 when the files differ, which is always the case here
    completed = _run_git(
        ["diff", "--no-color", "--no-index", "--", "/dev/null", path],
        cwd=repo.root,
        ok_codes=(0, 1),
    )
    return completed.stdout


def get_file_diffs(repo: Repository) -> list[FileDiff]:
    """Return one FileDiff per changed file in the working tree.

    Staged and unstaged changes to tracked files are diffed against HEAD
    (against the empty tree before the first commit). Untracked files that
    are not ignored are reported as whole-file additions after the tracked
    ones. An empty list means the working tree is clean.

    Raises:
        RepositoryError: If any git command fails
    """
    base = _diff_base(repo)

    tracked = _split_nul(
        _run_git(["diff", "--name-only", "-z", base], cwd=repo.root).stdout
    )
    untracked = _split_nul(
        _run_git(
            ["ls-files", "--others", "--exclude-standard", "-z"], cwd=repo.root
        ).stdout
    )

    diffs: list[FileDiff] = []
    seen: set[str] = set()

    for path in tracked:
        if path in seen:
            continue
        seen.add(path)
        text = _run_git(["diff", "--no-color", base, "--", path], cwd=repo.root).stdout
        if text.strip():
            diffs.append(FileDiff(path=path, diff_text=text))

    for path in untracked:
        if path in seen:
            continue
        seen.add(path)
        text = _untracked_diff(repo, path)
        if text.strip():
            diffs.append(FileDiff(path=path, diff_text=text))

    logger.info(f"Found {len(diffs)} changed files in {repo.root}")
    return diffs


def get_full_diff(repo: Repository) -> str:
    """Return the diff a commit message should describe.

    The staged diff when anything is staged, otherwise every current change
    including untracked files.
    """
    if has_commits(repo):
        staged = _run_git(["diff", "--no-color", "--cached"], cwd=repo.root).stdout
    else:
        staged = _run_git(
            ["diff", "--no-color", "--cached", EMPTY_TREE], cwd=repo.root
        ).stdout
    if staged.strip():
        return staged

    return "".join(diff.diff_text for diff in get_file_diffs(repo))


def list_contributors(repo: Repository) -> list[str]:
    """Return contributor names ordered by number of commits, most first."""
    if not has_commits(repo):
        return []

    output = _run_git(["shortlog", "-sn", "--no-merges", "HEAD"], cwd=repo.root).stdout
    contributors = []
    for line in output.splitlines():
        count, _, name = line.strip().partition("\t")
        if name and count.isdigit():
            contributors.append(name.strip())
    return contributors


def get_contributor_stats(
    repo: Repository, author: str, max_subjects: int = 10
) -> ContributorStats:
    """Collect commit statistics for ``author``.

    Args:
        repo: Repository to inspect
        author: Author name or email pattern, as accepted by ``git log --author``
        max_subjects: Number of most recent commit subjects to include

    Raises:
        RepositoryError: If git fails or the author has no commits
    """
    if not has_commits(repo):
        raise RepositoryError("Repository has no commits yet")

    output = _run_git(
        [
            "log",
            "--fixed-strings",
            f"--author={author}",
            "--no-merges",
            "--date=short",
            f"--pretty=format:{_RECORD_SEP}%ad{_FIELD_SEP}%s",
            "--numstat",
            "HEAD",
        ],
        cwd=repo.root,
    ).stdout

    stats = ContributorStats(author=author)
    files: set[str] = set()
    dates: list[str] = []
    subjects: list[str] = []

    for record in output.split(_RECORD_SEP):
        if not record.strip():
            continue
        header, *numstat = record.split("\n")
        date, _, subject = header.partition(_FIELD_SEP)
        dates.append(date)
        subjects.append(subject)

        for line in numstat:
            parts = line.split("\t")
            if len(parts) != 3:
                continue
            added, deleted, path = parts
            # Binary files report "-" for both counts
            if added.isdigit():
                stats.insertions += int(added)
            if deleted.isdigit():
                stats.deletions += int(deleted)
            files.add(path)

    if not dates:
        raise RepositoryError(f"No commits found for author '{author}'")

    stats.commits = len(dates)
    stats.files_touched = len(files)
    # git log lists newest first
    stats.last_commit = dates[0]
    stats.first_commit = dates[-1]
    stats.recent_subjects = subjects[:max_subjects]

    logger.info(f"Collected stats for {author}: {stats.commits} commits")
    return stats
