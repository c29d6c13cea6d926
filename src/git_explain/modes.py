"""Analysis modes offered by the interactive session.

Each mode gathers its input from the repository, calls exactly one of the
Session's analysis operations and renders the result itself.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn

from git_explain.git import (
    Repository,
    get_contributor_stats,
    get_full_diff,
    list_contributors,
)
from git_explain.models import FileAnalysis
from git_explain.progress import ProgressEvent, ProgressEventType
from git_explain.session import Session
from git_explain.ui import Prompter

logger = logging.getLogger(__name__)


class Mode(ABC):
    """One analysis action the operator can pick."""

    label: str = ""

    @abstractmethod
    async def execute(
        self,
        session: Session,
        repo: Repository,
        prompter: Prompter,
        console: Console,
    ) -> None:
        """Run the mode against the current session.

        Raises:
            GenerationError: If the backend call fails
            PipelineError: If the change analysis pipeline fails
            RepositoryError: If git cannot provide the input
            InputCancelled: If the operator aborts a prompt
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(label='{self.label}')>"


def render_analyses(analyses: list[FileAnalysis], console: Console) -> None:
    """Print one panel per analyzed file, in order."""
    for analysis in analyses:
        console.print(
            Panel(
                Markdown(analysis.explanation),
                title=f"[bold]{analysis.path}[/bold]",
                title_align="left",
                border_style="cyan",
            )
        )


class CommitMessageMode(Mode):
    """Write a commit message for the current changes."""

    label = "📝 Write a commit message"

    async def execute(
        self,
        session: Session,
        repo: Repository,
        prompter: Prompter,
        console: Console,
    ) -> None:
        diff = get_full_diff(repo)
        if not diff.strip():
            console.print("[yellow]No changes to describe.[/yellow]")
            return

        with console.status(f"Asking {session.backend.name} for a commit message..."):
            message = await session.generate_commit_message(diff)

        console.print(Panel(message, title="Suggested commit message", border_style="green"))


class ExplainChangesMode(Mode):
    """Explain every changed file."""

    label = "🔍 Explain all changes"

    async def execute(
        self,
        session: Session,
        repo: Repository,
        prompter: Prompter,
        console: Console,
    ) -> None:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("{task.completed}/{task.total}"),
            console=console,
            transient=True,
        ) as progress:
            task = progress.add_task("Reading changes...", total=None)

            def on_progress(event: ProgressEvent) -> None:
                if event.event_type == ProgressEventType.STARTED:
                    progress.update(task, description=event.message, total=event.total)
                elif event.current is not None:
                    progress.update(task, completed=event.current)

            analyses = await session.analyze_changes(repo, progress_callback=on_progress)

        if not analyses:
            console.print("[yellow]No changes to explain.[/yellow]")
            return

        render_analyses(analyses, console)


class ContributorMode(Mode):
    """Summarize one contributor's activity."""

    label = "👤 Summarize a contributor"

    async def execute(
        self,
        session: Session,
        repo: Repository,
        prompter: Prompter,
        console: Console,
    ) -> None:
        contributors = list_contributors(repo)
        if not contributors:
            console.print("[yellow]This repository has no commits yet.[/yellow]")
            return

        options = [*contributors, "Someone else..."]
        choice = prompter.select("Which contributor?", options, default=0)
        if choice == len(contributors):
            author = prompter.ask_text("Author name or email").strip()
            while not author:
                console.print("[yellow]Please enter a name or email.[/yellow]")
                author = prompter.ask_text("Author name or email").strip()
        else:
            author = contributors[choice]

        stats = get_contributor_stats(repo, author)
        with console.status(f"Summarizing {escape(author)}..."):
            summary = await session.analyze_contributor(stats.to_text())

        console.print(Panel(Markdown(summary), title=f"[bold]{escape(author)}[/bold]", border_style="magenta"))


def available_modes() -> list[Mode]:
    """Modes in menu order."""
    return [CommitMessageMode(), ExplainChangesMode(), ContributorMode()]
