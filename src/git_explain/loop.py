"""Interactive session loop.

A small state machine that lets the operator pick a repository and a
backend, run analysis modes, and swap either one between runs without
restarting:

    SELECT_REPOSITORY -> SELECT_BACKEND -> READY -> EXECUTING -> POST_ACTION
                                             ^                       |
                                             +-- continue / switch --+

Cancelling a prompt steps back one state; cancelling before a session exists
or at the post-action menu ends the loop.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from enum import Enum
from typing import Protocol

from rich.console import Console
from rich.markup import escape

from git_explain.ai.backends import AnalysisBackend
from git_explain.exceptions import (
    GenerationError,
    InputCancelled,
    PipelineError,
    RepositoryError,
)
from git_explain.git import Repository, open_repository
from git_explain.modes import Mode, available_modes
from git_explain.session import Session
from git_explain.ui import Prompter

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 100

POST_ACTION_OPTIONS = [
    "✨ Do something else",
    "🤖 Switch AI backend",
    "📁 Switch repository",
    "❌ Exit",
]


class LoopState(Enum):
    """States of the interactive session loop."""

    SELECT_REPOSITORY = "select_repository"
    SELECT_BACKEND = "select_backend"
    READY = "ready"
    EXECUTING = "executing"
    POST_ACTION = "post_action"
    TERMINATED = "terminated"


class BackendChoice(Protocol):
    """What the loop needs from a registry entry."""

    @property
    def label(self) -> str: ...

    def build(self) -> AnalysisBackend: ...


class BackendRegistry(Protocol):
    def list_available_backends(self) -> Sequence[BackendChoice]: ...


class InteractiveSessionLoop:
    """Drive a Session from operator input until the operator exits."""

    def __init__(
        self,
        prompter: Prompter,
        registry: BackendRegistry,
        console: Console | None = None,
        modes: list[Mode] | None = None,
        open_repo: Callable[[str], Repository] = open_repository,
        default_path: str = ".",
        default_backend: str | None = None,
        clear_screen: bool = True,
    ) -> None:
        """Initialize the loop.

        Args:
            prompter: Source of operator input
            registry: Lists the backends the operator can choose from
            console: Where messages and results are rendered
            modes: Modes offered in the READY state (all modes by default)
            open_repo: Validates a path and opens the repository
            default_path: Path suggested by the repository prompt
            default_backend: Label or name of the backend preselected in menus
            clear_screen: Clear the terminal between iterations
        """
        self.prompter = prompter
        self.registry = registry
        self.console = console or Console()
        self.modes = modes if modes is not None else available_modes()
        self.open_repo = open_repo
        self.default_path = default_path
        self.default_backend = default_backend
        self.clear_screen = clear_screen

        self.state = LoopState.SELECT_REPOSITORY
        # Most recent states visited, oldest first
        self.history: list[LoopState] = []
        self.session: Session | None = None
        self.repo: Repository | None = None
        self._mode: Mode | None = None

    async def run(self) -> Session | None:
        """Run until the operator exits.

        Returns:
            The last Session, or None if the operator left before one existed
        """
        handlers = {
            LoopState.SELECT_REPOSITORY: self._select_repository,
            LoopState.SELECT_BACKEND: self._select_backend,
            LoopState.READY: self._ready,
            LoopState.EXECUTING: self._execute,
            LoopState.POST_ACTION: self._post_action,
        }

        while self.state != LoopState.TERMINATED:
            self._record(self.state)
            next_state = await handlers[self.state]()
            logger.debug(f"Transition {self.state.value} -> {next_state.value}")
            self.state = next_state

        self._record(self.state)
        return self.session

    def _record(self, state: LoopState) -> None:
        self.history.append(state)
        del self.history[:-HISTORY_LIMIT]

    async def _select_repository(self) -> LoopState:
        while True:
            try:
                path = self.prompter.ask_path(
                    "Path to the git repository", default=self.default_path
                )
            except InputCancelled:
                return LoopState.TERMINATED if self.session is None else LoopState.POST_ACTION

            try:
                repo = self.open_repo(path)
            except RepositoryError as e:
                logger.info(f"Rejected repository path {path}: {e}")
                self.console.print("[red]Invalid git repository path. Please try again.[/red]")
                continue

            self.repo = repo
            self.default_path = repo.path
            if self.session is None:
                return LoopState.SELECT_BACKEND

            self.session = self.session.with_replaced_repository(repo.path)
            return LoopState.READY

    def _default_backend_index(self, choices: Sequence[BackendChoice]) -> int:
        if self.default_backend:
            for index, choice in enumerate(choices):
                names = {choice.label, getattr(choice, "name", None)}
                if self.default_backend in names:
                    return index
        return 0

    async def _select_backend(self) -> LoopState:
        choices = list(self.registry.list_available_backends())
        if not choices:
            self.console.print("[red]No AI backends are available.[/red]")
            return LoopState.TERMINATED if self.session is None else LoopState.POST_ACTION

        try:
            index = self.prompter.select(
                "Select an AI backend",
                [choice.label for choice in choices],
                default=self._default_backend_index(choices),
            )
        except InputCancelled:
            return LoopState.TERMINATED if self.session is None else LoopState.POST_ACTION

        backend = choices[index].build()
        if self.session is None:
            if self.repo is None:
                raise RuntimeError("A repository must be selected before a backend")
            self.session = Session(backend=backend, repository_path=self.repo.path)
        else:
            self.session = self.session.with_replaced_backend(backend)
        return LoopState.READY

    async def _ready(self) -> LoopState:
        try:
            index = self.prompter.select(
                "What would you like to do?", [mode.label for mode in self.modes], default=0
            )
        except InputCancelled:
            return LoopState.POST_ACTION

        self._mode = self.modes[index]
        return LoopState.EXECUTING

    async def _execute(self) -> LoopState:
        session, repo, mode = self.session, self.repo, self._mode
        if session is None or repo is None or mode is None:
            raise RuntimeError("Nothing to execute: no session, repository or mode selected")

        try:
            await mode.execute(session, repo, self.prompter, self.console)
        except InputCancelled:
            self.console.print("[yellow]Cancelled.[/yellow]")
        except (GenerationError, PipelineError, RepositoryError) as e:
            logger.error(f"{mode.label} failed: {e}")
            self.console.print(f"[red]Error: {escape(str(e))}[/red]")
        return LoopState.POST_ACTION

    async def _post_action(self) -> LoopState:
        try:
            choice = self.prompter.select(
                "What would you like to do next?", POST_ACTION_OPTIONS, default=0
            )
        except InputCancelled:
            return LoopState.TERMINATED

        if choice == 3:
            return LoopState.TERMINATED

        if self.clear_screen:
            self.console.clear()

        if choice == 1:
            return LoopState.SELECT_BACKEND
        if choice == 2:
            return LoopState.SELECT_REPOSITORY
        return LoopState.READY
