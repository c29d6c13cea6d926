"""Operator prompts for the interactive session.

The session loop only talks to the ``Prompter`` protocol, so the terminal
implementation here can be swapped for a scripted one in tests.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Protocol

from rich.console import Console
from rich.prompt import IntPrompt, Prompt

from git_explain.exceptions import InputCancelled

logger = logging.getLogger(__name__)


class Prompter(Protocol):
    """Synchronous operator input.

    Every method raises ``InputCancelled`` when the operator aborts.
    """

    def select(self, prompt: str, options: Sequence[str], default: int = 0) -> int:
        """Return the index of the chosen option."""
        ...

    def ask_path(self, prompt: str, default: str = ".") -> str:
        """Return a filesystem path typed by the operator."""
        ...

    def ask_text(self, prompt: str, default: str | None = None) -> str:
        """Return free text typed by the operator."""
        ...


class RichPrompter:
    """Prompter for an interactive terminal, rendered with rich."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def select(self, prompt: str, options: Sequence[str], default: int = 0) -> int:
        if not options:
            raise ValueError("select() needs at least one option")
        default = min(max(default, 0), len(options) - 1)

        self.console.print(f"[bold cyan]{prompt}[/bold cyan]")
        for number, option in enumerate(options, 1):
            marker = "[green]›[/green]" if number - 1 == default else " "
            self.console.print(f" {marker} [yellow]{number}[/yellow]. {option}")

        try:
            choice = IntPrompt.ask(
                "Choose",
                console=self.console,
                choices=[str(n) for n in range(1, len(options) + 1)],
                default=default + 1,
                show_choices=False,
            )
        except (KeyboardInterrupt, EOFError) as e:
            self.console.print()
            raise InputCancelled("Selection cancelled") from e

        logger.debug(f"Selected option {choice} for '{prompt}'")
        return choice - 1

    def ask_path(self, prompt: str, default: str = ".") -> str:
        try:
            return Prompt.ask(f"[cyan]{prompt}", console=self.console, default=default)
        except (KeyboardInterrupt, EOFError) as e:
            self.console.print()
            raise InputCancelled("Path prompt cancelled") from e

    def ask_text(self, prompt: str, default: str | None = None) -> str:
        try:
            if default is None:
                return Prompt.ask(f"[cyan]{prompt}", console=self.console)
            return Prompt.ask(f"[cyan]{prompt}", console=self.console, default=default)
        except (KeyboardInterrupt, EOFError) as e:
            self.console.print()
            raise InputCancelled("Prompt cancelled") from e
