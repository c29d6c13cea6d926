"""Command-line interface for git-explain."""

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

import typer
from rich import print
from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm, Prompt
from rich.table import Table

from git_explain.ai.backends import AnalysisBackend
from git_explain.ai_models import ModelManager
from git_explain.config import AI_PROVIDERS, Config
from git_explain.exceptions import GitExplainError
from git_explain.git import (
    get_contributor_stats,
    get_full_diff,
    open_repository,
)
from git_explain.loop import InteractiveSessionLoop
from git_explain.models import FileAnalysis
from git_explain.modes import render_analyses
from git_explain.session import Session
from git_explain.ui import RichPrompter

app = typer.Typer(
    name="git-explain",
    help="Explain the changes in a git repository with AI: commit messages, per-file explanations and contributor summaries",
)

console = Console()

API_KEY_INSTRUCTIONS = {
    "openai": "You can get an API key from: [link]https://platform.openai.com/api-keys[/link]",
    "anthropic": "You can get an API key from: [link]https://console.anthropic.com/[/link]",
    "google": "You can get an API key from: [link]https://aistudio.google.com/apikey[/link]",
    "groq": "You can get an API key from: [link]https://console.groq.com/keys[/link]",
}


def _configure_logging(verbosity: int) -> None:
    """Configure the root logger from the number of -v flags.

    0 -> WARNING, 1 -> INFO, 2 or more -> DEBUG
    """
    if verbosity <= 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _resolve_backend(name: str | None) -> AnalysisBackend:
    """Build the backend named on the command line, the configured default, or the first one."""
    manager = ModelManager()
    name = name or Config().get_default_backend()

    if name:
        descriptor = manager.get_backend(name)
        if descriptor is None:
            print(f"[red]Error: Unknown backend '{name}'. Run [bold]git-explain backends[/bold] to list them.[/red]")
            raise typer.Exit(1)
        return descriptor.build()

    descriptors = manager.list_available_backends()
    if not descriptors:
        print("[red]Error: No AI backends are available[/red]")
        raise typer.Exit(1)
    return descriptors[0].build()


def _run(coro_factory: Callable[..., Awaitable[None]], *args: Any) -> None:
    """Run an async command body, turning package errors into exit code 1."""
    try:
        asyncio.run(coro_factory(*args))
    except KeyboardInterrupt:
        print("\n[red]Operation cancelled by user[/red]")
        raise typer.Exit(1)
    except GitExplainError as e:
        print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0, "--verbose", "-v", count=True, help="Increase log output (-v info, -vv debug)"
    ),
) -> None:
    """Explain the changes in a git repository with AI.

    Without a command, starts the interactive session.
    """
    _configure_logging(verbose)
    if ctx.invoked_subcommand is None:
        _run(_interactive_session, None)


@app.command()
def version() -> None:
    """Show the version and exit."""
    from git_explain import __version__

    print(f"git-explain {__version__}")


@app.command()
def interactive(
    repo: str | None = typer.Option(
        None, "--repo", "-r", help="Repository suggested by the first prompt"
    ),
) -> None:
    """Start the interactive session (pick repository, backend and mode)."""
    _run(_interactive_session, repo)


async def _interactive_session(repo: str | None) -> None:
    config = Config()
    loop = InteractiveSessionLoop(
        prompter=RichPrompter(console),
        registry=ModelManager(),
        console=console,
        default_path=repo or ".",
        default_backend=config.get_default_backend(),
    )
    await loop.run()
    console.print("[dim]Goodbye![/dim]")


@app.command("commit-message")
def commit_message(
    repo: str = typer.Option(".", "--repo", "-r", help="Path to the git repository"),
    backend: str | None = typer.Option(
        None, "--backend", "-b", help="Backend model name (see 'git-explain backends')"
    ),
) -> None:
    """Suggest a commit message for the staged (or, if nothing is staged, all) changes."""
    _run(_commit_message, repo, backend)


async def _commit_message(repo_path: str, backend_name: str | None) -> None:
    repo = open_repository(repo_path)
    diff = get_full_diff(repo)
    if not diff.strip():
        print("[yellow]No changes to describe.[/yellow]")
        return

    session = Session(backend=_resolve_backend(backend_name), repository_path=repo.path)
    with console.status("Generating commit message..."):
        message = await session.generate_commit_message(diff)
    console.print(message, markup=False, highlight=False)


@app.command()
def explain(
    repo: str = typer.Option(".", "--repo", "-r", help="Path to the git repository"),
    backend: str | None = typer.Option(
        None, "--backend", "-b", help="Backend model name (see 'git-explain backends')"
    ),
    output: str | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Output file (.md or .json format). If not specified, prints to stdout",
    ),
) -> None:
    """Explain every changed file in the repository."""
    _run(_explain_changes, repo, backend, output)


async def _explain_changes(repo_path: str, backend_name: str | None, output: str | None) -> None:
    repo = open_repository(repo_path)
    session = Session(backend=_resolve_backend(backend_name), repository_path=repo.path)

    with console.status("Analyzing changes..."):
        analyses = await session.analyze_changes(repo)

    if not analyses:
        print("[yellow]No changes to explain.[/yellow]")
        return

    if output:
        _save_analyses_to_file(analyses, output)
    else:
        render_analyses(analyses, console)


def _save_analyses_to_file(analyses: list[FileAnalysis], output_path: str) -> None:
    """Write analyses as JSON (for .json paths) or markdown."""
    path = Path(output_path)
    if path.suffix.lower() == ".json":
        content = json.dumps([a.model_dump() for a in analyses], indent=2)
    else:
        sections = ["# Change explanations\n"]
        for analysis in analyses:
            sections.append(f"## `{analysis.path}`\n\n{analysis.explanation}\n")
        content = "\n".join(sections)

    path.write_text(content, encoding="utf-8")
    print(f"[green]✓[/green] Saved {len(analyses)} explanations to {path}")


@app.command()
def contributor(
    author: str = typer.Argument(..., help="Author name or email to summarize"),
    repo: str = typer.Option(".", "--repo", "-r", help="Path to the git repository"),
    backend: str | None = typer.Option(
        None, "--backend", "-b", help="Backend model name (see 'git-explain backends')"
    ),
) -> None:
    """Summarize a contributor's activity in the repository."""
    _run(_contributor_summary, author, repo, backend)


async def _contributor_summary(author: str, repo_path: str, backend_name: str | None) -> None:
    repo = open_repository(repo_path)
    stats = get_contributor_stats(repo, author)
    session = Session(backend=_resolve_backend(backend_name), repository_path=repo.path)

    with console.status(f"Summarizing {author}..."):
        summary = await session.analyze_contributor(stats.to_text())
    console.print(summary, markup=False, highlight=False)


@app.command("backends")
def list_backends(
    set_default: str | None = typer.Option(
        None, "--set-default", help="Preselect this backend in menus and commands"
    ),
) -> None:
    """List the available AI backends and whether their API keys are configured."""
    manager = ModelManager()

    if set_default:
        descriptor = manager.get_backend(set_default)
        if descriptor is None:
            print(f"[red]Error: Unknown backend '{set_default}'[/red]")
            raise typer.Exit(1)
        Config().set_default_backend(descriptor.name)
        return

    default = Config().get_default_backend()
    table = Table(title="AI Backends", show_header=True, header_style="bold magenta")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Provider", style="blue")
    table.add_column("Tier")
    table.add_column("Description")
    table.add_column("API Key", style="green")

    for entry in manager.get_backends_with_status():
        descriptor = entry["backend"]
        name = descriptor.name + (" [bold](default)[/bold]" if descriptor.name == default else "")
        table.add_row(
            name,
            descriptor.provider,
            descriptor.tier.title(),
            descriptor.description,
            entry["status_text"],
        )

    console.print(table)


def _check_provider(provider: str) -> str:
    if provider.lower() not in AI_PROVIDERS:
        print(f"[red]Error: Unknown provider '{provider}'. Use: {', '.join(AI_PROVIDERS)}[/red]")
        raise typer.Exit(1)
    return provider.lower()


@app.command("ai-auth")
def ai_auth(
    provider: str = typer.Argument(..., help="AI provider (openai, anthropic, google, groq)"),
) -> None:
    """Store an API key for an AI provider."""
    provider = _check_provider(provider)
    config = Config()

    print(f"[bold cyan]AI API Key Setup - {provider.title()}[/bold cyan]")
    print()

    if config.get_ai_api_key(provider):
        print(f"[green]✓[/green] You already have a {provider} API key stored")
        if not Confirm.ask("Would you like to replace it with a new key?"):
            return

    print(API_KEY_INSTRUCTIONS[provider])
    print()

    api_key = Prompt.ask(f"[cyan]Enter your {provider.title()} API key", password=True)
    if not api_key:
        print("[red]No API key provided[/red]")
        return

    config.set_ai_api_key(provider, api_key)


@app.command("ai-auth-status")
def ai_auth_status() -> None:
    """Show which AI providers have a stored API key."""
    info = Config().get_config_info()

    table = Table(title="AI API Key Status")
    table.add_column("Provider", style="cyan")
    table.add_column("Status", style="green")

    for provider, has_key in info["ai_api_keys"].items():
        table.add_row(provider.title(), "✓ Configured" if has_key else "✗ Not configured")

    console.print(table)
    console.print(f"[dim]Config file: {info['config_file']}[/dim]")

    if not any(info["ai_api_keys"].values()):
        print()
        print(
            "[yellow]No AI API keys configured. Run [bold]git-explain ai-auth <provider>[/bold] to set one up.[/yellow]"
        )


@app.command("ai-auth-remove")
def ai_auth_remove(
    provider: str = typer.Argument(..., help="AI provider (openai, anthropic, google, groq)"),
) -> None:
    """Remove the stored API key for an AI provider."""
    provider = _check_provider(provider)
    config = Config()

    if not config.get_ai_api_key(provider):
        print(f"[yellow]No {provider} API key is currently stored[/yellow]")
        return

    if Confirm.ask(f"[red]Are you sure you want to remove the {provider} API key?[/red]"):
        config.remove_ai_api_key(provider)
    else:
        print("API key removal cancelled")


if __name__ == "__main__":
    app()
