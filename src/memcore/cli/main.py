"""Typer app: top-level command groups and root commands (init, status)."""

from __future__ import annotations

from typing import Optional

import typer
from rich.markup import escape

from memcore import __version__
from memcore.cli._shared import FORMAT_OPTION, get_store, handle_errors
from memcore.core.clock import format_expiry, format_relative_time
from memcore.utils.config import load_settings
from memcore.utils.output import console, output, setup_logging, success

app = typer.Typer(
    name="memory-core",
    help="memory-core: per-project session memory for AI coding assistants.",
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"memory-core {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version and exit"
    ),
) -> None:
    setup_logging("DEBUG" if verbose else load_settings().log_level)


@app.command()
def init(fmt: Optional[str] = FORMAT_OPTION) -> None:
    """Create the .claude-memory/ layout in the current project."""
    store = get_store()
    if fmt == "json":
        output({"store": str(store.store_dir), "initialized": store.initialized}, fmt="json")
    else:
        success(f"Initialized memory store at {store.store_dir}")


@app.command()
def status(fmt: Optional[str] = FORMAT_OPTION) -> None:
    """Show the active session, archives, patterns and tech stack."""
    store = get_store()
    with handle_errors():
        summary_data = store.summary()
        session = store.get_current_session()

    if fmt == "json":
        output(summary_data, fmt="json")
        return

    from rich.panel import Panel

    title = summary_data["session_id"] or "no active session"
    console.print(Panel(f"[bold]{escape(title)}[/bold]", title="memory-core"))
    console.print(f"  Store: {summary_data['store']}")
    if session is not None:
        now = store.clock()
        console.print(f"  Started: {format_relative_time(session.started_at, now)}")
        console.print(f"  Expires: {format_expiry(session.expires_at, now)}")
        if summary_data["feature"]:
            console.print(f"  Task: {escape(summary_data['feature'])} ({summary_data['progress']})")
        console.print(f"  Files tracked: {summary_data['files_tracked']}")
        console.print(f"  Changes recorded: {summary_data['changes_recorded']}")
        console.print(f"  Notes: {summary_data['notes_count']}")
        if summary_data["active_bugs"]:
            console.print(f"  Active bugs: {escape(', '.join(summary_data['active_bugs']))}")
    console.print(f"  Archived sessions: {summary_data['archives']}")
    counts = summary_data["pattern_counts"]
    if counts:
        console.print("  Patterns: " + ", ".join(f"{t} ({n})" for t, n in counts.items()))
    if summary_data["tech_stack"]:
        stack = ", ".join(f"{k}={v}" for k, v in summary_data["tech_stack"].items())
        console.print(f"  Tech stack: {escape(stack)}")


@app.command("mcp")
def mcp_serve() -> None:
    """Serve the memory store over MCP (stdio)."""
    from memcore.mcp.server import main as mcp_main

    mcp_main()


# Register subcommand groups
from memcore.cli.session_cmd import session_app
from memcore.cli.changes_cmd import changes_app
from memcore.cli.pattern_cmd import pattern_app
from memcore.cli.stack_cmd import stack_app
from memcore.cli.config_cmd import config_app
from memcore.cli.hook_cmd import hook_app
from memcore.cli.git_cmd import git_app

app.add_typer(session_app, name="session", help="Manage the working session")
app.add_typer(changes_app, name="changes", help="Track and list file changes")
app.add_typer(pattern_app, name="pattern", help="Manage learned code patterns")
app.add_typer(stack_app, name="stack", help="Manage the project tech stack")
app.add_typer(config_app, name="config", help="Manage global configuration")
app.add_typer(hook_app, name="hook", help="Assistant lifecycle hooks (JSON on stdin)")
app.add_typer(git_app, name="git", help="Record git activity as changes")
