"""Change subcommands: track, list."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape

from memcore.cli._shared import FORMAT_OPTION, get_store, handle_errors
from memcore.core.clock import format_relative_time
from memcore.core.schema import ChangeAction
from memcore.utils.output import info, output, output_table, success
from memcore.utils.paths import short_path, to_absolute_path

changes_app = typer.Typer(no_args_is_help=True)


@changes_app.command("track")
def changes_track(
    file: str = typer.Argument(..., help="Changed file"),
    action: str = typer.Option("auto", "--action", "-a", help="auto, created, modified, deleted, ..."),
    description: str = typer.Option("", "--description", "-d", help="Short description"),
    fmt: Optional[str] = FORMAT_OPTION,
) -> None:
    """Record a file change in the active session."""
    store = get_store()
    absolute = to_absolute_path(file, Path.cwd())
    if action == "auto":
        action = ChangeAction.modified if Path(absolute).exists() else ChangeAction.deleted
    with handle_errors():
        result = store.record_change(absolute, action, description)
    if fmt == "json":
        output(result, fmt="json")
    else:
        success(f"Tracked {result.change.action.value}: {escape(short_path(absolute, store.root))}")


@changes_app.command("list")
def changes_list(
    limit: int = typer.Option(10, "--limit", "-n", min=1, help="Number of changes to show"),
    file: Optional[str] = typer.Option(None, "--file", help="Only changes to this file"),
    chronological: bool = typer.Option(False, "--chronological", help="Oldest first"),
    fmt: Optional[str] = FORMAT_OPTION,
) -> None:
    """List recent changes (newest first)."""
    store = get_store()
    session = store.get_current_session()
    changes = list(session.recent_changes) if session else []
    if file is not None:
        target = to_absolute_path(file, Path.cwd())
        changes = [c for c in changes if c.file == target]
    changes = changes[-limit:]
    if not chronological:
        changes.reverse()

    if not changes and fmt != "json":
        info("No recent changes")
        return

    now = store.clock()
    rows = [
        {
            "file": short_path(c.file, store.root),
            "action": c.action.value,
            "when": c.timestamp.isoformat() if fmt == "json" else format_relative_time(c.timestamp, now),
            "description": c.description,
        }
        for c in changes
    ]
    output_table(rows, ["file", "action", "when", "description"], fmt=fmt, title="Recent changes")
