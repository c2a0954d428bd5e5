"""Session subcommands: show, start, update, end, archives, archive, export."""

from __future__ import annotations

from typing import Optional

import typer
from rich.markup import escape

from memcore.cli._shared import FORMAT_OPTION, get_store, handle_errors
from memcore.core.clock import format_duration, format_expiry, format_relative_time
from memcore.core.render import format_changes_list, render_markdown
from memcore.core.schema import Session
from memcore.utils.output import console, heading, info, output, output_table, success

session_app = typer.Typer(no_args_is_help=True)


def _print_session(session: Session, now) -> None:
    task = session.current_task
    heading(f"Session {session.session_id}")
    console.print(f"  Started: {format_relative_time(session.started_at, now)}")
    console.print(f"  Expires: {format_expiry(session.expires_at, now)}")
    console.print(f"  Task: {escape(task.feature or '(none)')}")
    console.print(f"  Progress: {task.progress.value}")
    console.print(f"  Files: {len(task.files)}")
    for step in task.next_steps:
        console.print(f"    next: {escape(step)}")
    if session.active_bugs:
        console.print("  Active bugs:")
        for bug in session.active_bugs:
            console.print(f"    - {escape(bug)}")
    if session.context_notes:
        console.print("  Notes:")
        for note in session.context_notes[-3:]:
            console.print(f"    - {escape(note)}")
    console.print(f"  Recent changes: {len(session.recent_changes)}")


@session_app.command("show")
def session_show(fmt: Optional[str] = FORMAT_OPTION) -> None:
    """Show the active session."""
    store = get_store()
    session = store.get_current_session()
    if fmt == "json":
        output(session if session else {"session": None}, fmt="json")
    elif session is None:
        info("No active session. Run `memory session start` to begin one.")
    else:
        _print_session(session, store.clock())


@session_app.command("start")
def session_start(
    strict: Optional[bool] = typer.Option(
        None, "--strict/--no-strict", help="Fail instead of reusing an active session"
    ),
    replace: bool = typer.Option(False, "--replace", help="Archive the active session and start fresh"),
    fmt: Optional[str] = FORMAT_OPTION,
) -> None:
    """Start a session (reuses the active one unless --replace)."""
    store = get_store()
    with handle_errors():
        session = store.create_session(strict=strict, replace=replace)
    if fmt == "json":
        output(session, fmt="json")
    else:
        success(f"Session {session.session_id} active until {session.expires_at:%Y-%m-%d %H:%M} UTC")


@session_app.command("update")
def session_update(
    feature: Optional[str] = typer.Option(None, "--feature", help="Feature or task description"),
    progress: Optional[str] = typer.Option(
        None, "--progress", help="not_started, in_progress, completed or blocked"
    ),
    note: Optional[str] = typer.Option(None, "--note", help="Add a context note"),
    next_step: Optional[str] = typer.Option(None, "--next-step", help="Append a next step"),
    clear_steps: bool = typer.Option(False, "--clear-steps", help="Clear next steps first"),
    add_bug: Optional[str] = typer.Option(None, "--add-bug", help="Add an active bug"),
    remove_bug: Optional[str] = typer.Option(None, "--remove-bug", help="Remove an active bug"),
    fmt: Optional[str] = FORMAT_OPTION,
) -> None:
    """Update task fields, notes and bugs of the active session."""
    store = get_store()
    changes: dict = {}
    if feature is not None:
        changes["feature"] = feature
    if progress is not None:
        changes["progress"] = progress
    if next_step is not None:
        changes["add_next_step"] = next_step
    if clear_steps:
        changes["clear_next_steps"] = True

    with handle_errors():
        if changes:
            store.update_task(**changes)
        if note is not None:
            store.add_note(note)
        if add_bug is not None:
            store.add_bug(add_bug)
        if remove_bug is not None:
            store.remove_bug(remove_bug)
        session = store.get_current_session()

    if fmt == "json":
        output(session, fmt="json")
    elif session is not None:
        success(f"Session {session.session_id} updated")


@session_app.command("end")
def session_end(fmt: Optional[str] = FORMAT_OPTION) -> None:
    """Archive the active session."""
    store = get_store()
    with handle_errors():
        session = store.get_current_session()
        result = store.end_session()
    if fmt == "json":
        output(result, fmt="json")
        return
    success(f"Archived session {result.session_id} to {result.archive_file}")
    if session is not None:
        duration = format_duration(store.clock() - session.started_at)
        info(f"Duration: {duration}, {len(session.recent_changes)} change(s)")


@session_app.command("archives")
def session_archives(fmt: Optional[str] = FORMAT_OPTION) -> None:
    """List archived session ids."""
    store = get_store()
    ids = store.list_archives()
    if not ids and fmt != "json":
        info("No archived sessions")
        return
    output_table([{"session_id": i} for i in ids], ["session_id"], fmt=fmt, title="Archived sessions")


@session_app.command("archive")
def session_archive(
    session_id: str = typer.Argument(..., help="Archived session id (YYYY-MM-DD-period)"),
    fmt: Optional[str] = FORMAT_OPTION,
) -> None:
    """Show an archived session."""
    store = get_store()
    with handle_errors():
        session = store.get_archive(session_id)
    if fmt == "json":
        output(session, fmt="json")
    else:
        _print_session(session, store.clock())


@session_app.command("export")
def session_export(fmt: Optional[str] = FORMAT_OPTION) -> None:
    """Render the active session as Markdown for project docs."""
    store = get_store()
    session = store.get_current_session()
    if session is None:
        text = "No recent changes"
        files = "None"
    else:
        text = render_markdown(session, store.root)
        files = format_changes_list(session.recent_changes, store.root)
    if fmt == "json":
        output({"markdown": text, "files": files}, fmt="json")
    else:
        console.print(text, markup=False, highlight=False)
        console.print("")
        console.print(files, markup=False, highlight=False)
