"""Git subcommands: record staged and committed files as changes."""

from __future__ import annotations

from typing import Optional

import typer

from memcore.cli._shared import FORMAT_OPTION, get_store, handle_errors
from memcore.sync.git_changes import GitChangeTracker, GitTrackError
from memcore.utils.output import error, info, output, success

git_app = typer.Typer(no_args_is_help=True)


def _tracker() -> GitChangeTracker:
    try:
        return GitChangeTracker(get_store())
    except GitTrackError as e:
        error(str(e))
        raise typer.Exit(1)


@git_app.command("track-staged")
def git_track_staged(fmt: Optional[str] = FORMAT_OPTION) -> None:
    """Record every staged file as `staged`."""
    tracker = _tracker()
    with handle_errors():
        results = tracker.track_staged()
    files = [r.change.file for r in results if r.change]
    if fmt == "json":
        output({"tracked": files, "count": len(files)}, fmt="json")
    elif files:
        success(f"Tracked {len(files)} staged file(s)")
    else:
        info("Nothing staged")


@git_app.command("track-commit")
def git_track_commit(
    rev: str = typer.Argument("HEAD", help="Commit to record"),
    fmt: Optional[str] = FORMAT_OPTION,
) -> None:
    """Record every file touched by a commit as `committed`."""
    tracker = _tracker()
    try:
        with handle_errors():
            results = tracker.track_commit(rev)
    except GitTrackError as e:
        error(str(e))
        raise typer.Exit(1)
    files = [r.change.file for r in results if r.change]
    if fmt == "json":
        output({"rev": rev, "tracked": files, "count": len(files)}, fmt="json")
    else:
        success(f"Tracked {len(files)} file(s) from {rev}")
