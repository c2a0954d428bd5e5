"""Shared CLI utilities to avoid circular imports."""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import typer

from memcore.core.errors import ConflictError, NotFoundError, StorageError, StoreError, ValidationError
from memcore.core.store import MemoryStore
from memcore.utils.config import load_settings
from memcore.utils.output import error, tip
from memcore.utils.paths import find_project_root

FORMAT_OPTION = typer.Option(None, "--format", "-F", help="Output format: json or text")

_TIPS = {
    NotFoundError: "Run `memory session start` to begin a session",
    ValidationError: "Run the command with --help to see accepted values",
    ConflictError: "Use `memory session start --replace` to archive the active session first",
    StorageError: "Check permissions on the .claude-memory/ directory",
}


def get_store() -> MemoryStore:
    """Resolve the project root and return an initialized MemoryStore."""
    root = find_project_root() or Path.cwd()
    store = MemoryStore(root, settings=load_settings())
    try:
        store.initialize()
    except StoreError as e:
        error(str(e))
        hint = _TIPS.get(type(e))
        if hint:
            tip(hint)
        raise typer.Exit(1)
    return store


@contextmanager
def handle_errors() -> Iterator[None]:
    """Turn store errors into an error line plus a tip, exiting with 1."""
    try:
        yield
    except StoreError as e:
        error(str(e))
        hint = _TIPS.get(type(e))
        if hint:
            tip(hint)
        raise typer.Exit(1)
