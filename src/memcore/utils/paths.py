"""Path utilities for the memory store layout."""

from __future__ import annotations

from pathlib import Path

STORE_DIR = ".claude-memory"
ARCHIVE_DIR = "session/archive"
PATTERNS_DIR = "patterns"
CURRENT_SESSION_FILE = "session/current.json"
TECHSTACK_FILE = "techstack.json"


def find_project_root(start: Path | None = None) -> Path | None:
    """Walk up from start to find a directory containing .claude-memory/ or .git/."""
    current = (start or Path.cwd()).resolve()
    for parent in [current, *current.parents]:
        if (parent / STORE_DIR).is_dir():
            return parent
        if (parent / ".git").exists():
            return parent
    return None


def to_absolute_path(file_path: str, base_dir: Path | None = None) -> str:
    path = Path(file_path).expanduser()
    if not path.is_absolute():
        path = (base_dir or Path.cwd()) / path
    return str(path.resolve())


def short_path(file_path: str, root: Path) -> str:
    """Display a path relative to the project root as ``./rel/path``."""
    root_str = str(root)
    if file_path == root_str:
        return "."
    if file_path.startswith(root_str.rstrip("/") + "/"):
        return "." + file_path[len(root_str.rstrip("/")):]
    return file_path
