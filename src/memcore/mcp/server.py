"""MCP server exposing MemoryStore as tools and resources."""

from __future__ import annotations

import json
import logging

from mcp.server.fastmcp import FastMCP

from memcore.core.errors import StoreError
from memcore.core.render import render_markdown
from memcore.core.store import MemoryStore
from memcore.utils.config import load_settings
from memcore.utils.paths import find_project_root, to_absolute_path

logger = logging.getLogger(__name__)

_FALLBACK_INSTRUCTIONS = (
    "memory-core keeps short-lived work context for this project: the current task, "
    "recent file changes, notes, active bugs, learned patterns and the tech stack. "
    "Use resources to read it and tools to update it."
)


def _generate_instructions() -> str:
    """Build a concise instruction string from the current session.

    Falls back to generic instructions on any store error.
    """
    try:
        store = _get_store()
        session = store.get_current_session()
        if session is None:
            return _FALLBACK_INSTRUCTIONS

        lines = [f"memory-core session '{session.session_id}' is active.", ""]
        if session.current_task.feature:
            lines.append(
                f"Current task: {session.current_task.feature} ({session.current_task.progress.value})"
            )
        if session.current_task.next_steps:
            lines.append(f"Next steps: {'; '.join(session.current_task.next_steps)}")
        if session.active_bugs:
            lines.append(f"Active bugs: {', '.join(session.active_bugs)}")
        lines.append(f"Recent changes recorded: {len(session.recent_changes)}.")
        lines.extend(["", "Use memory_* tools to record progress, notes and bugs as you work."])
        return "\n".join(lines)
    except (StoreError, RuntimeError):
        return _FALLBACK_INSTRUCTIONS


mcp = FastMCP("memory-core", instructions=_FALLBACK_INSTRUCTIONS)

_store: MemoryStore | None = None


def _get_store() -> MemoryStore:
    """Return the module-level store, initializing from project root if needed."""
    global _store
    if _store is None:
        root = find_project_root()
        if root is None:
            raise RuntimeError("Not inside a project with a memory store or git repo")
        _store = MemoryStore(root, settings=load_settings())
        _store.initialize()
    return _store


def set_store(store: MemoryStore | None) -> None:
    """Override the module-level store (used in tests)."""
    global _store
    _store = store


def _ok(**payload) -> str:
    return json.dumps({"status": "ok", **payload}, default=str)


def _failed(e: StoreError) -> str:
    return json.dumps({"status": "error", "error": str(e), "kind": type(e).__name__})


# ---------------------------------------------------------------------------
# Resources (read-only)
# ---------------------------------------------------------------------------


@mcp.resource("memory://session")
def resource_session() -> str:
    """Current session document, or null when none is active."""
    session = _get_store().get_current_session()
    return session.to_json() if session else "null"


@mcp.resource("memory://session/markdown")
def resource_session_markdown() -> str:
    """Current session rendered as a Markdown summary."""
    store = _get_store()
    session = store.get_current_session()
    if session is None:
        return "No active session"
    return render_markdown(session, store.root)


@mcp.resource("memory://changes")
def resource_changes() -> str:
    """Recent file changes, oldest first."""
    session = _get_store().get_current_session()
    changes = session.recent_changes if session else []
    return json.dumps([c.model_dump(mode="json", by_alias=True) for c in changes], indent=2)


@mcp.resource("memory://patterns")
def resource_patterns() -> str:
    """All learned patterns grouped by type."""
    patterns = _get_store().all_patterns()
    return json.dumps(
        {
            ptype: {key: r.model_dump(mode="json", by_alias=True, exclude_none=True) for key, r in records.items()}
            for ptype, records in patterns.items()
        },
        indent=2,
    )


@mcp.resource("memory://techstack")
def resource_techstack() -> str:
    """Project tech stack record."""
    stack = _get_store().get_tech_stack()
    return stack.to_json() if stack else "{}"


@mcp.resource("memory://summary")
def resource_summary() -> str:
    """High-level store summary."""
    return json.dumps(_get_store().summary(), indent=2, default=str)


# ---------------------------------------------------------------------------
# Tools (mutations)
# ---------------------------------------------------------------------------


@mcp.tool()
def memory_track_change(file: str, action: str = "modified", description: str = "") -> str:
    """Record a file change in the current session.

    Args:
        file: Path of the changed file (relative to the project or absolute)
        action: created, created/updated, modified, deleted, staged, committed, bash_command or changed
        description: Optional short description
    """
    store = _get_store()
    try:
        result = store.record_change(to_absolute_path(file, store.root), action, description)
    except StoreError as e:
        return _failed(e)
    return _ok(recorded=result.recorded, change=result.change.model_dump(mode="json", by_alias=True))


@mcp.tool()
def memory_update_task(
    feature: str = "",
    progress: str = "",
    next_step: str = "",
    clear_next_steps: bool = False,
) -> str:
    """Update the current task.

    Args:
        feature: Feature or task description (empty means no change)
        progress: not_started, in_progress, completed or blocked (empty means no change)
        next_step: A next step to append
        clear_next_steps: Clear existing next steps before appending
    """
    changes: dict = {"clear_next_steps": clear_next_steps}
    if feature:
        changes["feature"] = feature
    if progress:
        changes["progress"] = progress
    if next_step:
        changes["add_next_step"] = next_step
    try:
        session = _get_store().update_task(**changes)
    except StoreError as e:
        return _failed(e)
    return _ok(session_id=session.session_id, task=session.current_task.model_dump(mode="json", by_alias=True))


@mcp.tool()
def memory_add_note(text: str) -> str:
    """Add a context note (a repeat of the latest note is ignored)."""
    try:
        result = _get_store().add_note(text)
    except StoreError as e:
        return _failed(e)
    return _ok(added=result.added)


@mcp.tool()
def memory_add_bug(text: str) -> str:
    """Add an active bug."""
    try:
        result = _get_store().add_bug(text)
    except StoreError as e:
        return _failed(e)
    return _ok(changed=result.changed)


@mcp.tool()
def memory_remove_bug(text: str) -> str:
    """Remove an active bug by exact text."""
    try:
        result = _get_store().remove_bug(text)
    except StoreError as e:
        return _failed(e)
    return _ok(changed=result.changed)


@mcp.tool()
def memory_learn_pattern(
    pattern_type: str,
    key: str,
    pattern: str = "",
    description: str = "",
    example: str = "",
    usage: str = "",
) -> str:
    """Learn or extend a reusable code pattern.

    Args:
        pattern_type: api-patterns, error-handling, ui-patterns or database-patterns
        key: Pattern identifier
        pattern, description, example, usage: at least one is required
    """
    data = {"pattern": pattern, "description": description, "example": example, "usage": usage}
    try:
        record = _get_store().learn_pattern(pattern_type, key, data)
    except StoreError as e:
        return _failed(e)
    return _ok(key=key, record=record.model_dump(mode="json", by_alias=True, exclude_none=True))


@mcp.tool()
def memory_update_techstack(fields: dict[str, str]) -> str:
    """Merge fields (framework, language, database, ...) into the tech stack."""
    try:
        stack = _get_store().update_tech_stack(fields)
    except StoreError as e:
        return _failed(e)
    return _ok(tech_stack=stack.entries)


@mcp.tool()
def memory_end_session() -> str:
    """Archive the current session and clear the active slot."""
    try:
        result = _get_store().end_session()
    except StoreError as e:
        return _failed(e)
    return _ok(archived=result.archived, session_id=result.session_id, archive_file=result.archive_file)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main():
    """Run the MCP server on stdio."""
    mcp._mcp_server.instructions = _generate_instructions()
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
