"""Assistant lifecycle hooks: track edits, remind before staging and at wrap-up.

Hooks are best-effort. They never raise; store failures are reported in the
returned ``HookResult``.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from pydantic import BaseModel

from memcore.core.errors import StoreError
from memcore.core.schema import ChangeAction, ProgressState, Session
from memcore.core.store import MemoryStore
from memcore.utils.paths import CURRENT_SESSION_FILE, STORE_DIR, to_absolute_path

logger = logging.getLogger(__name__)

TRACKED_TOOLS = ("Write", "Edit", "Bash")

_BASH_FILE_RE = re.compile(r"(?:touch|vim|nano|rm|mv)\s+([^\s]+)")
_GIT_ADD_RE = re.compile(r"git\s+add")
_GIT_ADD_ARGS_RE = re.compile(r"git\s+add\s+(.+)")

ENDING_PATTERNS = [
    re.compile(r"\b(done|finished|complete|completed)\b", re.IGNORECASE),
    re.compile(r"\b(goodbye|bye|see you|thanks|thank you)\b", re.IGNORECASE),
    re.compile(r"\b(commit|push|deploy)\b.*\b(done|finished)\b", re.IGNORECASE),
    re.compile(r"that'?s? (it|all)", re.IGNORECASE),
]

_RULE = "=" * 60


def _as_mapping(tool_input: Any) -> dict[str, Any]:
    return tool_input if isinstance(tool_input, dict) else {}


def _string(tool_input: dict[str, Any], key: str) -> str:
    value = tool_input.get(key)
    return value if isinstance(value, str) else ""


class HookResult(BaseModel):
    triggered: bool
    reason: str = ""
    message: str = ""
    file: str | None = None
    action: str | None = None
    session_id: str | None = None
    changes_count: int = 0
    files_to_update: list[str] = []
    error: str | None = None


def determine_action(tool_name: str, tool_input: dict[str, Any]) -> ChangeAction:
    if tool_name == "Write":
        return ChangeAction.created_updated
    if tool_name == "Edit":
        return ChangeAction.modified
    if tool_name == "Bash":
        command = _string(tool_input, "command")
        if "git commit" in command:
            return ChangeAction.committed
        if "git add" in command:
            return ChangeAction.staged
        if "rm " in command:
            return ChangeAction.deleted
        return ChangeAction.bash_command
    return ChangeAction.changed


def extract_file_path(tool_name: str, tool_input: dict[str, Any]) -> str | None:
    if tool_name in ("Write", "Edit"):
        return _string(tool_input, "file_path") or None
    if tool_name == "Bash":
        match = _BASH_FILE_RE.search(_string(tool_input, "command"))
        return match.group(1) if match else None
    return None


def on_post_tool_use(store: MemoryStore, tool_name: str, tool_input: dict[str, Any]) -> HookResult:
    """Record the file touched by a Write/Edit/Bash tool call."""
    tool_input = _as_mapping(tool_input)
    if tool_name not in TRACKED_TOOLS:
        return HookResult(triggered=False, reason="tool_not_tracked")

    file_path = extract_file_path(tool_name, tool_input)
    if not file_path:
        return HookResult(triggered=False, reason="no_file_path")

    action = determine_action(tool_name, tool_input)
    absolute = to_absolute_path(file_path, store.root)
    try:
        result = store.record_change(absolute, action, f"{tool_name}: {action.value}")
        session = store.get_current_session()
    except StoreError as e:
        logger.warning("Change tracking failed: %s", e)
        return HookResult(triggered=False, reason="error", error=str(e))

    return HookResult(
        triggered=result.recorded,
        file=absolute,
        action=action.value,
        session_id=session.session_id if session else None,
        changes_count=len(session.recent_changes) if session else 0,
    )


def is_git_add(tool_name: str, tool_input: dict[str, Any]) -> bool:
    if tool_name != "Bash":
        return False
    return bool(_GIT_ADD_RE.search(_string(tool_input, "command")))


def build_staging_reminder(session: Session | None, git_command: str) -> tuple[str, list[str]]:
    """Instruction asking the assistant to refresh memory before staging."""
    files_to_update: list[str] = []
    lines = [
        "",
        _RULE,
        "INSTRUCTION: Update memory before git operation",
        _RULE,
        "",
        "Before proceeding with the git command:",
        "",
        f"1. Update {STORE_DIR}/{CURRENT_SESSION_FILE} with:",
    ]
    if session is not None and session.recent_changes:
        lines.append("   - Add any new file changes to recentChanges")
        lines.append("   - Update currentTask.files with files being committed")
        files_to_update.append(f"{STORE_DIR}/{CURRENT_SESSION_FILE}")
    lines.append("   - Set currentTask.progress appropriately")
    lines.append("   - Add contextNotes about what was accomplished")
    lines.append("")

    match = _GIT_ADD_ARGS_RE.search(git_command)
    if match:
        staged = [f for f in match.group(1).split() if f and f != "&&"]
        lines.append(f"2. Files being staged: {', '.join(staged)}")
        lines.append("   Ensure these are reflected in the session memory")
        lines.append("")

    if session is not None and session.current_task.feature:
        lines.append("3. Document the feature work in session notes")
        lines.append("")

    lines.append("After updating the memory, proceed with the git operation.")
    lines.append(_RULE)
    return "\n".join(lines) + "\n", files_to_update


def on_pre_tool_use(store: MemoryStore, tool_name: str, tool_input: dict[str, Any]) -> HookResult:
    tool_input = _as_mapping(tool_input)
    if not is_git_add(tool_name, tool_input):
        return HookResult(triggered=False, reason="not_git_add")
    try:
        session = store.get_current_session()
    except StoreError as e:
        logger.warning("Could not read session: %s", e)
        return HookResult(triggered=False, reason="error", error=str(e))

    message, files_to_update = build_staging_reminder(session, _string(tool_input, "command"))
    return HookResult(
        triggered=True,
        message=message,
        session_id=session.session_id if session else None,
        files_to_update=files_to_update,
    )


def is_ending_prompt(prompt: str) -> bool:
    return any(pattern.search(prompt or "") for pattern in ENDING_PATTERNS)


def build_documentation_reminder(session: Session) -> str:
    changes = session.recent_changes
    task = session.current_task
    lines = ["", _RULE, "DOCUMENTATION REMINDER", _RULE, "", "Consider updating these files before ending:", ""]

    if task.progress != ProgressState.not_started or len(changes) > 5:
        lines += ["   - memory-bank/CURRENT.md", "     Update current project state", ""]
        lines += ["   - memory-bank/progress.md", "     Add session summary with timestamp", ""]
    if task.feature and task.progress == ProgressState.completed:
        lines += ["   - memory-bank/CHANGELOG.md", "     Document completed feature", ""]
    if any("architecture" in c.file or "schema" in c.file for c in changes):
        lines += ["   - memory-bank/ARCHITECTURE.md", "     Document architectural decisions", ""]

    lines.append("Run `memory session end` to archive the session when done")
    lines.append(_RULE)
    return "\n".join(lines) + "\n"


def on_user_prompt_submit(store: MemoryStore, prompt: str) -> HookResult:
    if not is_ending_prompt(prompt):
        return HookResult(triggered=False, reason="not_ending_prompt")
    try:
        session = store.get_current_session()
    except StoreError as e:
        logger.warning("Could not read session: %s", e)
        return HookResult(triggered=False, reason="error", error=str(e))
    if session is None:
        return HookResult(triggered=False, reason="no_active_session")
    if not session.recent_changes and session.current_task.progress == ProgressState.not_started:
        return HookResult(triggered=False, reason="no_work_to_document")

    return HookResult(
        triggered=True,
        message=build_documentation_reminder(session),
        session_id=session.session_id,
        changes_count=len(session.recent_changes),
    )
