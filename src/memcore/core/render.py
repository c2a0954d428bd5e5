"""Read-only views of a session for display and documentation tooling."""

from __future__ import annotations

from collections import Counter
from pathlib import Path

from memcore.core.schema import ChangeRecord, Session
from memcore.utils.paths import short_path


def group_changes_by_file(changes: list[ChangeRecord], root: Path) -> dict[str, list[ChangeRecord]]:
    """Group changes by project-relative path, in first-seen order."""
    groups: dict[str, list[ChangeRecord]] = {}
    for change in changes:
        groups.setdefault(short_path(change.file, root), []).append(change)
    return groups


def action_counts(changes: list[ChangeRecord]) -> dict[str, int]:
    """Count changes per action, most frequent first."""
    counts = Counter(change.action.value for change in changes)
    return dict(counts.most_common())


def render_markdown(session: Session, root: Path) -> str:
    """Render the "recent changes" block used in CURRENT.md-style docs."""
    lines: list[str] = []
    task = session.current_task

    if task.feature:
        lines.append(f"- **{task.feature}**:")
        lines.append(f"  - Status: {task.progress.value}")
        if task.files:
            lines.append(f"  - Files: {len(task.files)}")
        for step in task.next_steps:
            lines.append(f"  - Next: {step}")

    if session.recent_changes:
        lines.append("")
        lines.append("- **File Changes**:")
        for action, count in action_counts(session.recent_changes).items():
            lines.append(f"  - {action}: {count} file{'s' if count != 1 else ''}")

    if session.active_bugs:
        lines.append("")
        lines.append("- **Active Bugs**:")
        lines.extend(f"  - {bug}" for bug in session.active_bugs)

    if session.context_notes:
        lines.append("")
        lines.append("- **Notes**:")
        lines.extend(f"  - {note}" for note in session.context_notes[-3:])

    if not lines:
        return "No recent changes"
    return "\n".join(lines).strip("\n")


def format_changes_list(changes: list[ChangeRecord], root: Path) -> str:
    """Markdown bullet list of files with their change counts."""
    if not changes:
        return "None"
    lines = []
    for path, file_changes in group_changes_by_file(changes, root).items():
        count = len(file_changes)
        lines.append(f"- {path}: {count} change{'s' if count != 1 else ''}")
    return "\n".join(lines)
