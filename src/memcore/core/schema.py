"""Pydantic v2 models for all memory store documents."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from memcore.core.clock import is_valid_session_id
from memcore.core.errors import ValidationError

MAX_RECENT_CHANGES = 20


class _Document(BaseModel):
    """Base for documents persisted with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> str:
        return self.model_dump_json(indent=2, by_alias=True, exclude_none=True)


def _valid_values(enum_cls: type[Enum]) -> str:
    return ", ".join(member.value for member in enum_cls)


# -- Enums --


class ChangeAction(str, Enum):
    created = "created"
    created_updated = "created/updated"
    modified = "modified"
    deleted = "deleted"
    staged = "staged"
    committed = "committed"
    bash_command = "bash_command"
    changed = "changed"

    @classmethod
    def parse(cls, value: Any) -> ChangeAction:
        if isinstance(value, cls):
            return value
        key = str(value or "").strip().lower()
        key = _ACTION_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise ValidationError(
                f"Invalid action: {value!r}. Valid actions: {_valid_values(cls)}"
            ) from None


_ACTION_ALIASES = {
    "create": "created",
    "update": "created/updated",
    "updated": "created/updated",
    "modify": "modified",
    "delete": "deleted",
    "stage": "staged",
    "commit": "committed",
}


class ProgressState(str, Enum):
    not_started = "not_started"
    in_progress = "in_progress"
    completed = "completed"
    blocked = "blocked"

    @classmethod
    def parse(cls, value: Any) -> ProgressState:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            raise ValidationError(
                f"Invalid progress value: {value!r}. Must be one of: {_valid_values(cls)}"
            ) from None


class PatternType(str, Enum):
    api_patterns = "api-patterns"
    error_handling = "error-handling"
    ui_patterns = "ui-patterns"
    database_patterns = "database-patterns"

    @classmethod
    def parse(cls, value: Any) -> PatternType:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            raise ValidationError(
                f"Invalid pattern type: {value!r}. Valid types: {_valid_values(cls)}"
            ) from None


# -- Session --


class CurrentTask(_Document):
    feature: str | None = None
    progress: ProgressState = ProgressState.not_started
    files: list[str] = Field(default_factory=list)
    next_steps: list[str] = Field(default_factory=list)

    @field_validator("files")
    @classmethod
    def _unique_files(cls, files: list[str]) -> list[str]:
        return list(dict.fromkeys(files))


class ChangeRecord(_Document):
    file: str
    action: ChangeAction
    description: str = ""
    timestamp: datetime


class Session(_Document):
    session_id: str
    started_at: datetime
    expires_at: datetime
    current_task: CurrentTask = Field(default_factory=CurrentTask)
    recent_changes: list[ChangeRecord] = Field(default_factory=list)
    context_notes: list[str] = Field(default_factory=list)
    active_bugs: list[str] = Field(default_factory=list)

    @field_validator("session_id")
    @classmethod
    def _well_formed_id(cls, session_id: str) -> str:
        if not is_valid_session_id(session_id):
            raise ValueError(f"Invalid session id: {session_id!r}")
        return session_id

    @field_validator("recent_changes")
    @classmethod
    def _bounded_changes(cls, changes: list[ChangeRecord]) -> list[ChangeRecord]:
        return changes[-MAX_RECENT_CHANGES:]

    @field_validator("active_bugs")
    @classmethod
    def _unique_bugs(cls, bugs: list[str]) -> list[str]:
        return list(dict.fromkeys(bugs))

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    def to_json(self) -> str:
        # currentTask.feature is kept as null when unset
        return self.model_dump_json(indent=2, by_alias=True)


# -- Tagged session updates --


class TaskUpdate(BaseModel):
    """Partial update of ``currentTask``; only explicitly set fields apply."""

    model_config = ConfigDict(extra="forbid")

    kind: Literal["task"] = "task"
    feature: str | None = None
    progress: ProgressState | None = None
    files: list[str] | None = None
    next_steps: list[str] | None = None
    add_next_step: str | None = None
    clear_next_steps: bool = False


class ChangeAppend(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kind: Literal["change"] = "change"
    file: str
    action: ChangeAction = ChangeAction.modified
    description: str = ""


class NoteAppend(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kind: Literal["note"] = "note"
    text: str


class BugOp(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kind: Literal["bug"] = "bug"
    op: Literal["add", "remove"]
    text: str


SessionOp = Annotated[
    Union[TaskUpdate, ChangeAppend, NoteAppend, BugOp], Field(discriminator="kind")
]


class SessionUpdate(BaseModel):
    """Shallow merge of top-level session fields."""

    model_config = ConfigDict(extra="forbid")

    task: TaskUpdate | None = None
    recent_changes: list[ChangeRecord] | None = None
    context_notes: list[str] | None = None
    active_bugs: list[str] | None = None


# -- Operation results --


class ChangeResult(_Document):
    recorded: bool
    change: ChangeRecord | None = None


class NoteResult(_Document):
    added: bool
    note: str = ""


class BugResult(_Document):
    changed: bool
    bug: str = ""


class ArchiveResult(_Document):
    archived: bool
    archive_file: str | None = None
    session_id: str | None = None


class CleanResult(_Document):
    cleaned: bool
    session_id: str | None = None


# -- Patterns --

PATTERN_FIELDS = ("pattern", "description", "example", "usage")


class PatternRecord(_Document):
    pattern: str | None = None
    description: str | None = None
    example: str | None = None
    usage: str | None = None
    learned_at: datetime
    updated_at: datetime | None = None


# -- Tech stack --

KNOWN_STACK_FIELDS = ("framework", "language", "database", "styling", "testing", "deployment")


class TechStack(_Document):
    """Flat string fields (stored as extras) plus ``lastUpdated``."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    last_updated: datetime

    @property
    def entries(self) -> dict[str, str]:
        return dict(self.model_extra or {})
