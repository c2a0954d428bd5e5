"""MemoryStore: central component managing the .claude-memory/ directory."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from memcore.core.archive import ArchiveManager
from memcore.core.clock import Clock, utcnow
from memcore.core.errors import NotFoundError, StorageError, ValidationError
from memcore.core.patterns import PatternLibrary
from memcore.core.schema import (
    ArchiveResult,
    BugOp,
    BugResult,
    ChangeAction,
    ChangeAppend,
    ChangeResult,
    CleanResult,
    NoteAppend,
    NoteResult,
    PatternRecord,
    PatternType,
    ProgressState,
    Session,
    SessionUpdate,
    TaskUpdate,
    TechStack,
)
from memcore.core.sessions import SessionManager, SessionRepository
from memcore.core.techstack import TechStackRegistry
from memcore.utils.config import Settings
from memcore.utils.paths import ARCHIVE_DIR, PATTERNS_DIR, STORE_DIR

logger = logging.getLogger(__name__)


class MemoryStore:
    """Single entry point for session, archive, pattern and tech-stack data.

    Nothing is cached between calls: every operation re-reads the JSON
    documents, so several short-lived processes can share one project.
    """

    def __init__(
        self,
        project_root: Path,
        settings: Settings | None = None,
        clock: Clock = utcnow,
        auto_create: bool = True,
    ) -> None:
        self.root = project_root.resolve()
        self.store_dir = self.root / STORE_DIR
        self.settings = settings or Settings()
        self.clock = clock
        self.auto_create = auto_create

        self.repository = SessionRepository(self.store_dir)
        self.sessions = SessionManager(self.repository, clock=clock, ttl=self.settings.session_ttl)
        self.archives = ArchiveManager(self.store_dir, self.repository, clock=clock)
        self.patterns = PatternLibrary(self.store_dir, clock=clock)
        self.techstack = TechStackRegistry(self.store_dir, clock=clock)

    @property
    def initialized(self) -> bool:
        return (self.store_dir / ARCHIVE_DIR).is_dir() and (self.store_dir / PATTERNS_DIR).is_dir()

    # -- Initialization --

    def initialize(self) -> CleanResult:
        """Ensure the directory layout exists, then archive an expired session."""
        try:
            for d in (self.store_dir / ARCHIVE_DIR, self.store_dir / PATTERNS_DIR):
                d.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create memory store at {self.store_dir}: {e}") from e
        return self.archives.clean_expired()

    # -- Sessions --

    def get_current_session(self) -> Session | None:
        return self.sessions.get_current_session()

    def create_session(self, strict: bool | None = None, replace: bool = False) -> Session:
        """Start a session, keeping at most one in the active slot.

        An expired session is archived first. With ``replace`` an unexpired
        session is archived too; otherwise it is reused, or rejected with
        ``ConflictError`` under the strict policy.
        """
        self.archives.clean_expired()
        if replace and self.sessions.get_current_session() is not None:
            self.archives.archive_session()
        if strict is None:
            strict = self.settings.strict_sessions
        return self.sessions.create_session(strict=strict)

    def _ensure_session(self) -> Session:
        session = self.sessions.get_current_session()
        if session is not None:
            return session
        if not self.auto_create:
            raise NotFoundError("No active session")
        logger.info("No active session found, creating new session")
        return self.create_session(strict=False)

    def update_session(self, update: SessionUpdate) -> Session:
        self._ensure_session()
        return self.sessions.update_session(update)

    def update_task(self, **changes: Any) -> Session:
        """Partial ``currentTask`` update from keyword fields."""
        if changes.get("progress") is not None:
            changes["progress"] = ProgressState.parse(changes["progress"])
        try:
            update = TaskUpdate(**changes)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid task update: {e.error_count()} invalid field(s)") from e
        return self.update_session(SessionUpdate(task=update))

    def record_change(self, file: str, action: ChangeAction | str = ChangeAction.modified, description: str = "") -> ChangeResult:
        action = ChangeAction.parse(action)
        self._ensure_session()
        return self.sessions.record_change(file, action, description)

    def add_note(self, text: str) -> NoteResult:
        self._ensure_session()
        return self.sessions.add_note(text)

    def add_bug(self, text: str) -> BugResult:
        self._ensure_session()
        return self.sessions.add_bug(text)

    def remove_bug(self, text: str) -> BugResult:
        self._ensure_session()
        return self.sessions.remove_bug(text)

    def apply(self, op: TaskUpdate | ChangeAppend | NoteAppend | BugOp):
        self._ensure_session()
        return self.sessions.apply(op)

    # -- Archive --

    def archive_session(self) -> ArchiveResult:
        return self.archives.archive_session()

    def end_session(self) -> ArchiveResult:
        return self.archive_session()

    def clean_expired(self) -> CleanResult:
        return self.archives.clean_expired()

    def get_archive(self, session_id: str) -> Session:
        return self.archives.get_archive(session_id)

    def list_archives(self) -> list[str]:
        return self.archives.list_archives()

    # -- Patterns --

    def learn_pattern(self, pattern_type: PatternType | str, key: str, data: dict[str, Any]) -> PatternRecord:
        return self.patterns.learn_pattern(pattern_type, key, data)

    def get_patterns(self, pattern_type: PatternType | str) -> dict[str, PatternRecord]:
        return self.patterns.get_patterns(pattern_type)

    def get_pattern(self, pattern_type: PatternType | str, key: str) -> PatternRecord:
        return self.patterns.get_pattern(pattern_type, key)

    def all_patterns(self) -> dict[str, dict[str, PatternRecord]]:
        return self.patterns.all_patterns()

    def forget_pattern(self, pattern_type: PatternType | str, key: str) -> bool:
        return self.patterns.forget_pattern(pattern_type, key)

    # -- Tech stack --

    def get_tech_stack(self) -> TechStack | None:
        return self.techstack.get_tech_stack()

    def update_tech_stack(self, fields: dict[str, Any]) -> TechStack:
        return self.techstack.update_tech_stack(fields)

    # -- Utilities --

    def summary(self) -> dict:
        """Generate a summary of the store contents."""
        session = self.get_current_session()
        stack = self.get_tech_stack()
        patterns = self.all_patterns()
        return {
            "store": str(self.store_dir),
            "session_id": session.session_id if session else None,
            "feature": session.current_task.feature if session else None,
            "progress": session.current_task.progress.value if session else None,
            "files_tracked": len(session.current_task.files) if session else 0,
            "changes_recorded": len(session.recent_changes) if session else 0,
            "notes_count": len(session.context_notes) if session else 0,
            "active_bugs": list(session.active_bugs) if session else [],
            "archives": len(self.list_archives()),
            "pattern_counts": {ptype: len(records) for ptype, records in patterns.items()},
            "tech_stack": stack.entries if stack else {},
        }
