"""Current-session slot and the operations that mutate it."""

from __future__ import annotations

import logging
from datetime import timedelta
from pathlib import Path

from memcore.core.clock import DEFAULT_SESSION_TTL, Clock, session_id_for, utcnow
from memcore.core.documents import read_document, remove_document, write_document
from memcore.core.errors import ConflictError, NotFoundError, ValidationError
from memcore.core.schema import (
    MAX_RECENT_CHANGES,
    BugOp,
    BugResult,
    ChangeAction,
    ChangeAppend,
    ChangeRecord,
    ChangeResult,
    NoteAppend,
    NoteResult,
    Session,
    SessionUpdate,
    TaskUpdate,
)
from memcore.utils.paths import CURRENT_SESSION_FILE

logger = logging.getLogger(__name__)


class SessionRepository:
    """The single active-session slot (``session/current.json``)."""

    def __init__(self, store_dir: Path) -> None:
        self.path = store_dir / CURRENT_SESSION_FILE

    def get_active(self) -> Session | None:
        """Return the stored session regardless of expiry."""
        return read_document(self.path, Session)

    def set_active(self, session: Session) -> None:
        write_document(self.path, session)

    def clear(self) -> bool:
        return remove_document(self.path)


class SessionManager:
    """Create/read/update operations on the active session."""

    def __init__(
        self,
        repository: SessionRepository,
        clock: Clock = utcnow,
        ttl: timedelta = DEFAULT_SESSION_TTL,
    ) -> None:
        self.repository = repository
        self.clock = clock
        self.ttl = ttl

    def get_current_session(self) -> Session | None:
        session = self.repository.get_active()
        if session is None or session.is_expired(self.clock()):
            return None
        return session

    def create_session(self, strict: bool = False) -> Session:
        """Start a session, reusing an unexpired one unless ``strict``.

        An expired document in the slot is overwritten; callers that need it
        archived go through the store facade.
        """
        now = self.clock()
        existing = self.repository.get_active()
        if existing is not None and not existing.is_expired(now):
            if strict:
                raise ConflictError(
                    f"Session '{existing.session_id}' is still active until {existing.expires_at.isoformat()}"
                )
            return existing

        session = Session(
            session_id=session_id_for(now),
            started_at=now,
            expires_at=now + self.ttl,
        )
        self.repository.set_active(session)
        logger.info("Created session %s", session.session_id)
        return session

    def _require_session(self) -> Session:
        session = self.get_current_session()
        if session is None:
            raise NotFoundError("No active session")
        return session

    # -- Updates --

    def update_session(self, update: SessionUpdate) -> Session:
        session = self._require_session()
        if update.task is not None:
            self._apply_task(session, update.task)
        if update.recent_changes is not None:
            session.recent_changes = list(update.recent_changes)[-MAX_RECENT_CHANGES:]
        if update.context_notes is not None:
            session.context_notes = list(update.context_notes)
        if update.active_bugs is not None:
            session.active_bugs = list(dict.fromkeys(update.active_bugs))
        self.repository.set_active(session)
        return session

    def update_task(self, update: TaskUpdate) -> Session:
        return self.update_session(SessionUpdate(task=update))

    @staticmethod
    def _apply_task(session: Session, update: TaskUpdate) -> None:
        task = session.current_task
        provided = update.model_fields_set
        if "feature" in provided:
            task.feature = update.feature
        if update.progress is not None:
            task.progress = update.progress
        if update.files is not None:
            task.files = list(dict.fromkeys(update.files))
        if update.clear_next_steps:
            task.next_steps = []
        if update.next_steps is not None:
            task.next_steps = list(update.next_steps)
        if update.add_next_step:
            task.next_steps.append(update.add_next_step)

    def record_change(self, file: str, action: ChangeAction | str, description: str = "") -> ChangeResult:
        """Append a change record, evicting the oldest past capacity."""
        action = ChangeAction.parse(action)
        if not file or not file.strip():
            raise ValidationError("File path is required")
        session = self._require_session()

        change = ChangeRecord(
            file=file,
            action=action,
            description=description or f"Tracked: {action.value}",
            timestamp=self.clock(),
        )
        session.recent_changes.append(change)
        del session.recent_changes[:-MAX_RECENT_CHANGES]
        if file not in session.current_task.files:
            session.current_task.files.append(file)

        self.repository.set_active(session)
        logger.debug("Recorded %s %s in %s", action.value, file, session.session_id)
        return ChangeResult(recorded=True, change=change)

    def add_note(self, text: str) -> NoteResult:
        text = (text or "").strip()
        if not text:
            raise ValidationError("Note text cannot be empty")
        session = self._require_session()
        if session.context_notes and session.context_notes[-1] == text:
            return NoteResult(added=False, note=text)
        session.context_notes.append(text)
        self.repository.set_active(session)
        return NoteResult(added=True, note=text)

    def add_bug(self, text: str) -> BugResult:
        text = (text or "").strip()
        if not text:
            raise ValidationError("Bug description cannot be empty")
        session = self._require_session()
        if text in session.active_bugs:
            return BugResult(changed=False, bug=text)
        session.active_bugs.append(text)
        self.repository.set_active(session)
        return BugResult(changed=True, bug=text)

    def remove_bug(self, text: str) -> BugResult:
        session = self._require_session()
        if text not in session.active_bugs:
            return BugResult(changed=False, bug=text)
        session.active_bugs = [b for b in session.active_bugs if b != text]
        self.repository.set_active(session)
        return BugResult(changed=True, bug=text)

    def apply(self, op: TaskUpdate | ChangeAppend | NoteAppend | BugOp):
        """Dispatch a tagged update to the matching operation."""
        if isinstance(op, TaskUpdate):
            return self.update_task(op)
        if isinstance(op, ChangeAppend):
            return self.record_change(op.file, op.action, op.description)
        if isinstance(op, NoteAppend):
            return self.add_note(op.text)
        if isinstance(op, BugOp):
            if op.op == "add":
                return self.add_bug(op.text)
            return self.remove_bug(op.text)
        raise ValidationError(f"Unsupported session update: {type(op).__name__}")
