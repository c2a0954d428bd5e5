"""Archive snapshots of closed or expired sessions."""

from __future__ import annotations

import logging
from pathlib import Path

from memcore.core.clock import Clock, is_valid_session_id, utcnow
from memcore.core.documents import read_document, write_document
from memcore.core.errors import NotFoundError, ValidationError
from memcore.core.schema import ArchiveResult, CleanResult, Session
from memcore.core.sessions import SessionRepository
from memcore.utils.paths import ARCHIVE_DIR

logger = logging.getLogger(__name__)


class ArchiveManager:
    """Moves the active session into ``session/archive/<sessionId>.json``."""

    def __init__(self, store_dir: Path, repository: SessionRepository, clock: Clock = utcnow) -> None:
        self.archive_dir = store_dir / ARCHIVE_DIR
        self.repository = repository
        self.clock = clock

    def archive_path(self, session_id: str) -> Path:
        if not is_valid_session_id(session_id):
            raise ValidationError(f"Invalid session id: {session_id!r}")
        return self.archive_dir / f"{session_id}.json"

    def archive_session(self) -> ArchiveResult:
        """Snapshot the session in the slot (expired or not) and clear the slot.

        An existing snapshot with the same id is overwritten.
        """
        session = self.repository.get_active()
        if session is None:
            raise NotFoundError("No active session to archive")
        path = self.archive_path(session.session_id)
        write_document(path, session)
        self.repository.clear()
        logger.info("Archived session %s to %s", session.session_id, path)
        return ArchiveResult(archived=True, archive_file=str(path), session_id=session.session_id)

    def clean_expired(self) -> CleanResult:
        session = self.repository.get_active()
        if session is None or not session.is_expired(self.clock()):
            return CleanResult(cleaned=False)
        result = self.archive_session()
        logger.info("Session %s expired", result.session_id)
        return CleanResult(cleaned=True, session_id=result.session_id)

    def get_archive(self, session_id: str) -> Session:
        session = read_document(self.archive_path(session_id), Session)
        if session is None:
            raise NotFoundError(f"No archive for session '{session_id}'")
        return session

    def list_archives(self) -> list[str]:
        if not self.archive_dir.is_dir():
            return []
        return sorted(f.stem for f in self.archive_dir.glob("*.json") if is_valid_session_id(f.stem))
