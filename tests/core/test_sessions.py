"""Tests for the active-session slot and its mutations."""

import json
from datetime import timedelta

import pytest

from memcore.core.errors import ConflictError, NotFoundError, ValidationError
from memcore.core.schema import (
    BugOp,
    ChangeAppend,
    ChangeRecord,
    NoteAppend,
    ProgressState,
    SessionUpdate,
    TaskUpdate,
)
from memcore.core.sessions import SessionManager, SessionRepository


@pytest.fixture
def manager(tmp_path, clock) -> SessionManager:
    return SessionManager(SessionRepository(tmp_path / ".claude-memory"), clock=clock)


class TestCreate:
    def test_create_stamps_id_and_expiry(self, manager, clock):
        session = manager.create_session()
        assert session.session_id == "2024-01-01-morning"
        assert session.started_at == clock.now
        assert session.expires_at == clock.now + timedelta(hours=24)
        assert session.current_task.progress == ProgressState.not_started

    def test_create_writes_camel_case_document(self, manager):
        manager.create_session()
        data = json.loads(manager.repository.path.read_text())
        assert data["sessionId"] == "2024-01-01-morning"
        assert data["expiresAt"] == "2024-01-02T09:00:00Z"
        assert data["currentTask"]["nextSteps"] == []

    def test_create_reuses_active_session(self, manager, clock):
        first = manager.create_session()
        manager.add_note("keep me")
        clock.advance(hours=5)
        again = manager.create_session()
        assert again.session_id == first.session_id
        assert again.context_notes == ["keep me"]

    def test_strict_create_conflicts(self, manager):
        manager.create_session()
        with pytest.raises(ConflictError):
            manager.create_session(strict=True)

    def test_create_replaces_expired_session(self, manager, clock):
        manager.create_session()
        clock.advance(hours=25)
        session = manager.create_session(strict=True)
        assert session.session_id == "2024-01-02-morning"
        assert session.context_notes == []

    def test_custom_ttl(self, tmp_path, clock):
        manager = SessionManager(SessionRepository(tmp_path), clock=clock, ttl=timedelta(hours=2))
        session = manager.create_session()
        assert session.expires_at - session.started_at == timedelta(hours=2)


class TestGetCurrent:
    def test_none_when_absent(self, manager):
        assert manager.get_current_session() is None

    def test_expired_is_invisible(self, manager, clock):
        manager.create_session()
        clock.advance(hours=24)
        assert manager.get_current_session() is None
        # still in the slot until archived
        assert manager.repository.get_active() is not None


class TestChanges:
    def test_record_change(self, manager, clock):
        manager.create_session()
        result = manager.record_change("/p/app.py", "create", "")
        assert result.recorded
        assert result.change.action.value == "created"
        assert result.change.description == "Tracked: created"
        assert result.change.timestamp == clock.now
        session = manager.get_current_session()
        assert session.current_task.files == ["/p/app.py"]

    def test_only_latest_twenty_kept(self, manager):
        manager.create_session()
        for i in range(1, 23):
            manager.record_change(f"/p/f{i}.py", "modified")
        changes = manager.get_current_session().recent_changes
        assert len(changes) == 20
        assert changes[0].file == "/p/f3.py"
        assert changes[-1].file == "/p/f22.py"

    def test_files_not_duplicated(self, manager):
        manager.create_session()
        manager.record_change("/p/a.py", "modified")
        manager.record_change("/p/a.py", "deleted")
        session = manager.get_current_session()
        assert session.current_task.files == ["/p/a.py"]
        assert len(session.recent_changes) == 2

    def test_invalid_action_writes_nothing(self, manager):
        manager.create_session()
        with pytest.raises(ValidationError):
            manager.record_change("/p/a.py", "renamed")
        assert manager.get_current_session().recent_changes == []

    def test_empty_file_rejected(self, manager):
        manager.create_session()
        with pytest.raises(ValidationError):
            manager.record_change("  ", "modified")

    def test_requires_session(self, manager):
        with pytest.raises(NotFoundError):
            manager.record_change("/p/a.py", "modified")


class TestNotesAndBugs:
    def test_note_repeat_ignored(self, manager):
        manager.create_session()
        assert manager.add_note("wired up auth").added
        assert not manager.add_note("wired up auth").added
        assert manager.add_note("tests pass").added
        assert manager.add_note("wired up auth").added
        assert manager.get_current_session().context_notes == ["wired up auth", "tests pass", "wired up auth"]

    def test_empty_note_rejected(self, manager):
        manager.create_session()
        with pytest.raises(ValidationError):
            manager.add_note("   ")

    def test_bugs_are_a_set(self, manager):
        manager.create_session()
        assert manager.add_bug("login 500").changed
        assert not manager.add_bug("login 500").changed
        assert manager.get_current_session().active_bugs == ["login 500"]

    def test_remove_bug_idempotent(self, manager):
        manager.create_session()
        manager.add_bug("login 500")
        assert manager.remove_bug("login 500").changed
        assert not manager.remove_bug("login 500").changed
        assert manager.get_current_session().active_bugs == []


class TestUpdates:
    def test_task_update_is_partial(self, manager):
        manager.create_session()
        manager.update_task(TaskUpdate(feature="Auth", progress="in_progress"))
        session = manager.update_task(TaskUpdate(add_next_step="write tests"))
        task = session.current_task
        assert task.feature == "Auth"
        assert task.progress == ProgressState.in_progress
        assert task.next_steps == ["write tests"]

    def test_feature_can_be_cleared(self, manager):
        manager.create_session()
        manager.update_task(TaskUpdate(feature="Auth"))
        session = manager.update_task(TaskUpdate(feature=None))
        assert session.current_task.feature is None

    def test_clear_then_append_steps(self, manager):
        manager.create_session()
        manager.update_task(TaskUpdate(next_steps=["a", "b"]))
        session = manager.update_task(TaskUpdate(clear_next_steps=True, add_next_step="c"))
        assert session.current_task.next_steps == ["c"]

    def test_wholesale_changes_trimmed(self, manager, clock):
        manager.create_session()
        changes = [ChangeRecord(file=f"/p/{i}", action="modified", timestamp=clock.now) for i in range(30)]
        session = manager.update_session(SessionUpdate(recent_changes=changes))
        assert len(session.recent_changes) == 20
        assert session.recent_changes[0].file == "/p/10"

    def test_update_requires_session(self, manager):
        with pytest.raises(NotFoundError):
            manager.update_session(SessionUpdate(context_notes=["x"]))

    def test_apply_dispatch(self, manager):
        manager.create_session()
        manager.apply(ChangeAppend(file="/p/a.py", action="deleted"))
        manager.apply(NoteAppend(text="note"))
        manager.apply(BugOp(op="add", text="bug"))
        result = manager.apply(BugOp(op="remove", text="bug"))
        assert result.changed
        session = manager.get_current_session()
        assert session.recent_changes[0].action.value == "deleted"
        assert session.context_notes == ["note"]
        assert session.active_bugs == []
