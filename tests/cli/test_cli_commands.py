"""Integration tests for CLI commands via typer.testing.CliRunner."""

import json
import os

import git
import pytest
from typer.testing import CliRunner

from memcore.cli.main import app

runner = CliRunner()


@pytest.fixture
def project_dir(tmp_path):
    """Create a git repo and chdir into it."""
    repo = git.Repo.init(tmp_path)
    readme = tmp_path / "README.md"
    readme.write_text("# Test\n")
    repo.index.add(["README.md"])
    repo.index.commit("initial")
    original = os.getcwd()
    os.chdir(tmp_path)
    yield tmp_path
    os.chdir(original)


def _json(result):
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


class TestRoot:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "memory-core" in result.output

    def test_init(self, project_dir):
        data = _json(runner.invoke(app, ["init", "--format", "json"]))
        assert data["initialized"] is True
        assert (project_dir / ".claude-memory" / "session" / "archive").is_dir()

    def test_status_json(self, project_dir):
        runner.invoke(app, ["session", "update", "--feature", "Auth"])
        data = _json(runner.invoke(app, ["status", "--format", "json"]))
        assert data["feature"] == "Auth"
        assert data["session_id"] is not None

    def test_status_text(self, project_dir):
        result = runner.invoke(app, ["status", "--format", "text"])
        assert result.exit_code == 0
        assert "no active session" in result.output

    def test_legacy_session_file_exits_cleanly(self, project_dir):
        current = project_dir / ".claude-memory" / "session" / "current.json"
        current.parent.mkdir(parents=True)
        current.write_text(
            json.dumps(
                {
                    "sessionId": "legacy-session",
                    "startedAt": "2000-01-01T00:00:00Z",
                    "expiresAt": "2000-01-02T00:00:00Z",
                }
            )
        )
        result = runner.invoke(app, ["status"])
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)


class TestSession:
    def test_show_without_session(self, project_dir):
        data = _json(runner.invoke(app, ["session", "show", "--format", "json"]))
        assert data == {"session": None}

    def test_start_is_idempotent(self, project_dir):
        first = _json(runner.invoke(app, ["session", "start", "--format", "json"]))
        second = _json(runner.invoke(app, ["session", "start", "--format", "json"]))
        assert first["sessionId"] == second["sessionId"]
        assert first["startedAt"] == second["startedAt"]

    def test_strict_start_conflicts(self, project_dir):
        runner.invoke(app, ["session", "start"])
        result = runner.invoke(app, ["session", "start", "--strict"])
        assert result.exit_code == 1

    def test_replace_archives(self, project_dir):
        runner.invoke(app, ["session", "update", "--note", "old"])
        runner.invoke(app, ["session", "start", "--replace"])
        archives = _json(runner.invoke(app, ["session", "archives", "--format", "json"]))
        assert len(archives) == 1
        session = _json(runner.invoke(app, ["session", "show", "--format", "json"]))
        assert session["contextNotes"] == []

    def test_update(self, project_dir):
        result = runner.invoke(
            app,
            [
                "session", "update",
                "--feature", "Checkout",
                "--progress", "in_progress",
                "--next-step", "add tax",
                "--note", "cart done",
                "--add-bug", "rounding",
                "--format", "json",
            ],
        )
        data = _json(result)
        assert data["currentTask"]["feature"] == "Checkout"
        assert data["currentTask"]["progress"] == "in_progress"
        assert data["currentTask"]["nextSteps"] == ["add tax"]
        assert data["contextNotes"] == ["cart done"]
        assert data["activeBugs"] == ["rounding"]

        data = _json(runner.invoke(app, ["session", "update", "--remove-bug", "rounding", "--format", "json"]))
        assert data["activeBugs"] == []

    def test_update_invalid_progress(self, project_dir):
        result = runner.invoke(app, ["session", "update", "--progress", "sorta"])
        assert result.exit_code == 1

    def test_end_and_fetch_archive(self, project_dir):
        runner.invoke(app, ["session", "update", "--note", "wrap"])
        ended = _json(runner.invoke(app, ["session", "end", "--format", "json"]))
        assert ended["archived"] is True
        archived = _json(runner.invoke(app, ["session", "archive", ended["sessionId"], "--format", "json"]))
        assert archived["contextNotes"] == ["wrap"]

    def test_end_without_session(self, project_dir):
        result = runner.invoke(app, ["session", "end"])
        assert result.exit_code == 1

    def test_archive_missing(self, project_dir):
        result = runner.invoke(app, ["session", "archive", "2020-01-01-morning"])
        assert result.exit_code == 1

    def test_export(self, project_dir):
        runner.invoke(app, ["session", "update", "--feature", "Auth"])
        runner.invoke(app, ["changes", "track", "README.md"])
        data = _json(runner.invoke(app, ["session", "export", "--format", "json"]))
        assert data["markdown"].startswith("- **Auth**:")
        assert data["files"] == "- ./README.md: 1 change"


class TestChanges:
    def test_track_auto_action(self, project_dir):
        data = _json(runner.invoke(app, ["changes", "track", "README.md", "--format", "json"]))
        assert data["change"]["action"] == "modified"
        assert data["change"]["file"] == str(project_dir.resolve() / "README.md")

        data = _json(runner.invoke(app, ["changes", "track", "gone.py", "--format", "json"]))
        assert data["change"]["action"] == "deleted"

    def test_track_explicit_alias(self, project_dir):
        data = _json(runner.invoke(app, ["changes", "track", "new.py", "--action", "create", "--format", "json"]))
        assert data["change"]["action"] == "created"

    def test_track_invalid_action(self, project_dir):
        result = runner.invoke(app, ["changes", "track", "a.py", "--action", "renamed"])
        assert result.exit_code == 1

    def test_list_order_and_limit(self, project_dir):
        for name in ("a.py", "b.py", "c.py"):
            runner.invoke(app, ["changes", "track", name, "--action", "modified"])
        rows = _json(runner.invoke(app, ["changes", "list", "--limit", "2", "--format", "json"]))
        assert [r["file"] for r in rows] == ["./c.py", "./b.py"]
        rows = _json(runner.invoke(app, ["changes", "list", "--chronological", "--format", "json"]))
        assert [r["file"] for r in rows] == ["./a.py", "./b.py", "./c.py"]

    def test_list_filter_by_file(self, project_dir):
        runner.invoke(app, ["changes", "track", "a.py", "--action", "modified"])
        runner.invoke(app, ["changes", "track", "b.py", "--action", "modified"])
        rows = _json(runner.invoke(app, ["changes", "list", "--file", "b.py", "--format", "json"]))
        assert [r["file"] for r in rows] == ["./b.py"]


class TestPatterns:
    def test_learn_and_show(self, project_dir):
        runner.invoke(app, ["pattern", "learn", "api-patterns", "fetch", "--pattern", "p1"])
        runner.invoke(app, ["pattern", "learn", "api-patterns", "fetch", "--example", "e1"])
        data = _json(runner.invoke(app, ["pattern", "show", "api-patterns", "fetch", "--format", "json"]))
        assert data["pattern"] == "p1"
        assert data["example"] == "e1"

        grouped = _json(runner.invoke(app, ["pattern", "show", "--format", "json"]))
        assert list(grouped["api-patterns"]) == ["fetch"]

    def test_learn_without_fields(self, project_dir):
        result = runner.invoke(app, ["pattern", "learn", "api-patterns", "fetch"])
        assert result.exit_code == 1

    def test_bad_type(self, project_dir):
        result = runner.invoke(app, ["pattern", "show", "css"])
        assert result.exit_code == 1

    def test_forget(self, project_dir):
        runner.invoke(app, ["pattern", "learn", "ui-patterns", "modal", "--usage", "dialogs"])
        data = _json(runner.invoke(app, ["pattern", "forget", "ui-patterns", "modal", "--format", "json"]))
        assert data["removed"] is True
        result = runner.invoke(app, ["pattern", "show", "ui-patterns", "modal"])
        assert result.exit_code == 1


class TestStack:
    def test_set_and_show(self, project_dir):
        runner.invoke(app, ["stack", "set", "framework=Next.js"])
        runner.invoke(app, ["stack", "set", "language=TypeScript"])
        data = _json(runner.invoke(app, ["stack", "show", "--format", "json"]))
        assert data["framework"] == "Next.js"
        assert data["language"] == "TypeScript"
        assert "lastUpdated" in data

    def test_bad_pair(self, project_dir):
        result = runner.invoke(app, ["stack", "set", "framework"])
        assert result.exit_code == 1


class TestHooks:
    def test_post_tool_use(self, project_dir):
        payload = {"tool_name": "Write", "tool_input": {"file_path": "notes.md"}, "cwd": str(project_dir)}
        data = _json(runner.invoke(app, ["hook", "post-tool-use", "--format", "json"], input=json.dumps(payload)))
        assert data["triggered"] is True
        assert data["action"] == "created/updated"

    def test_pre_tool_use_prints_reminder(self, project_dir):
        payload = {"tool_name": "Bash", "tool_input": {"command": "git add app.py"}}
        result = runner.invoke(app, ["hook", "pre-tool-use"], input=json.dumps(payload))
        assert result.exit_code == 0
        assert "Update memory before git operation" in result.stdout

    def test_non_mapping_tool_input(self, project_dir):
        payload = {"tool_name": "Edit", "tool_input": ["app.py"], "cwd": str(project_dir)}
        data = _json(runner.invoke(app, ["hook", "post-tool-use", "--format", "json"], input=json.dumps(payload)))
        assert data["triggered"] is False
        assert data["reason"] == "no_file_path"

    def test_malformed_payload_exits_zero(self, project_dir):
        result = runner.invoke(app, ["hook", "user-prompt-submit", "--format", "json"], input="{oops")
        assert result.exit_code == 0
        assert "not_ending_prompt" in result.output


class TestGit:
    def test_track_staged(self, project_dir):
        (project_dir / "app.py").write_text("x = 1\n")
        git.Repo(project_dir).index.add(["app.py"])
        data = _json(runner.invoke(app, ["git", "track-staged", "--format", "json"]))
        assert data["count"] == 1

    def test_track_commit(self, project_dir):
        data = _json(runner.invoke(app, ["git", "track-commit", "--format", "json"]))
        assert data["tracked"] == [str(project_dir.resolve() / "README.md")]

    def test_unknown_rev(self, project_dir):
        result = runner.invoke(app, ["git", "track-commit", "nope"])
        assert result.exit_code == 1

    def test_outside_repo(self, tmp_path):
        original = os.getcwd()
        os.chdir(tmp_path)
        try:
            result = runner.invoke(app, ["git", "track-staged"])
        finally:
            os.chdir(original)
        assert result.exit_code == 1
