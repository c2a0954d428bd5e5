"""Tests for project-root discovery and path display."""

from pathlib import Path

from memcore.utils.paths import find_project_root, short_path, to_absolute_path


def test_find_root_from_subdirectory(tmp_git_repo):
    nested = tmp_git_repo / "src" / "pkg"
    nested.mkdir(parents=True)
    assert find_project_root(nested) == tmp_git_repo.resolve()


def test_store_dir_marks_root(tmp_path):
    (tmp_path / ".claude-memory").mkdir()
    (tmp_path / "sub").mkdir()
    assert find_project_root(tmp_path / "sub") == tmp_path.resolve()


def test_to_absolute_path(tmp_path):
    assert to_absolute_path("a/../b.py", tmp_path) == str(tmp_path.resolve() / "b.py")
    assert to_absolute_path(str(tmp_path / "c.py")) == str(tmp_path.resolve() / "c.py")


def test_short_path():
    root = Path("/work/proj")
    assert short_path("/work/proj/src/a.py", root) == "./src/a.py"
    assert short_path("/work/proj", root) == "."
    assert short_path("/work/project2/a.py", root) == "/work/project2/a.py"
