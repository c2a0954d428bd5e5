"""Shared fixtures: temp git repos, a controllable clock, stores."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import git
import pytest

from memcore.core.store import MemoryStore

START = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = START) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path_factory, monkeypatch) -> Path:
    """Point the global config at a throwaway directory."""
    config_dir = tmp_path_factory.mktemp("config")
    monkeypatch.setenv("MEMCORE_CONFIG_DIR", str(config_dir))
    return config_dir


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def tmp_git_repo(tmp_path: Path) -> Path:
    """Create a temporary git repository with one commit."""
    repo = git.Repo.init(tmp_path)
    readme = tmp_path / "README.md"
    readme.write_text("# Test\n")
    repo.index.add(["README.md"])
    repo.index.commit("initial")
    return tmp_path


@pytest.fixture
def store(tmp_git_repo: Path, clock: FakeClock) -> MemoryStore:
    """An initialized MemoryStore driven by the fake clock."""
    s = MemoryStore(tmp_git_repo, clock=clock)
    s.initialize()
    return s
