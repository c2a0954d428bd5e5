"""Git-backed change tracking: record staged and committed files."""

from __future__ import annotations

import logging
from pathlib import Path

import git

from memcore.core.schema import ChangeAction, ChangeResult
from memcore.core.store import MemoryStore
from memcore.utils.paths import STORE_DIR

logger = logging.getLogger(__name__)


class GitTrackError(Exception):
    pass


class GitChangeTracker:
    """Feeds git activity into the session change history."""

    def __init__(self, store: MemoryStore, project_root: Path | None = None) -> None:
        self.store = store
        self.root = (project_root or store.root).resolve()
        try:
            self.repo = git.Repo(self.root, search_parent_directories=True)
        except (git.InvalidGitRepositoryError, git.NoSuchPathError):
            raise GitTrackError(f"Not a git repository: {self.root}")
        if self.repo.working_tree_dir is None:
            raise GitTrackError(f"Bare repositories are not supported: {self.root}")
        self.work_tree = Path(self.repo.working_tree_dir).resolve()

    def _is_store_path(self, path: str) -> bool:
        return path == STORE_DIR or path.startswith(STORE_DIR + "/")

    def staged_files(self) -> list[str]:
        """Repo-relative paths staged for the next commit."""
        if self.repo.head.is_valid():
            paths = [d.a_path or d.b_path for d in self.repo.index.diff("HEAD")]
        else:
            # No commits yet: everything in the index is staged
            paths = [path for path, _stage in self.repo.index.entries]
        unique = dict.fromkeys(p for p in paths if p and not self._is_store_path(p))
        return sorted(unique)

    def track_staged(self) -> list[ChangeResult]:
        results = []
        for rel in self.staged_files():
            results.append(
                self.store.record_change(str(self.work_tree / rel), ChangeAction.staged, "git: staged")
            )
        logger.debug("Tracked %d staged file(s)", len(results))
        return results

    def committed_files(self, rev: str = "HEAD") -> list[str]:
        try:
            commit = self.repo.commit(rev)
        except (git.BadName, ValueError):
            raise GitTrackError(f"Unknown revision: {rev}")
        return [p for p in commit.stats.files if not self._is_store_path(str(p))]

    def track_commit(self, rev: str = "HEAD") -> list[ChangeResult]:
        """Record every file touched by ``rev`` as committed."""
        files = self.committed_files(rev)
        commit = self.repo.commit(rev)
        description = f"git commit {commit.hexsha[:7]}: {commit.summary}"
        return [
            self.store.record_change(str(self.work_tree / str(rel)), ChangeAction.committed, description)
            for rel in files
        ]
