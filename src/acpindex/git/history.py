"""Version-control history lookups for the indexer.

The indexer depends only on ``HistoryProvider``; ``GitHistoryProvider`` is
the pygit2-backed implementation. Providers hold an open repository and are
used from the indexer's sequential phase only.
"""

from __future__ import annotations

import posixpath
from pathlib import Path
from typing import Protocol

import pygit2

from acpindex.core.logging import get_logger
from acpindex.git.errors import GitError, NotARepositoryError, PathNotTrackedError
from acpindex.git.models import BlameInfo, FileHistory, Signature

log = get_logger("git.history")

DEFAULT_MAX_COMMITS = 1000


class HistoryProvider(Protocol):
    def head_commit(self) -> str | None: ...

    def file_history(self, relative_path: str) -> FileHistory: ...

    def blame(self, relative_path: str) -> BlameInfo: ...


def _blob_id(tree: pygit2.Tree, path: str) -> pygit2.Oid | None:
    try:
        return tree[path].id
    except KeyError:
        return None


class GitHistoryProvider:
    """History facts for files in one repository.

    Args:
        repo_path: Any path inside the working tree
        max_commits: Upper bound on commits walked per ``file_history`` call
    """

    def __init__(self, repo_path: Path | str, max_commits: int = DEFAULT_MAX_COMMITS) -> None:
        discovered = pygit2.discover_repository(str(repo_path))
        if discovered is None:
            raise NotARepositoryError(str(repo_path))
        try:
            self._repo = pygit2.Repository(discovered)
        except pygit2.GitError as e:
            raise NotARepositoryError(str(repo_path)) from e
        self.max_commits = max_commits
        self._prefix = ""
        workdir = self.workdir
        if workdir is not None:
            relative = Path(repo_path).resolve().relative_to(workdir.resolve())
            self._prefix = "" if relative == Path(".") else relative.as_posix()

    @property
    def workdir(self) -> Path | None:
        return Path(self._repo.workdir) if self._repo.workdir else None

    def _repo_path(self, relative_path: str) -> str:
        """Map a path relative to the index root onto the working tree."""
        return posixpath.join(self._prefix, relative_path) if self._prefix else relative_path

    def head_commit(self) -> str | None:
        """Full sha of HEAD, or None on an unborn branch."""
        if self._repo.head_is_unborn:
            return None
        return str(self._repo.head.peel(pygit2.Commit).id)

    def file_history(self, relative_path: str) -> FileHistory:
        """Latest change, commit count and contributors for a tracked file.

        Only commits that changed the file's blob relative to their first
        parent are counted. The walk stops after ``max_commits`` commits.

        Raises:
            PathNotTrackedError: If no walked commit touched the path.
        """
        if self._repo.head_is_unborn:
            raise PathNotTrackedError(relative_path)

        path = self._repo_path(relative_path)
        latest: pygit2.Commit | None = None
        count = 0
        contributors: set[str] = set()
        walker = self._repo.walk(self._repo.head.target, pygit2.GIT_SORT_TIME)

        for walked, commit in enumerate(walker):
            if walked >= self.max_commits:
                break
            blob = _blob_id(commit.tree, path)
            if blob is None:
                continue
            if commit.parents and _blob_id(commit.parents[0].tree, path) == blob:
                continue
            if latest is None:
                latest = commit
            count += 1
            contributors.add(commit.author.name)

        if latest is None:
            raise PathNotTrackedError(relative_path)
        log.debug("file_history", path=relative_path, commits=count)
        return FileHistory(
            last_commit=str(latest.id),
            last_author=Signature.from_pygit2(latest.author),
            commit_count=count,
            contributors=tuple(sorted(contributors)),
        )

    def blame(self, relative_path: str) -> BlameInfo:
        """Line ranges of ``relative_path`` mapped to the commit that last touched them."""
        try:
            raw = self._repo.blame(self._repo_path(relative_path))
        except (KeyError, ValueError) as e:
            raise PathNotTrackedError(relative_path) from e
        except pygit2.GitError as e:
            raise GitError(f"blame failed for {relative_path}: {e}") from e
        return BlameInfo.from_pygit2(relative_path, raw, self._author_of)

    def _author_of(self, commit_id: pygit2.Oid) -> pygit2.Signature:
        return self._repo[commit_id].peel(pygit2.Commit).author
