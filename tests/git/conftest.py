"""Test fixtures for git module."""

from __future__ import annotations

from collections.abc import Callable, Generator
from pathlib import Path

import pygit2
import pytest

# 2024-01-01T00:00:00Z
BASE_TIME = 1704067200
DAY = 86400

CommitFile = Callable[..., str]


@pytest.fixture
def temp_repo(tmp_path: Path) -> Generator[pygit2.Repository, None, None]:
    """Create a temporary git repository with initial commit."""
    repo_path = tmp_path / "repo"
    repo_path.mkdir()

    repo = pygit2.init_repository(str(repo_path), initial_head="main")

    # Configure user
    repo.config["user.name"] = "Test User"
    repo.config["user.email"] = "test@example.com"

    # Create initial commit
    (repo_path / "README.md").write_text("# Test Repo\n")
    repo.index.add("README.md")
    repo.index.write()
    tree = repo.index.write_tree()
    sig = pygit2.Signature("Test User", "test@example.com", BASE_TIME, 0)
    repo.create_commit("refs/heads/main", sig, sig, "Initial commit", tree, [])

    # Set HEAD to main
    repo.set_head("refs/heads/main")

    yield repo


@pytest.fixture
def commit_file(temp_repo: pygit2.Repository) -> CommitFile:
    """Write a file and commit it on top of HEAD; returns the commit sha."""
    workdir = Path(temp_repo.workdir)

    def _commit(
        path: str,
        content: str,
        author: str = "Test User",
        day: int = 1,
        committer: str | None = None,
    ) -> str:
        target = workdir / path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content)
        temp_repo.index.add(path)
        temp_repo.index.write()
        tree = temp_repo.index.write_tree()
        email = f"{author.split()[0].lower()}@example.com"
        sig = pygit2.Signature(author, email, BASE_TIME + day * DAY, 0)
        committed_by = sig
        if committer is not None:
            committed_by = pygit2.Signature(committer, "ci@example.com", BASE_TIME + day * DAY, 0)
        oid = temp_repo.create_commit(
            "HEAD", sig, committed_by, f"Update {path}", tree, [temp_repo.head.target]
        )
        return str(oid)

    return _commit


@pytest.fixture
def unborn_repo(tmp_path: Path) -> pygit2.Repository:
    """Repository without any commit."""
    return pygit2.init_repository(str(tmp_path / "empty"), initial_head="main")
