"""Git history value types."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

import pygit2

from acpindex.cache.models import GitFileInfo, GitSymbolInfo


@dataclass(frozen=True, slots=True)
class Signature:
    """Git author signature."""

    name: str
    email: str
    time: datetime

    @classmethod
    def from_pygit2(cls, sig: pygit2.Signature) -> Signature:
        return cls(sig.name, sig.email, datetime.fromtimestamp(sig.time, tz=UTC))


@dataclass(frozen=True, slots=True)
class FileHistory:
    """Latest change and contributor summary for one path."""

    last_commit: str
    last_author: Signature
    commit_count: int
    contributors: tuple[str, ...]

    def to_file_info(self) -> GitFileInfo:
        return GitFileInfo(
            last_commit=self.last_commit,
            last_author=self.last_author.name,
            last_modified=self.last_author.time,
            commit_count=self.commit_count,
            contributors=list(self.contributors),
        )


@dataclass(frozen=True, slots=True)
class BlameHunk:
    """Lines ``start_line..end_line`` (inclusive, 1-based) last touched by one commit."""

    commit_sha: str
    author: Signature
    start_line: int
    end_line: int


@dataclass(frozen=True, slots=True)
class BlameInfo:
    """Git blame result."""

    path: str
    hunks: tuple[BlameHunk, ...]

    @classmethod
    def from_pygit2(
        cls,
        path: str,
        blame: pygit2.Blame,
        author_of: Callable[[pygit2.Oid], pygit2.Signature],
    ) -> BlameInfo:
        """Hunks of ``blame``, each attributed to the author of its final commit.

        ``author_of`` maps a commit id to that commit's author signature; the
        blame hunk itself only reliably carries the commit id.
        """
        authors: dict[str, Signature] = {}
        hunks = []
        for hunk in blame:
            sha = str(hunk.final_commit_id)
            if sha not in authors:
                authors[sha] = Signature.from_pygit2(author_of(hunk.final_commit_id))
            start = hunk.final_start_line_number
            hunks.append(
                BlameHunk(
                    commit_sha=sha,
                    author=authors[sha],
                    start_line=start,
                    end_line=start + hunk.lines_in_hunk - 1,
                )
            )
        return cls(path=path, hunks=tuple(hunks))

    def symbol_info(
        self, start: int, end: int, now: datetime | None = None
    ) -> GitSymbolInfo | None:
        """Most recent change within ``start..end``, or None if no hunk overlaps."""
        overlapping = [h for h in self.hunks if h.start_line <= end and h.end_line >= start]
        if not overlapping:
            return None
        latest = max(overlapping, key=lambda h: h.author.time)
        now = now or datetime.now(UTC)
        return GitSymbolInfo(
            last_commit=latest.commit_sha,
            last_author=latest.author.name,
            code_age_days=max((now - latest.author.time).days, 0),
        )
