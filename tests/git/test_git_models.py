"""Tests for git/models.py."""

from __future__ import annotations

from datetime import UTC, datetime

import pygit2

from acpindex.git import BlameHunk, BlameInfo, FileHistory, Signature


def _sig(name: str, day: int) -> Signature:
    return Signature(name, f"{name.lower()}@example.com", datetime(2024, 1, day, tzinfo=UTC))


class TestSignature:
    """Signature conversion."""

    def test_from_pygit2(self) -> None:
        """Epoch seconds become an aware UTC datetime."""
        raw = pygit2.Signature("Alice", "alice@example.com", 1704067200, 0)

        sig = Signature.from_pygit2(raw)

        assert sig.name == "Alice"
        assert sig.email == "alice@example.com"
        assert sig.time == datetime(2024, 1, 1, tzinfo=UTC)


class TestBlameInfo:
    """Symbol-level summaries of blame hunks."""

    def test_latest_overlapping_hunk_wins(self) -> None:
        """The most recent overlapping hunk supplies the info."""
        blame = BlameInfo(
            path="a.py",
            hunks=(
                BlameHunk("old", _sig("Alice", 1), 1, 10),
                BlameHunk("new", _sig("Bob", 5), 11, 12),
                BlameHunk("newest", _sig("Carol", 9), 20, 30),
            ),
        )

        info = blame.symbol_info(5, 11, now=datetime(2024, 1, 15, tzinfo=UTC))

        assert info is not None
        assert info.last_commit == "new"
        assert info.last_author == "Bob"
        assert info.code_age_days == 10

    def test_no_overlap(self) -> None:
        """Ranges outside every hunk have no info."""
        blame = BlameInfo(path="a.py", hunks=(BlameHunk("c", _sig("Alice", 1), 1, 3),))

        assert blame.symbol_info(4, 8) is None

    def test_future_commit_clamped(self) -> None:
        """Clock skew never yields a negative age."""
        blame = BlameInfo(path="a.py", hunks=(BlameHunk("c", _sig("Alice", 20), 1, 3),))

        info = blame.symbol_info(1, 1, now=datetime(2024, 1, 1, tzinfo=UTC))

        assert info is not None
        assert info.code_age_days == 0


class TestFileHistory:
    """File history conversion."""

    def test_to_file_info(self) -> None:
        """Author name and time are flattened into the record."""
        history = FileHistory(
            last_commit="abc",
            last_author=_sig("Alice", 2),
            commit_count=4,
            contributors=("Alice", "Bob"),
        )

        info = history.to_file_info()

        assert info.last_commit == "abc"
        assert info.last_author == "Alice"
        assert info.last_modified == datetime(2024, 1, 2, tzinfo=UTC)
        assert info.commit_count == 4
        assert info.contributors == ["Alice", "Bob"]
