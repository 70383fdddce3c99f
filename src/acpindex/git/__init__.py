"""Git history for index records (pygit2)."""

from acpindex.git.errors import GitError, NotARepositoryError, PathNotTrackedError
from acpindex.git.history import GitHistoryProvider, HistoryProvider
from acpindex.git.models import BlameHunk, BlameInfo, FileHistory, Signature

__all__ = [
    "BlameHunk",
    "BlameInfo",
    "FileHistory",
    "GitError",
    "GitHistoryProvider",
    "HistoryProvider",
    "NotARepositoryError",
    "PathNotTrackedError",
    "Signature",
]
