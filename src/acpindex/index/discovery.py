"""File discovery: walk the tree and apply include/exclude globs.

Globs are matched against root-relative POSIX paths with ``fnmatch``
semantics, so ``*`` also matches ``/`` and leading dots. A ``**/`` prefix
additionally matches at the root (``**/*.ts`` matches ``a.ts``).
"""

from __future__ import annotations

import os
from collections.abc import Sequence
from fnmatch import fnmatchcase
from pathlib import Path

from acpindex.core.logging import get_logger

log = get_logger("index.discovery")


def matches_glob(path: str, pattern: str) -> bool:
    """Whether a root-relative POSIX ``path`` matches ``pattern``."""
    if fnmatchcase(path, pattern):
        return True
    if pattern.startswith("**/"):
        return fnmatchcase(path, pattern[3:]) or matches_glob(path, pattern[3:])
    if "**/" in pattern:
        return fnmatchcase(path, pattern.replace("**/", ""))
    return False


def is_included(path: str, include: Sequence[str], exclude: Sequence[str]) -> bool:
    """Included iff some include pattern matches (or none are given) and no exclude does."""
    if include and not any(matches_glob(path, pattern) for pattern in include):
        return False
    return not any(matches_glob(path, pattern) for pattern in exclude)


def _excluded_dir(rel_dir: str, exclude: Sequence[str]) -> bool:
    # A directory is pruned when anything beneath it would be excluded.
    probe = f"{rel_dir}/_"
    return any(matches_glob(probe, pattern) for pattern in exclude if pattern.endswith("/**"))


def discover_files(root: Path, include: Sequence[str], exclude: Sequence[str]) -> list[str]:
    """Sorted root-relative POSIX paths of every candidate file under ``root``.

    Symlinked directories are not followed. Unreadable directories are logged
    and skipped.
    """

    def on_error(err: OSError) -> None:
        log.warning("walk_error", path=err.filename, error=err.strerror or str(err))

    found: list[str] = []
    for dirpath, dirnames, filenames in os.walk(root, onerror=on_error, followlinks=False):
        rel_dir = Path(dirpath).relative_to(root).as_posix()
        rel_dir = "" if rel_dir == "." else rel_dir

        dirnames[:] = sorted(
            d for d in dirnames if not _excluded_dir(f"{rel_dir}/{d}" if rel_dir else d, exclude)
        )
        for filename in sorted(filenames):
            rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
            if not (Path(dirpath) / filename).is_file():
                continue
            if is_included(rel_path, include, exclude):
                found.append(rel_path)

    found.sort()
    log.debug("files_discovered", root=str(root), count=len(found))
    return found
