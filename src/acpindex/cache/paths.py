"""Cross-platform path normalization and tolerant key lookup.

Index keys are written once, with whatever prefix convention the indexing
run used, and queried later with OS-specific or differently-rooted paths.
"""

from collections.abc import Mapping
from typing import TypeVar

V = TypeVar("V")


def normalize_path(path: str) -> str:
    """Normalize a relative path for use as an index key.

    Backslashes become forward slashes; ``.`` and empty segments are dropped;
    ``..`` pops the previous segment (never above the root).

    >>> normalize_path("./src//a/../b.ts")
    'src/b.ts'
    """
    parts: list[str] = []
    for segment in path.replace("\\", "/").split("/"):
        if segment in ("", "."):
            continue
        if segment == "..":
            if parts:
                parts.pop()
            continue
        parts.append(segment)
    return "/".join(parts)


def lookup_path(table: Mapping[str, V], path: str) -> V | None:
    """Find ``path`` in a path-keyed mapping, tolerating prefix/separator variants.

    Tries, in order: the exact key, the normalized key, the normalized key with
    a ``./`` prefix, and the normalized key with any ``./`` prefix stripped.
    """
    if path in table:
        return table[path]

    normalized = normalize_path(path)
    for candidate in (normalized, f"./{normalized}", normalized.removeprefix("./")):
        if candidate in table:
            return table[candidate]
    return None
