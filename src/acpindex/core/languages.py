"""Canonical language definitions.

Maps file extensions to the language identifiers stored in the index
(``"typescript"``, ``"python"``, ``"c-sharp"``, ...).
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePosixPath


@dataclass(frozen=True, slots=True)
class Language:
    """Canonical definition for one language.

    Attributes:
        name: Identifier stored in file records (lowercase, e.g. "python")
        extensions: File extensions including dot, lowercase
    """

    name: str
    extensions: frozenset[str]


ALL_LANGUAGES: tuple[Language, ...] = (
    Language("typescript", frozenset({".ts", ".tsx"})),
    Language("javascript", frozenset({".js", ".jsx", ".mjs", ".cjs"})),
    Language("python", frozenset({".py", ".pyw"})),
    Language("rust", frozenset({".rs"})),
    Language("go", frozenset({".go"})),
    Language("java", frozenset({".java"})),
    Language("c-sharp", frozenset({".cs"})),
    Language("cpp", frozenset({".cpp", ".cxx", ".cc", ".hpp", ".hxx"})),
    Language("c", frozenset({".c", ".h"})),
    Language("ruby", frozenset({".rb"})),
    Language("php", frozenset({".php"})),
    Language("swift", frozenset({".swift"})),
    Language("kotlin", frozenset({".kt", ".kts"})),
)

_BY_EXTENSION: dict[str, Language] = {
    ext: lang for lang in ALL_LANGUAGES for ext in lang.extensions
}


def detect_language(path: str) -> str | None:
    """Return the language identifier for a path, or None if unsupported."""
    suffix = PurePosixPath(path.replace("\\", "/")).suffix.lower()
    lang = _BY_EXTENSION.get(suffix)
    return lang.name if lang else None
