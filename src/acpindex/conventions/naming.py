"""Per-directory file naming pattern detection.

For every directory with enough files, find the suffix (``.service.ts``,
``_test.go``, or a plain extension) that most files share. A suffix only
counts as a convention when at least ``CONFIDENCE_THRESHOLD`` of the
directory's non-hidden files carry it. Confusable sibling suffixes the
directory does not use are reported as anti-patterns.
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass, field

from acpindex.cache.models import FileNamingConvention
from acpindex.config.constants import CONFIDENCE_THRESHOLD, MAX_EXAMPLES, MIN_FILES_FOR_PATTERN

# Longest first within each family; the first match wins.
COMPOUND_SUFFIXES: tuple[str, ...] = (
    ".controller.ts",
    ".controller.js",
    ".service.ts",
    ".service.js",
    ".module.ts",
    ".module.js",
    ".route.ts",
    ".route.js",
    ".routes.ts",
    ".routes.js",
    ".spec.ts",
    ".spec.js",
    ".test.ts",
    ".test.js",
    ".types.ts",
    ".types.js",
    ".model.ts",
    ".model.js",
    ".dto.ts",
    ".dto.js",
    ".entity.ts",
    ".entity.js",
    ".component.tsx",
    ".component.ts",
    ".hook.ts",
    ".hook.tsx",
    ".util.ts",
    ".utils.ts",
    ".helper.ts",
    ".config.ts",
    ".config.js",
    ".const.ts",
    ".constants.ts",
    "_test.go",
    "_test.py",
    ".test.py",
    "_spec.rb",
)

CONFUSABLE_SUFFIXES: dict[str, tuple[str, ...]] = {
    ".ts": (".tsx", ".js"),
    ".tsx": (".ts",),
    ".js": (".jsx", ".ts"),
    ".jsx": (".js",),
    ".route.ts": (".routes.ts",),
    ".routes.ts": (".route.ts",),
    ".test.ts": (".spec.ts",),
    ".spec.ts": (".test.ts",),
    ".test.js": (".spec.js",),
    ".spec.js": (".test.js",),
    "_test.go": ("_test.ts",),
    ".service.ts": (".services.ts",),
    ".controller.ts": (".controllers.ts",),
}


@dataclass
class _Tally:
    count: int = 0
    examples: list[str] = field(default_factory=list)


class NamingDetector:
    """Detect naming conventions from a flat list of relative file paths."""

    def __init__(self, compound_suffixes: tuple[str, ...] = COMPOUND_SUFFIXES) -> None:
        self.compound_suffixes = compound_suffixes

    def detect_patterns(self, files: list[str]) -> list[FileNamingConvention]:
        conventions = []
        for directory, names in self._group_by_directory(files).items():
            if len(names) < MIN_FILES_FOR_PATTERN:
                continue
            convention = self._detect_directory_pattern(directory, names)
            if convention is not None:
                conventions.append(convention)
        conventions.sort(key=lambda c: c.directory)
        return conventions

    def extract_suffix(self, filename: str) -> str:
        """Compound suffix if one matches, else the last extension, else ""."""
        for compound in self.compound_suffixes:
            if filename.endswith(compound):
                return compound
        dot = filename.rfind(".")
        return filename[dot:] if dot != -1 else ""

    @staticmethod
    def _group_by_directory(files: list[str]) -> dict[str, list[str]]:
        groups: dict[str, list[str]] = {}
        for path in files:
            directory, name = posixpath.split(path.replace("\\", "/"))
            if not name:
                continue
            groups.setdefault(directory or ".", []).append(name)
        return groups

    def _detect_directory_pattern(
        self, directory: str, names: list[str]
    ) -> FileNamingConvention | None:
        visible = [name for name in names if not name.startswith(".")]
        if not visible:
            return None

        tallies: dict[str, _Tally] = {}
        for name in visible:
            tally = tallies.setdefault(self.extract_suffix(name), _Tally())
            tally.count += 1
            tally.examples.append(name)

        best: tuple[str, _Tally] | None = None
        for suffix, tally in tallies.items():
            if tally.count / len(visible) < CONFIDENCE_THRESHOLD:
                continue
            if best is None or tally.count > best[1].count:
                best = (suffix, tally)

        if best is None:
            return None
        suffix, tally = best
        return FileNamingConvention(
            directory=directory,
            pattern=f"*{suffix}",
            confidence=tally.count / len(visible),
            examples=tally.examples[:MAX_EXAMPLES],
            anti_patterns=[
                f"*{alt}" for alt in CONFUSABLE_SUFFIXES.get(suffix, ()) if alt not in tallies
            ],
        )


def detect_naming_conventions(files: list[str]) -> list[FileNamingConvention]:
    return NamingDetector().detect_patterns(files)
