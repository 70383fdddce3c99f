"""Project-wide convention analysis run at the end of indexing."""

from __future__ import annotations

import posixpath

from acpindex.cache.models import Conventions, ImportConventions, ModuleSystem, PathStyle
from acpindex.conventions.naming import NamingDetector

_JS_LANGUAGES = frozenset({"javascript", "typescript"})
_INDEX_MODULES = frozenset({"index.ts", "index.tsx", "index.js", "index.jsx"})


class ConventionsAnalyzer:
    """Naming conventions plus JavaScript/TypeScript import conventions."""

    def __init__(self, naming: NamingDetector | None = None) -> None:
        self.naming = naming or NamingDetector()

    def analyze(self, files: list[str], languages: dict[str, str] | None = None) -> Conventions:
        """Detect conventions for ``files``.

        Args:
            files: Relative file paths
            languages: Path to language name; without it no import
                conventions are reported
        """
        return Conventions(
            file_naming=self.naming.detect_patterns(files),
            imports=self._import_conventions(files, languages or {}),
        )

    @staticmethod
    def _import_conventions(
        files: list[str], languages: dict[str, str]
    ) -> ImportConventions | None:
        js_files = [path for path in files if languages.get(path) in _JS_LANGUAGES]
        if not js_files:
            return None
        return ImportConventions(
            module_system=ModuleSystem.ESM,
            path_style=PathStyle.RELATIVE,
            index_exports=any(posixpath.basename(path) in _INDEX_MODULES for path in js_files),
        )
