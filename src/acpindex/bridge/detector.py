"""Native documentation format detection."""

from __future__ import annotations

import re

from acpindex.cache.models import SourceFormat
from acpindex.config.models import BridgeConfig

# Checked in this order; the first match wins.
NUMPY_RE = re.compile(
    r"^\s*(Parameters|Returns|Raises|Yields|Examples?|Notes?|Attributes?)\s*\n\s*-{3,}",
    re.MULTILINE,
)
SPHINX_RE = re.compile(r":(param|returns?|raises?|type|rtype)\s+")
GOOGLE_RE = re.compile(
    r"^\s*(Args|Arguments|Parameters|Returns|Raises|Yields|Examples?|Attributes?):\s*$",
    re.MULTILINE,
)

JSDOC_RE = re.compile(r"@(param|returns?|throws?|deprecated|example|see)\b")
RUSTDOC_SECTION_RE = re.compile(
    r"^#\s*(Arguments?|Returns?|Panics?|Errors?|Examples?|Safety)\s*$", re.MULTILINE
)

_FORCED_STYLES = {
    "google": SourceFormat.DOCSTRING_GOOGLE,
    "numpy": SourceFormat.DOCSTRING_NUMPY,
    "sphinx": SourceFormat.DOCSTRING_SPHINX,
}

_DEFAULT_FORMATS = {
    "javascript": SourceFormat.JSDOC,
    "typescript": SourceFormat.JSDOC,
    "python": SourceFormat.DOCSTRING_GOOGLE,
    "rust": SourceFormat.RUSTDOC,
    "java": SourceFormat.JAVADOC,
    "kotlin": SourceFormat.JAVADOC,
    "go": SourceFormat.GODOC,
}

_ALIASES = {"js": "javascript", "ts": "typescript", "py": "python", "rs": "rust"}


def _canonical(language: str) -> str:
    lang = language.lower()
    return _ALIASES.get(lang, lang)


class FormatDetector:
    """Detect which native documentation format a piece of text uses.

    Example::

        detector = FormatDetector(config.bridge)
        fmt = detector.detect(docstring, "python")
    """

    def __init__(self, config: BridgeConfig | None = None) -> None:
        self.config = config or BridgeConfig(enabled=True)

    def detect(self, content: str, language: str) -> SourceFormat | None:
        """Format of ``content``, or None when bridging is off or nothing matched."""
        if not self.config.enabled:
            return None
        match _canonical(language):
            case "javascript" | "typescript":
                if not self.config.jsdoc.enabled:
                    return None
                return SourceFormat.JSDOC if JSDOC_RE.search(content) else None
            case "python":
                if not self.config.python.enabled:
                    return None
                return self.detect_python_docstring(content)
            case "rust":
                if not self.config.rust.enabled:
                    return None
                return self._detect_rustdoc(content)
            case "java" | "kotlin":
                return SourceFormat.JAVADOC
            case "go":
                return SourceFormat.GODOC
            case _:
                return None

    def detect_python_docstring(self, content: str) -> SourceFormat | None:
        """Docstring dialect, honouring a forced ``docstring_style``."""
        forced = _FORCED_STYLES.get(self.config.python.docstring_style)
        if forced is not None:
            return forced
        if NUMPY_RE.search(content):
            return SourceFormat.DOCSTRING_NUMPY
        if SPHINX_RE.search(content):
            return SourceFormat.DOCSTRING_SPHINX
        if GOOGLE_RE.search(content):
            return SourceFormat.DOCSTRING_GOOGLE
        return None

    def _detect_rustdoc(self, content: str) -> SourceFormat | None:
        if RUSTDOC_SECTION_RE.search(content):
            return SourceFormat.RUSTDOC
        if "///" in content or "//!" in content:
            return SourceFormat.RUSTDOC
        return None

    def resolve(self, content: str, language: str) -> SourceFormat | None:
        """Detected format, falling back to the language default unless strict.

        Plain prose docs (no tags, no sections) are still worth bridging as a
        summary in permissive mode.
        """
        fmt = self.detect(content, language)
        if fmt is not None or self.config.strictness == "strict":
            return fmt
        if not self.config.is_enabled_for(language):
            return None
        return _DEFAULT_FORMATS.get(_canonical(language))

    def has_documentation(self, content: str, language: str) -> bool:
        """Whether ``content`` contains any doc comment syntax for ``language``."""
        match _canonical(language):
            case "javascript" | "typescript":
                return "/**" in content or "@param" in content or "@returns" in content
            case "python":
                return '"""' in content or "'''" in content
            case "rust":
                return "///" in content or "//!" in content
            case "java" | "kotlin":
                return "/**" in content
            case "go":
                return any(
                    line.strip().startswith("//") and not line.strip().startswith("// +build")
                    for line in content.splitlines()
                )
            case _:
                return False
