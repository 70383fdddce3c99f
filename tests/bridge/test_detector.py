"""Tests for bridge/detector.py."""

from __future__ import annotations

import pytest

from acpindex.bridge import FormatDetector
from acpindex.cache.models import SourceFormat
from acpindex.config.models import BridgeConfig, PythonBridgeConfig

GOOGLE = '"""Summary.\n\nArgs:\n    x: A value.\n"""'
NUMPY = '"""Summary.\n\nParameters\n----------\nx : int\n    A value.\n"""'
SPHINX = '"""Summary.\n\n:param x: A value.\n:returns: Nothing.\n"""'


@pytest.fixture
def detector() -> FormatDetector:
    return FormatDetector(BridgeConfig(enabled=True))


class TestPythonDocstrings:
    """Docstring dialect detection."""

    @pytest.mark.parametrize(
        ("doc", "expected"),
        [
            (GOOGLE, SourceFormat.DOCSTRING_GOOGLE),
            (NUMPY, SourceFormat.DOCSTRING_NUMPY),
            (SPHINX, SourceFormat.DOCSTRING_SPHINX),
            ('"""Just prose."""', None),
        ],
    )
    def test_detect(
        self, detector: FormatDetector, doc: str, expected: SourceFormat | None
    ) -> None:
        """Each dialect is recognised by its markers."""
        assert detector.detect(doc, "python") is expected

    def test_numpy_checked_before_google(self, detector: FormatDetector) -> None:
        """Underlined headers win over colon headers."""
        doc = "Summary.\n\nArgs:\n    x: A value.\n\nReturns\n-------\nint\n"

        assert detector.detect(doc, "python") is SourceFormat.DOCSTRING_NUMPY

    def test_forced_style(self) -> None:
        """A configured docstring style skips detection."""
        config = BridgeConfig(enabled=True, python=PythonBridgeConfig(docstring_style="sphinx"))

        assert FormatDetector(config).detect(GOOGLE, "python") is SourceFormat.DOCSTRING_SPHINX

    def test_python_bridging_off(self) -> None:
        """Disabling the python section disables detection and fallback."""
        config = BridgeConfig(enabled=True, python=PythonBridgeConfig(enabled=False))
        detector = FormatDetector(config)

        assert detector.detect(GOOGLE, "python") is None
        assert detector.resolve('"""Prose."""', "python") is None


class TestOtherLanguages:
    """Doc comment formats outside Python."""

    def test_jsdoc_needs_a_tag(self, detector: FormatDetector) -> None:
        """JSDoc is only detected when a tag is present."""
        assert detector.detect("/** @param {string} id */", "typescript") is SourceFormat.JSDOC
        assert detector.detect("/** Plain text. */", "javascript") is None

    @pytest.mark.parametrize("doc", ["/// Adds two numbers.", "//! Crate docs.", "# Panics\n"])
    def test_rustdoc(self, detector: FormatDetector, doc: str) -> None:
        """Rust doc comments and section headers are recognised."""
        assert detector.detect(doc, "rust") is SourceFormat.RUSTDOC

    @pytest.mark.parametrize(
        ("language", "expected"),
        [
            ("java", SourceFormat.JAVADOC),
            ("kotlin", SourceFormat.JAVADOC),
            ("go", SourceFormat.GODOC),
        ],
    )
    def test_fixed_formats(
        self, detector: FormatDetector, language: str, expected: SourceFormat
    ) -> None:
        """Some languages have exactly one doc format."""
        assert detector.detect("anything", language) is expected

    def test_language_alias(self, detector: FormatDetector) -> None:
        """Short language names are accepted."""
        assert detector.detect("/** @returns {number} */", "ts") is SourceFormat.JSDOC

    def test_unknown_language(self, detector: FormatDetector) -> None:
        """Unknown languages have no format."""
        assert detector.detect("/** @param x */", "cobol") is None
        assert detector.resolve("/** @param x */", "cobol") is None

    def test_disabled_bridge(self) -> None:
        """Nothing is detected while bridging is off."""
        assert FormatDetector(BridgeConfig(enabled=False)).detect(GOOGLE, "python") is None


class TestResolve:
    """Fallback to a language's default format."""

    def test_permissive_falls_back(self, detector: FormatDetector) -> None:
        """Undetected prose resolves to the language default."""
        assert detector.resolve("/** Plain text. */", "javascript") is SourceFormat.JSDOC
        assert detector.resolve('"""Prose."""', "python") is SourceFormat.DOCSTRING_GOOGLE

    def test_strict_does_not_fall_back(self) -> None:
        """Strict mode only bridges positively detected formats."""
        detector = FormatDetector(BridgeConfig(enabled=True, strictness="strict"))

        assert detector.resolve("/** Plain text. */", "javascript") is None
        assert detector.resolve(SPHINX, "python") is SourceFormat.DOCSTRING_SPHINX


class TestHasDocumentation:
    """Doc comment presence checks."""

    @pytest.mark.parametrize(
        ("content", "language", "expected"),
        [
            ("/** Doc */\nfunction f() {}", "javascript", True),
            ("function f() {}", "javascript", False),
            ('def f():\n    """Doc."""', "python", True),
            ("def f(): pass", "python", False),
            ("/// Doc\nfn f() {}", "rust", True),
            ("// +build linux\npackage x", "go", False),
            ("// Add sums.\nfunc Add() {}", "go", True),
            ("/** Doc */", "cobol", False),
        ],
    )
    def test_has_documentation(
        self, detector: FormatDetector, content: str, language: str, expected: bool
    ) -> None:
        """Doc comment syntax is recognised per language."""
        assert detector.has_documentation(content, language) is expected
