"""Tests for parse/parser.py: annotations to file and symbol records."""

from __future__ import annotations

import pytest

from acpindex.cache.models import (
    Language,
    SourceOrigin,
    Stability,
    SymbolType,
    TypeSource,
)
from acpindex.config.constants import ANNOTATED_SYMBOL_SPAN
from acpindex.parse.parser import AnnotationParser, FileParseResult, UnsupportedLanguageError

SESSION_TS = "\n".join(
    [
        '// @acp:module "Auth Session"',  # 1
        '// @acp:summary "Session lifecycle management"',  # 2
        "// @acp:domain auth",  # 3
        "// @acp:layer service",  # 4
        "// @acp:stability stable",  # 5
        "// @acp:owner security-team",  # 6
        "// @acp:lock restricted - Ask security before changing",  # 7
        '// @acp:hack ticket=SEC-12 expires=2025-06-01 "token clock skew"',  # 8
        "",  # 9
        "// @acp:fn validateSession - Validates a session token",  # 10
        "// @acp:summary Checks expiry and signature",  # 11
        "// @acp:param {string} token - Raw bearer token",  # 12
        "// @acp:param {number} [leeway=30] - Clock skew allowance",  # 13
        "// @acp:returns {boolean} - True when valid",  # 14
        "// @acp:calls decodeToken, checkExpiry",  # 15
        "// @acp:pure",  # 16
        "// @acp:todo - Cache decoded tokens",  # 17
        "export function validateSession(token, leeway) {}",  # 18
        "",  # 19
        "// @acp:class SessionStore",  # 20
        '// @acp:summary "Persists sessions"',  # 21
        "// @acp:source heuristic",  # 22
        "// @acp:source-confidence 0.4",  # 23
        "// @acp:deprecated - Use RedisStore",  # 24
        "export class SessionStore {}",  # 25
    ]
)


@pytest.fixture
def result() -> FileParseResult:
    return AnnotationParser().parse("src/auth/session.ts", SESSION_TS)


class TestFileRecord:
    """File-level annotations."""

    def test_file_metadata(self, result: FileParseResult) -> None:
        """Annotations before the first symbol marker describe the file."""
        file = result.file
        assert file.path == "src/auth/session.ts"
        assert file.language is Language.TYPESCRIPT
        assert file.lines == 25
        assert file.module == "Auth Session"
        assert file.summary == "Session lifecycle management"
        assert file.domains == ["auth"]
        assert file.layer == "service"
        assert file.stability is Stability.STABLE
        assert file.owner == "security-team"
        assert file.exports == ["validateSession", "SessionStore"]

    def test_lock(self, result: FileParseResult) -> None:
        """The file lock and its directive are reported for the constraint index."""
        assert result.lock_level == "restricted"
        assert result.lock_directive == "Ask security before changing"
        assert result.lock_auto_generated is False

    def test_hack(self, result: FileParseResult) -> None:
        """Hack markers carry ticket, expiry and quoted reason."""
        assert len(result.hacks) == 1
        hack = result.hacks[0]
        assert hack.line == 8
        assert hack.ticket == "SEC-12"
        assert hack.expires == "2025-06-01"
        assert hack.reason == "token clock skew"

    def test_inline_markers(self, result: FileParseResult) -> None:
        """Hack and todo markers are recorded as inline annotations."""
        inline = {(a.annotation_type, a.line) for a in result.file.inline}
        assert inline == {("hack", 8), ("todo", 17)}

    def test_file_provenance_is_explicit(self, result: FileParseResult) -> None:
        """Unmarked annotations are explicit and reviewed."""
        record = result.file.annotations["@acp:summary"]
        assert record.source is SourceOrigin.EXPLICIT
        assert record.reviewed is True
        assert record.needs_review is False
        assert "@acp:fn" in result.file.annotations


class TestSymbols:
    """Symbol scopes opened by marker annotations."""

    def test_symbols_declared(self, result: FileParseResult) -> None:
        """Each marker declares one symbol in order."""
        assert [s.name for s in result.symbols] == ["validateSession", "SessionStore"]
        assert result.symbols[1].symbol_type is SymbolType.CLASS

    def test_function_symbol(self, result: FileParseResult) -> None:
        """Symbol annotations fill summary, purpose, types and behavior."""
        symbol = result.symbols[0]
        assert symbol.qualified_name == "src/auth/session.ts:validateSession"
        assert symbol.symbol_type is SymbolType.FUNCTION
        assert symbol.lines == (10, 10 + ANNOTATED_SYMBOL_SPAN)
        assert symbol.summary == "Checks expiry and signature"
        assert symbol.purpose == "Validates a session token"
        assert symbol.calls == ["decodeToken", "checkExpiry"]
        assert symbol.behavioral is not None
        assert symbol.behavioral.pure is True
        assert symbol.documentation is not None
        assert symbol.documentation.todos == ["Cache decoded tokens"]

    def test_param_and_return_types(self, result: FileParseResult) -> None:
        """Typed params, optional params with defaults, and return types are parsed."""
        type_info = result.symbols[0].type_info
        assert type_info is not None
        token, leeway = type_info.params
        assert (token.name, token.type_name, token.directive) == (
            "token",
            "string",
            "Raw bearer token",
        )
        assert token.type_source is TypeSource.ACP
        assert (leeway.name, leeway.optional, leeway.default) == ("leeway", True, "30")
        assert type_info.returns is not None
        assert type_info.returns.type_name == "boolean"
        assert type_info.returns.directive == "True when valid"

    def test_calls_reported_per_symbol(self, result: FileParseResult) -> None:
        """Call batches are reported once per calling symbol."""
        assert result.calls == [("validateSession", ["decodeToken", "checkExpiry"])]

    def test_lifecycle(self, result: FileParseResult) -> None:
        """Deprecation is recorded with its directive."""
        lifecycle = result.symbols[1].lifecycle
        assert lifecycle is not None
        assert lifecycle.deprecated == "Use RedisStore"

    def test_generated_annotation_needs_review(self, result: FileParseResult) -> None:
        """Low-confidence generated annotations are flagged for review."""
        record = result.symbols[1].annotations["@acp:summary"]
        assert record.source is SourceOrigin.HEURISTIC
        assert record.confidence == 0.4
        assert record.needs_review is True
        assert record.reviewed is False
        assert record.generated_at is not None


class TestProvenanceRules:
    """Review state of generated annotations."""

    def test_reviewed_is_never_needs_review(self) -> None:
        """A reviewed annotation is not flagged even with low confidence."""
        content = "\n".join(
            [
                "# @acp:summary Generated text",
                "# @acp:source inferred",
                "# @acp:source-confidence 0.2",
                "# @acp:source-reviewed true",
            ]
        )

        record = AnnotationParser().parse("job.py", content).file.annotations["@acp:summary"]

        assert record.reviewed is True
        assert record.needs_review is False

    def test_threshold_is_configurable(self) -> None:
        """Confidence at or above the threshold needs no review."""
        content = "# @acp:summary Text\n# @acp:source heuristic\n# @acp:source-confidence 0.6\n"

        record = AnnotationParser(review_threshold=0.5).parse("job.py", content)
        assert record.file.annotations["@acp:summary"].needs_review is False


class TestLanguages:
    """Language detection and overrides."""

    def test_unsupported_extension_raises(self) -> None:
        """Files with no known language are rejected."""
        with pytest.raises(UnsupportedLanguageError) as exc_info:
            AnnotationParser().parse("README.md", "# @acp:summary Docs")
        assert exc_info.value.path == "README.md"

    def test_language_override(self) -> None:
        """An explicit language bypasses extension detection."""
        result = AnnotationParser().parse("BUILD", "# @acp:summary Build rules", Language.PYTHON)
        assert result.file.language is Language.PYTHON
        assert result.file.summary == "Build rules"

    def test_file_without_annotations(self) -> None:
        """Plain source yields a bare file record."""
        result = AnnotationParser().parse("src/util.py", "def f():\n    return 1\n")
        assert result.symbols == []
        assert result.file.lines == 2
        assert result.lock_level is None
