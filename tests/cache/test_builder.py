"""Tests for cache/builder.py: folding records into an Index."""

from __future__ import annotations

import pytest

from acpindex.cache.builder import CacheBuilder, parse_lock_level
from acpindex.cache.models import (
    AnnotationProvenance,
    BridgeMetadata,
    Conventions,
    DomainEntry,
    FileEntry,
    ImportConventions,
    Language,
    LockLevel,
    SourceFormat,
    SourceOrigin,
    SymbolEntry,
)
from acpindex.core.errors import InternalError


def _file(path: str, lines: int = 10, domains: list[str] | None = None) -> FileEntry:
    return FileEntry(path=path, lines=lines, language=Language.TYPESCRIPT, domains=domains or [])


def _symbol(name: str, file: str, summary: str | None = None) -> SymbolEntry:
    return SymbolEntry(
        name=name,
        qualified_name=f"{file}:{name}",
        file=file,
        lines=(1, 5),
        exported=True,
        summary=summary,
    )


@pytest.fixture
def builder() -> CacheBuilder:
    return CacheBuilder("demo", "/work/demo")


class TestCallGraph:
    """Forward and reverse edges stay symmetric."""

    def test_reverse_edges_mirror_forward(self, builder: CacheBuilder) -> None:
        """Every forward edge has exactly one reverse edge."""
        builder.add_file(_file("src/a.ts"))
        builder.add_call_edge("main", ["parse", "render"])
        builder.add_call_edge("render", ["parse"])

        graph = builder.build().graph

        assert graph is not None
        assert graph.forward == {"main": ["parse", "render"], "render": ["parse"]}
        assert graph.reverse == {"parse": ["main", "render"], "render": ["main"]}
        for caller, callees in graph.forward.items():
            for callee in callees:
                assert graph.reverse[callee].count(caller) == 1

    def test_repeated_edges_stored_once(self, builder: CacheBuilder) -> None:
        """Accumulated batches for one caller never duplicate an edge."""
        builder.add_call_edge("main", ["parse"])
        builder.add_call_edge("main", ["parse", "render"])

        graph = builder.build().graph

        assert graph is not None
        assert graph.forward["main"] == ["parse", "render"]
        assert graph.reverse["parse"] == ["main"]

    def test_called_by_derived_from_reverse(self, builder: CacheBuilder) -> None:
        """Symbols learn their callers at build time."""
        builder.add_file(_file("src/a.ts"))
        builder.add_symbol(_symbol("parse", "src/a.ts"))
        builder.add_call_edge("main", ["parse"])

        index = builder.build()

        assert index.symbols["parse"].called_by == ["main"]


class TestSymbols:
    """Symbol insertion rules."""

    def test_last_writer_wins(self, builder: CacheBuilder) -> None:
        """A later symbol with the same name replaces the earlier one."""
        builder.add_file(_file("src/a.ts"))
        builder.add_file(_file("src/b.ts"))
        builder.add_symbol(_symbol("handler", "src/a.ts"))
        builder.add_symbol(_symbol("handler", "src/b.ts"))

        index = builder.build()

        assert index.symbols["handler"].file == "src/b.ts"
        assert index.stats.symbols == 1

    def test_inverted_lines_rejected(self, builder: CacheBuilder) -> None:
        """Symbols must have start <= end."""
        symbol = _symbol("bad", "src/a.ts")
        symbol.lines = (9, 3)

        with pytest.raises(InternalError):
            builder.add_symbol(symbol)

    def test_symbol_in_unknown_file_rejected(self, builder: CacheBuilder) -> None:
        """Every symbol must reference a known file."""
        builder.add_symbol(_symbol("orphan", "src/missing.ts"))

        with pytest.raises(InternalError):
            builder.build()

    def test_paths_are_normalized(self, builder: CacheBuilder) -> None:
        """Prefixed and backslash paths are stored under their normalized key."""
        builder.add_file(_file("./src\\a.ts", domains=["auth"]))
        builder.add_symbol(_symbol("login", ".\\src/./a.ts"))
        builder.add_file_constraint("./src\\a.ts", "frozen", None)

        index = builder.build()

        assert list(index.files) == ["src/a.ts"]
        assert index.files["src/a.ts"].path == "src/a.ts"
        assert index.symbols["login"].file == "src/a.ts"
        assert index.domains["auth"].files == ["src/a.ts"]
        assert index.domains["auth"].symbols == ["login"]
        assert index.constraints is not None
        assert list(index.constraints.by_file) == ["src/a.ts"]


class TestStats:
    """Aggregate statistics are recomputed at build time."""

    def test_counts_and_lines(self, builder: CacheBuilder) -> None:
        """File, symbol and line totals reflect the folded records."""
        builder.add_file(_file("src/a.ts", lines=40))
        builder.add_file(_file("src/b.ts", lines=2))
        builder.add_symbol(_symbol("a", "src/a.ts"))

        stats = builder.build().stats

        assert stats.files == 2
        assert stats.symbols == 1
        assert stats.lines == 42

    def test_coverage_zero_without_symbols(self, builder: CacheBuilder) -> None:
        """No symbols means 0% coverage, not a division error."""
        builder.add_file(_file("src/a.ts"))
        assert builder.build().stats.annotation_coverage == 0.0

    def test_coverage_full(self, builder: CacheBuilder) -> None:
        """All symbols with summaries is 100% coverage."""
        builder.add_file(_file("src/a.ts"))
        builder.add_symbol(_symbol("a", "src/a.ts", summary="Does a"))
        builder.add_symbol(_symbol("b", "src/a.ts", summary="Does b"))
        assert builder.build().stats.annotation_coverage == 100.0

    def test_coverage_partial(self, builder: CacheBuilder) -> None:
        """Coverage is the annotated share of symbols, as a percentage."""
        builder.add_file(_file("src/a.ts"))
        builder.add_symbol(_symbol("a", "src/a.ts", summary="Does a"))
        builder.add_symbol(_symbol("b", "src/a.ts"))
        builder.add_symbol(_symbol("c", "src/a.ts"))
        builder.add_symbol(_symbol("d", "src/a.ts"))
        assert builder.build().stats.annotation_coverage == 25.0


class TestDomains:
    """Domain membership accumulates by file."""

    def test_domains_from_files(self, builder: CacheBuilder) -> None:
        """Files declaring a domain become its members, with their symbols."""
        builder.add_file(_file("src/auth/login.ts", domains=["auth"]))
        builder.add_file(_file("src/auth/session.ts", domains=["auth"]))
        builder.add_file(_file("src/ui/button.ts"))
        builder.add_symbol(_symbol("login", "src/auth/login.ts"))
        builder.add_symbol(_symbol("render", "src/ui/button.ts"))

        domain = builder.build().domains["auth"]

        assert domain.files == ["src/auth/login.ts", "src/auth/session.ts"]
        assert domain.symbols == ["login"]

    def test_explicit_domain_keeps_description(self, builder: CacheBuilder) -> None:
        """A registered domain is merged with file membership."""
        builder.add_domain(DomainEntry(name="auth", files=[], description="Authentication"))
        builder.add_file(_file("src/auth/login.ts", domains=["auth"]))

        domain = builder.build().domains["auth"]

        assert domain.description == "Authentication"
        assert domain.files == ["src/auth/login.ts"]


class TestConstraints:
    """Lock levels and hack markers."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("frozen", LockLevel.FROZEN),
            ("Approval-Required", LockLevel.APPROVAL_REQUIRED),
            ("bogus", LockLevel.NORMAL),
            (None, LockLevel.NORMAL),
        ],
    )
    def test_parse_lock_level(self, value: str | None, expected: LockLevel) -> None:
        """Lock values map to levels; unknown values are normal."""
        assert parse_lock_level(value) is expected

    def test_file_constraint_flags(self, builder: CacheBuilder) -> None:
        """Lock levels set the matching requirement flag and are indexed by level."""
        builder.add_file(_file("src/billing.ts"))
        builder.add_file_constraint("src/billing.ts", "tests-required", "Add tests")

        constraints = builder.build().constraints

        assert constraints is not None
        entry = constraints.by_file["src/billing.ts"]
        assert entry.level is LockLevel.TESTS_REQUIRED
        assert entry.requires_tests is True
        assert entry.requires_approval is False
        assert entry.auto_generated is False
        assert constraints.by_lock_level == {"tests-required": ["src/billing.ts"]}

    def test_hack_marker(self, builder: CacheBuilder) -> None:
        """Hacks are identified by path and line."""
        builder.add_file(_file("src/a.ts"))
        builder.add_hack("src/a.ts", 12, ticket="JIRA-1", expires="2025-01-01")

        constraints = builder.build().constraints

        assert constraints is not None
        hack = constraints.hacks[0]
        assert hack.id == "src/a.ts:12"
        assert hack.reason == "Temporary hack"
        assert hack.ticket == "JIRA-1"

    def test_no_constraints_omitted(self, builder: CacheBuilder) -> None:
        """Without locks or hacks the section is absent."""
        builder.add_file(_file("src/a.ts"))
        assert builder.build().constraints is None


class TestRunLevelSections:
    """Provenance, bridge and convention sections."""

    def test_provenance_stats(self, builder: CacheBuilder) -> None:
        """Provenance is counted over file and symbol annotations."""
        entry = _file("src/a.ts")
        entry.annotations["@acp:summary"] = AnnotationProvenance(
            value="x", source=SourceOrigin.EXPLICIT, reviewed=True
        )
        symbol = _symbol("a", "src/a.ts")
        symbol.annotations["@acp:summary"] = AnnotationProvenance(
            value="guess", source=SourceOrigin.HEURISTIC, confidence=0.3, needs_review=True
        )
        builder.add_file(entry)
        builder.add_symbol(symbol)

        provenance = builder.build().provenance

        assert provenance is not None
        assert provenance.summary.total == 2
        assert provenance.summary.by_source.explicit == 1
        assert provenance.summary.by_source.heuristic == 1
        assert provenance.summary.needs_review == 1
        assert provenance.summary.reviewed == 1
        assert [e.target for e in provenance.low_confidence] == ["src/a.ts:a"]

    def test_bridge_stats(self, builder: CacheBuilder) -> None:
        """Bridge totals sum per-file counts and count files per format."""
        first = _file("src/a.ts")
        first.bridge = BridgeMetadata(
            enabled=True, detected_format=SourceFormat.JSDOC, converted_count=2, merged_count=1
        )
        second = _file("src/b.ts")
        second.bridge = BridgeMetadata(
            enabled=True, detected_format=SourceFormat.JSDOC, explicit_count=1
        )
        builder.add_file(first).add_file(second)
        builder.set_bridge(enabled=True, precedence="merge")

        bridge = builder.build().bridge

        assert bridge is not None
        assert bridge.precedence == "merge"
        assert bridge.summary.total_annotations == 4
        assert bridge.summary.converted_count == 2
        assert bridge.by_format == {"jsdoc": 2}

    def test_bridge_disabled_and_unused_omitted(self, builder: CacheBuilder) -> None:
        """No bridge section when bridging is off and nothing was bridged."""
        builder.add_file(_file("src/a.ts"))
        assert builder.build().bridge is None

    def test_conventions_kept_when_present(self, builder: CacheBuilder) -> None:
        """Non-empty conventions are stored on the index."""
        builder.add_file(_file("src/a.ts"))
        builder.set_conventions(Conventions(imports=ImportConventions(index_exports=True)))

        conventions = builder.build().conventions

        assert conventions is not None
        assert conventions.imports is not None
        assert conventions.imports.index_exports is True

    def test_git_commit(self, builder: CacheBuilder) -> None:
        """The revision is recorded verbatim."""
        builder.set_git_commit("abc123")
        assert builder.build().git_commit == "abc123"
