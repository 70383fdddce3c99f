"""Tests for parse/annotations.py: line-level annotation scanning."""

from __future__ import annotations

from acpindex.cache.models import SourceOrigin
from acpindex.parse.annotations import (
    parse_annotations,
    parse_annotations_with_provenance,
    parse_provenance,
)
from acpindex.parse.directives import default_directive


class TestParseAnnotations:
    """Annotation grammar."""

    def test_name_value_directive(self) -> None:
        """Name, value and directive are split on the ' - ' separator."""
        anns = parse_annotations("// @acp:lock frozen - Do not touch the billing math\n")

        assert len(anns) == 1
        ann = anns[0]
        assert ann.name == "lock"
        assert ann.value == "frozen"
        assert ann.directive == "Do not touch the billing math"
        assert ann.line == 1
        assert ann.auto_generated is False

    def test_hyphenated_value(self) -> None:
        """Values may contain hyphens without a directive."""
        ann = parse_annotations("# @acp:lock approval-required\n")[0]

        assert ann.value == "approval-required"
        assert ann.directive == default_directive("lock", "approval-required")
        assert ann.auto_generated is True

    def test_name_only(self) -> None:
        """Flag annotations have no value."""
        ann = parse_annotations("// @acp:pure\n")[0]

        assert ann.name == "pure"
        assert ann.value is None

    def test_single_line_block_comment(self) -> None:
        """The closing ``*/`` of a one-line block comment is not part of the annotation."""
        summary, lock = parse_annotations(
            '/** @acp:summary "Fetch a user" */\n/* @acp:lock frozen - Keep as is */\n'
        )

        assert summary.value == '"Fetch a user"'
        assert lock.value == "frozen"
        assert lock.directive == "Keep as is"

    def test_continuation_lines_join_directive(self) -> None:
        """Comment lines indented two or more spaces continue the directive."""
        content = (
            "// @acp:lock restricted - Billing logic;\n"
            "//   ask the payments team first\n"
            "//   and wait for sign-off\n"
            "// unrelated comment\n"
        )

        ann = parse_annotations(content)[0]

        assert ann.directive == (
            "Billing logic; ask the payments team first and wait for sign-off"
        )

    def test_indented_continuation(self) -> None:
        """Continuation works inside indented code."""
        content = "    # @acp:summary Loader - Reads config\n    #   from disk\n    pass\n"

        assert parse_annotations(content)[0].directive == "Reads config from disk"

    def test_single_space_is_not_continuation(self) -> None:
        """One space after the marker is an ordinary comment."""
        content = "// @acp:lock frozen - Keep\n// not a continuation\n"

        assert parse_annotations(content)[0].directive == "Keep"

    def test_next_annotation_is_not_continuation(self) -> None:
        """An indented annotation line starts a new annotation."""
        content = "// @acp:fn main - Entry point\n//   @acp:pure\n"

        anns = parse_annotations(content)

        assert [a.name for a in anns] == ["fn", "pure"]
        assert anns[0].directive == "Entry point"

    def test_malformed_lines_are_skipped(self) -> None:
        """Lines that do not match never abort parsing."""
        content = "@acp:\n// @acp: broken\n// @acp:summary Works\nx = '@acp'\n"

        anns = parse_annotations(content)

        assert [(a.name, a.value) for a in anns] == [("summary", "Works")]
        assert anns[0].line == 3

    def test_default_directive_for_unknown_is_none(self) -> None:
        """Annotations without a known default keep no directive."""
        ann = parse_annotations("// @acp:owner payments\n")[0]

        assert ann.directive is None
        assert ann.auto_generated is True


class TestDefaultDirective:
    """Generated directives for annotations written without one."""

    def test_lock_levels(self) -> None:
        """Each lock level has a default directive."""
        assert default_directive("lock", "frozen") == (
            "MUST NOT modify this code under any circumstances"
        )
        assert default_directive("lock", None) == default_directive("lock", "normal")

    def test_ref(self) -> None:
        """References point the reader at the target."""
        assert default_directive("ref", "docs/billing.md") == (
            "Consult docs/billing.md before making changes"
        )

    def test_purpose_unquotes(self) -> None:
        """Purpose values become the directive."""
        assert default_directive("purpose", '"Sync users"') == "Sync users"


class TestProvenance:
    """Provenance markers following an annotation."""

    def test_markers_collected(self) -> None:
        """Source, confidence, review state and id are read."""
        lines = [
            "// @acp:summary Parses input",
            "// @acp:source heuristic",
            "// @acp:source-confidence 0.65",
            "// @acp:source-reviewed false",
            "// @acp:source-id gen-2024-01",
            "function parse() {}",
        ]

        marker = parse_provenance(lines, 1)

        assert marker is not None
        assert marker.source is SourceOrigin.HEURISTIC
        assert marker.confidence == 0.65
        assert marker.reviewed is False
        assert marker.generation_id == "gen-2024-01"

    def test_confidence_is_clamped(self) -> None:
        """Confidence above 1 is clamped."""
        marker = parse_provenance(["// @acp:source-confidence 3.5"], 0)

        assert marker is not None
        assert marker.confidence == 1.0

    def test_block_comment_markers(self) -> None:
        """Markers in one-line block comments are read without the closing ``*/``."""
        lines = ["/** @acp:summary x */", "/* @acp:source-confidence 0.3 */"]

        marker = parse_provenance(lines, 1)

        assert marker is not None
        assert marker.confidence == 0.3

    def test_stops_at_other_annotation(self) -> None:
        """Markers after a different annotation belong to that annotation."""
        lines = [
            "// @acp:summary First",
            "// @acp:lock frozen",
            "// @acp:source inferred",
        ]

        assert parse_provenance(lines, 1) is None

    def test_none_without_markers(self) -> None:
        """Plain annotations have no provenance marker."""
        assert parse_provenance(["// @acp:summary x", "code()"], 1) is None

    def test_with_provenance_pairs_each_annotation(self) -> None:
        """Each annotation is paired with the markers below it."""
        content = (
            "// @acp:summary Generated summary\n"
            "// @acp:source inferred\n"
            "// @acp:source-confidence 0.4\n"
            "// @acp:owner team-a\n"
        )

        items = parse_annotations_with_provenance(content)
        by_name = {item.annotation.name: item for item in items}

        summary = by_name["summary"].provenance
        assert summary is not None
        assert summary.source is SourceOrigin.INFERRED
        assert summary.confidence == 0.4
        assert by_name["owner"].provenance is None
