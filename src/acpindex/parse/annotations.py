"""Line-level ``@acp:`` annotation scanning.

Grammar, one annotation per match::

    @acp:<name> [value] [- directive]

``name`` is ``[\\w-]+``. The value may contain hyphens (``approval-required``)
and runs up to the first `` - `` separator; the directive follows it. Comment
lines directly below an annotation whose text is indented by at least two
spaces after the comment marker continue the directive::

    // @acp:lock restricted - Billing logic;
    //   ask the payments team first

Provenance markers (``@acp:source``, ``@acp:source-confidence``,
``@acp:source-reviewed``, ``@acp:source-id``) on the comment lines following
an annotation describe how that annotation was produced.

Nothing here raises on malformed input; lines that do not match are skipped.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from acpindex.cache.models import SourceOrigin
from acpindex.parse.directives import default_directive

ANNOTATION_RE = re.compile(r"@acp:([\w-]+)(?:\s+([^\s-].*?))?(?:\s+-\s+(.+))?$")
CONTINUATION_RE = re.compile(r"^\s*(?://|#|/?\*)\s{2,}(.+)$")

SOURCE_RE = re.compile(
    r"@acp:source\s+(explicit|converted|heuristic|refined|inferred)(?:\s+-\s+(.+))?$"
)
CONFIDENCE_RE = re.compile(r"@acp:source-confidence\s+(\d+\.?\d*)(?:\s+-\s+(.+))?$")
REVIEWED_RE = re.compile(r"@acp:source-reviewed\s+(true|false)(?:\s+-\s+(.+))?$")
SOURCE_ID_RE = re.compile(r"@acp:source-id\s+([a-zA-Z0-9\-]+)(?:\s+-\s+(.+))?$")

_COMMENT_PREFIXES = ("//", "*", "#", "/*")


def _strip_block_end(line: str) -> str:
    """Drop the ``*/`` closing a single-line block comment."""
    text = line.rstrip()
    return text[:-2].rstrip() if text.endswith("*/") else text


@dataclass(slots=True)
class Annotation:
    """One parsed annotation.

    Attributes:
        name: Annotation name without the ``@acp:`` prefix ("lock", "fn", ...)
        value: Text between the name and the directive, stripped
        directive: Directive text, possibly a generated default
        line: 1-based source line
        auto_generated: True when ``directive`` came from the defaults table
    """

    name: str
    value: str | None
    directive: str | None
    line: int
    auto_generated: bool = False


@dataclass(slots=True)
class ProvenanceMarker:
    source: SourceOrigin = SourceOrigin.EXPLICIT
    confidence: float | None = None
    reviewed: bool | None = None
    generation_id: str | None = None


@dataclass(slots=True)
class AnnotationWithProvenance:
    annotation: Annotation
    provenance: ProvenanceMarker | None = None


def parse_annotations(content: str) -> list[Annotation]:
    """Extract every annotation in ``content``, joining continuation lines."""
    lines = content.splitlines()
    annotations: list[Annotation] = []

    for i, line in enumerate(lines):
        for match in ANNOTATION_RE.finditer(_strip_block_end(line)):
            name = match.group(1)
            value = match.group(2).strip() if match.group(2) is not None else None
            directive = match.group(3).strip() if match.group(3) is not None else None

            for following in lines[i + 1 :]:
                cont = CONTINUATION_RE.match(following)
                if cont is None or "@acp:" in following:
                    break
                text = cont.group(1).strip()
                directive = f"{directive} {text}" if directive is not None else text

            auto_generated = False
            if not directive:
                directive = default_directive(name, value)
                auto_generated = True

            annotations.append(
                Annotation(
                    name=name,
                    value=value,
                    directive=directive,
                    line=i + 1,
                    auto_generated=auto_generated,
                )
            )

    return annotations


def _is_comment(line: str) -> bool:
    return line.strip().startswith(_COMMENT_PREFIXES)


def parse_provenance(lines: list[str], start: int) -> ProvenanceMarker | None:
    """Collect provenance markers from ``lines[start:]``.

    Scanning stops at the first non-comment line, or at a comment carrying a
    different ``@acp:`` annotation. Returns None when no marker was seen.
    """
    marker = ProvenanceMarker()
    found = False

    for line in lines[start:]:
        text = _strip_block_end(line)
        if (m := SOURCE_RE.search(text)) is not None:
            marker.source = SourceOrigin(m.group(1))
            found = True
        if (m := CONFIDENCE_RE.search(text)) is not None:
            marker.confidence = min(max(float(m.group(1)), 0.0), 1.0)
            found = True
        if (m := REVIEWED_RE.search(text)) is not None:
            marker.reviewed = m.group(1) == "true"
            found = True
        if (m := SOURCE_ID_RE.search(text)) is not None:
            marker.generation_id = m.group(1)
            found = True

        if not _is_comment(line):
            break
        if "@acp:" in line and "@acp:source" not in line:
            break

    return marker if found else None


def parse_annotations_with_provenance(content: str) -> list[AnnotationWithProvenance]:
    """Parse annotations and attach the provenance markers that follow each one."""
    lines = content.splitlines()
    return [
        AnnotationWithProvenance(
            annotation=ann,
            provenance=parse_provenance(lines, ann.line) if ann.line < len(lines) else None,
        )
        for ann in parse_annotations(content)
    ]
