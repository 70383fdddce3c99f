"""Annotation parsing: ``@acp:`` directives, provenance markers, file records."""

from acpindex.parse.annotations import (
    Annotation,
    AnnotationWithProvenance,
    ProvenanceMarker,
    parse_annotations,
    parse_annotations_with_provenance,
    parse_provenance,
)
from acpindex.parse.directives import default_directive
from acpindex.parse.parser import (
    AnnotationParser,
    FileParseResult,
    HackAnnotation,
    UnsupportedLanguageError,
)
from acpindex.parse.provenance import extract_provenance, provenance_record

__all__ = [
    "Annotation",
    "AnnotationParser",
    "AnnotationWithProvenance",
    "FileParseResult",
    "HackAnnotation",
    "ProvenanceMarker",
    "UnsupportedLanguageError",
    "default_directive",
    "extract_provenance",
    "parse_annotations",
    "parse_annotations_with_provenance",
    "parse_provenance",
    "provenance_record",
]
