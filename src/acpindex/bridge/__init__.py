"""Documentation bridge: native doc comments merged with ``@acp`` directives."""

from acpindex.bridge.detector import FormatDetector
from acpindex.bridge.docparse import clean_doc_comment, parse_native_doc
from acpindex.bridge.merger import BridgeMerger, tally
from acpindex.bridge.models import (
    AcpAnnotations,
    BridgeResult,
    ParsedDocumentation,
    type_source_from_format,
)

__all__ = [
    "AcpAnnotations",
    "BridgeMerger",
    "BridgeResult",
    "FormatDetector",
    "ParsedDocumentation",
    "clean_doc_comment",
    "parse_native_doc",
    "tally",
    "type_source_from_format",
]
