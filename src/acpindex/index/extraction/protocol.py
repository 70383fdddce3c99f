"""Symbol extraction capability consumed by the indexer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from acpindex.cache.models import SymbolType, Visibility


@dataclass(frozen=True, slots=True)
class ExtractedSymbol:
    """A symbol found in source code.

    Lines are 1-based and inclusive. ``doc_comment`` is the raw comment or
    docstring text, delimiters included.
    """

    name: str
    kind: SymbolType
    start_line: int
    end_line: int
    qualified_name: str | None = None
    visibility: Visibility = Visibility.PUBLIC
    signature: str | None = None
    doc_comment: str | None = None
    is_async: bool = False
    exported: bool = True


@dataclass(frozen=True, slots=True)
class CallEdge:
    caller: str
    callee: str


class SymbolExtractor(Protocol):
    def extract(self, file_path: str, source: str) -> list[ExtractedSymbol]: ...

    def extract_calls(self, file_path: str, source: str) -> list[CallEdge]: ...
