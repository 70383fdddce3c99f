"""Symbol extraction: the extractor protocol and the tree-sitter default."""

from acpindex.index.extraction.protocol import CallEdge, ExtractedSymbol, SymbolExtractor
from acpindex.index.extraction.treesitter import TreeSitterExtractor

__all__ = ["CallEdge", "ExtractedSymbol", "SymbolExtractor", "TreeSitterExtractor"]
