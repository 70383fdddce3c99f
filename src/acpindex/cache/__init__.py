"""Index document models, assembly and persistence."""

from acpindex.cache.builder import CacheBuilder, parse_lock_level
from acpindex.cache.io import dumps_index, load_index, loads_index, save_index, stale_files
from acpindex.cache.models import (
    AnnotationProvenance,
    BridgeSource,
    CallGraph,
    DomainEntry,
    FileEntry,
    Index,
    Language,
    SourceFormat,
    SourceOrigin,
    SymbolEntry,
    SymbolType,
    Visibility,
)
from acpindex.cache.paths import lookup_path, normalize_path

__all__ = [
    "CacheBuilder",
    "parse_lock_level",
    "dumps_index",
    "loads_index",
    "load_index",
    "save_index",
    "stale_files",
    "lookup_path",
    "normalize_path",
    "AnnotationProvenance",
    "BridgeSource",
    "CallGraph",
    "DomainEntry",
    "FileEntry",
    "Index",
    "Language",
    "SourceFormat",
    "SourceOrigin",
    "SymbolEntry",
    "SymbolType",
    "Visibility",
]
