"""Indexing pipeline: discovery, per-file processing and assembly."""

from acpindex.index.discovery import discover_files, is_included, matches_glob
from acpindex.index.indexer import Indexer, IndexRunStats
from acpindex.index.worker import FileResult, WorkerOptions, process_file

__all__ = [
    "FileResult",
    "IndexRunStats",
    "Indexer",
    "WorkerOptions",
    "discover_files",
    "is_included",
    "matches_glob",
    "process_file",
]
