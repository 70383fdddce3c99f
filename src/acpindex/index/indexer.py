"""Indexing pipeline.

Two phases:

1. Parallel: every discovered file is processed independently by
   ``process_file`` in a process pool. A file that fails is logged and
   dropped.
2. Sequential: git history is attached and every result is folded into a
   single ``CacheBuilder``, which then derives callers, domains and stats.
"""

from __future__ import annotations

import time
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path

import pygit2

from acpindex.cache.builder import CacheBuilder
from acpindex.cache.io import save_index
from acpindex.cache.models import Index
from acpindex.config.loader import resolve_output_path
from acpindex.config.models import AcpIndexConfig
from acpindex.conventions import ConventionsAnalyzer
from acpindex.core.errors import IndexBuildError
from acpindex.core.logging import get_logger, run_context
from acpindex.core.progress import progress
from acpindex.git import (
    GitError,
    GitHistoryProvider,
    HistoryProvider,
    NotARepositoryError,
    PathNotTrackedError,
)
from acpindex.index.discovery import discover_files
from acpindex.index.extraction.protocol import SymbolExtractor
from acpindex.index.extraction.treesitter import TreeSitterExtractor
from acpindex.index.worker import FileResult, WorkerOptions, process_file

log = get_logger("index.indexer")


@dataclass
class IndexRunStats:
    """Counts from one indexing run."""

    discovered: int = 0
    indexed: int = 0
    failed: int = 0
    elapsed_seconds: float = 0.0


class Indexer:
    """Build an Index for a project directory.

    Usage::

        indexer = Indexer(load_config(root))
        index = indexer.index(root)

    Args:
        config: Resolved configuration
        extractor: Symbol extractor; defaults to ``TreeSitterExtractor``
        use_extractor: False indexes annotations only
        history: History provider; defaults to git at the indexed root when
            ``config.index.git`` is set
    """

    def __init__(
        self,
        config: AcpIndexConfig | None = None,
        *,
        extractor: SymbolExtractor | None = None,
        use_extractor: bool = True,
        history: HistoryProvider | None = None,
    ) -> None:
        self.config = config or AcpIndexConfig()
        if extractor is None and use_extractor:
            extractor = TreeSitterExtractor()
        self.extractor = extractor if use_extractor else None
        self.history = history
        self.last_run = IndexRunStats()

    def index(self, root: Path, *, save: bool = True) -> Index:
        """Index ``root`` and, unless ``save`` is False, write the document.

        Raises:
            IndexBuildError: If no files match, or the output cannot be written.
        """
        root = root.resolve()
        with run_context(str(root)):
            start = time.monotonic()
            try:
                index = self._run(root)
                if save:
                    save_index(index, resolve_output_path(root, self.config))
            finally:
                self.last_run.elapsed_seconds = time.monotonic() - start

            log.info(
                "index_complete",
                files=index.stats.files,
                symbols=index.stats.symbols,
                failed=self.last_run.failed,
                elapsed=round(self.last_run.elapsed_seconds, 3),
            )
        return index

    def _run(self, root: Path) -> Index:
        cfg = self.config.index
        files = discover_files(root, cfg.include, cfg.exclude)
        self.last_run = IndexRunStats(discovered=len(files))
        if not files:
            raise IndexBuildError.no_files(str(root), list(cfg.include), list(cfg.exclude))
        log.info("index_start", files=len(files))

        options = WorkerOptions(
            review_threshold=self.config.provenance.review_threshold,
            bridge=self.config.bridge,
            extractor=self.extractor,
        )
        results = self._process(files, root, options)
        results.sort(key=lambda r: r.path)
        self.last_run.indexed = len(results)
        self.last_run.failed = len(files) - len(results)

        builder = CacheBuilder(root.name, str(root))
        builder.set_bridge(
            enabled=self.config.bridge.enabled, precedence=self.config.bridge.precedence
        )
        builder.set_low_confidence_threshold(self.config.provenance.low_confidence_threshold)

        history = self._history(root)
        if history is not None:
            head = history.head_commit()
            if head is not None:
                builder.set_git_commit(head)

        languages: dict[str, str] = {}
        for result in results:
            if history is not None:
                _attach_history(history, result)
            self._fold(builder, result)
            if result.parsed is not None:
                languages[result.path] = result.parsed.file.language.value

        if cfg.detect_conventions:
            conventions = ConventionsAnalyzer().analyze(builder.file_paths, languages)
            builder.set_conventions(conventions)

        return builder.build()

    # -- phase 1 -----------------------------------------------------------

    def _process(self, files: list[str], root: Path, options: WorkerOptions) -> list[FileResult]:
        workers = self.config.indexer.max_workers
        if workers > 1 and len(files) > 1:
            results = self._parallel_process(files, root, options, workers)
        else:
            results = self._sequential_process(files, root, options)

        ok = []
        for result in results:
            if result.ok:
                ok.append(result)
            else:
                log.warning("file_failed", path=result.path, error=result.error)
        return ok

    def _sequential_process(
        self, files: list[str], root: Path, options: WorkerOptions
    ) -> list[FileResult]:
        results = []
        for path in progress(files, desc="Indexing"):
            try:
                results.append(process_file(path, str(root), options))
            except Exception as e:
                results.append(FileResult(path=path, error=str(e)))
        return results

    def _parallel_process(
        self, files: list[str], root: Path, options: WorkerOptions, workers: int
    ) -> list[FileResult]:
        results = []
        with ProcessPoolExecutor(max_workers=workers) as executor:
            futures = {
                executor.submit(process_file, path, str(root), options): path for path in files
            }
            for future in progress(as_completed(futures), desc="Indexing", total=len(futures)):
                try:
                    results.append(future.result())
                except Exception as e:
                    results.append(FileResult(path=futures[future], error=str(e)))
        return results

    # -- phase 2 -----------------------------------------------------------

    def _history(self, root: Path) -> HistoryProvider | None:
        if self.history is not None:
            return self.history
        if not self.config.index.git:
            return None
        try:
            return GitHistoryProvider(root)
        except NotARepositoryError:
            log.debug("git_unavailable", root=str(root))
            return None

    @staticmethod
    def _fold(builder: CacheBuilder, result: FileResult) -> None:
        parsed = result.parsed
        if parsed is None:
            return
        path = parsed.file.path

        builder.add_file(parsed.file)
        if result.modified_at is not None:
            builder.add_source_file(path, result.modified_at)
        for symbol in parsed.symbols:
            builder.add_symbol(symbol)
        for caller, callees in parsed.calls:
            builder.add_call_edge(caller, callees)

        if parsed.lock_level is not None:
            builder.add_file_constraint(
                path, parsed.lock_level, parsed.lock_directive, parsed.lock_auto_generated
            )
        for hack in parsed.hacks:
            builder.add_hack(path, hack.line, hack.reason, hack.ticket, hack.expires)


def _attach_history(history: HistoryProvider, result: FileResult) -> None:
    """Add git facts to a file and its symbols.

    Any lookup failure for this one file is logged and leaves it without
    history; it never aborts the run.
    """
    parsed = result.parsed
    if parsed is None:
        return
    try:
        parsed.file.git = history.file_history(result.path).to_file_info()
        blame = history.blame(result.path)
    except PathNotTrackedError:
        log.debug("history_untracked", path=result.path)
        return
    except (GitError, pygit2.GitError, KeyError, ValueError, OSError) as e:
        log.warning("history_unavailable", path=result.path, error=str(e))
        return
    for symbol in parsed.symbols:
        start, end = symbol.lines
        symbol.git = blame.symbol_info(start, end)
