"""Sequential assembly of per-file results into one Index.

The builder is the single owner of the in-progress index. Parallel workers
never touch it; the indexer folds their results in one at a time.

Invariants maintained here:
- every forward call edge has exactly one reverse edge and vice versa
- ``called_by`` is derived from the reverse graph at build time
- statistics are recomputed from scratch in ``build()``
- a symbol's ``lines`` is ordered and its ``file`` is a known file
- file keys, symbol files and constraint paths are normalized relative paths
"""

from __future__ import annotations

from collections import defaultdict
from datetime import UTC, datetime

from acpindex.cache.models import (
    BridgeStats,
    CallGraph,
    ConstraintIndex,
    Conventions,
    DomainEntry,
    FileConstraint,
    FileEntry,
    HackMarker,
    Index,
    LockLevel,
    ProjectInfo,
    SymbolEntry,
)
from acpindex.cache.paths import normalize_path
from acpindex.cache.stats import compute_bridge_stats, compute_provenance_stats
from acpindex.config.constants import SCHEMA_VERSION
from acpindex.core.errors import InternalError
from acpindex.core.logging import get_logger

log = get_logger("cache.builder")

_LOCK_LEVELS = {level.value: level for level in LockLevel}


def parse_lock_level(value: str | None) -> LockLevel:
    """Map an ``@acp:lock`` value to a lock level. Unknown values are normal."""
    if value is None:
        return LockLevel.NORMAL
    return _LOCK_LEVELS.get(value.strip().lower(), LockLevel.NORMAL)


class CacheBuilder:
    """Fold files, symbols and call edges into an Index.

    Usage::

        builder = CacheBuilder("myproject", "/path/to/myproject")
        builder.add_file(file_entry)
        builder.add_symbol(symbol_entry)
        builder.add_call_edge("main", ["parse", "render"])
        index = builder.build()
    """

    def __init__(
        self,
        project_name: str,
        root: str,
        *,
        version: str = SCHEMA_VERSION,
        generated_at: datetime | None = None,
    ) -> None:
        self._index = Index(
            version=version,
            generated_at=generated_at or datetime.now(UTC),
            project=ProjectInfo(name=project_name, root=root),
            graph=CallGraph(),
        )
        self._domain_files: dict[str, list[str]] = defaultdict(list)
        self._constraints = ConstraintIndex()
        self._conventions: Conventions | None = None
        self._bridge_enabled = False
        self._bridge_precedence = "acp-first"
        self._low_confidence_threshold = 0.5

    # -- fold steps --------------------------------------------------------

    def add_file(self, file: FileEntry) -> CacheBuilder:
        """Insert a file record under its normalized path."""
        path = normalize_path(file.path)
        if path != file.path:
            file = file.model_copy(update={"path": path})
        self._index.files[path] = file
        for domain in file.domains:
            members = self._domain_files[domain]
            if file.path not in members:
                members.append(file.path)
        return self

    def add_symbol(self, symbol: SymbolEntry) -> CacheBuilder:
        """Insert a symbol. A later symbol with the same name replaces the earlier one."""
        start, end = symbol.lines
        if start > end:
            raise InternalError.invariant(
                "symbol lines are inverted",
                symbol=symbol.name,
                file=symbol.file,
                lines=[start, end],
            )
        file = normalize_path(symbol.file)
        if file != symbol.file:
            symbol = symbol.model_copy(update={"file": file})
        previous = self._index.symbols.get(symbol.name)
        if previous is not None and previous.file != symbol.file:
            log.warning(
                "symbol_name_collision",
                symbol=symbol.name,
                replaced=previous.file,
                kept=symbol.file,
            )
        self._index.symbols[symbol.name] = symbol
        return self

    def add_call_edge(self, caller: str, callees: list[str]) -> CacheBuilder:
        """Record ``caller -> callees`` in both directions.

        Repeated calls for the same caller accumulate; duplicate callees are
        stored once.
        """
        graph = self._graph
        targets = graph.forward.setdefault(caller, [])
        for callee in callees:
            if callee in targets:
                continue
            targets.append(callee)
            graph.reverse.setdefault(callee, []).append(caller)
        return self

    def add_source_file(self, path: str, modified_at: datetime) -> CacheBuilder:
        self._index.source_files[normalize_path(path)] = modified_at
        return self

    def add_domain(self, domain: DomainEntry) -> CacheBuilder:
        """Register a domain explicitly; file membership is merged at build time."""
        self._index.domains[domain.name] = domain
        return self

    def add_file_constraint(
        self,
        path: str,
        lock: str | None,
        directive: str | None,
        auto_generated: bool = False,
    ) -> CacheBuilder:
        level = parse_lock_level(lock)
        path = normalize_path(path)
        self._constraints.by_file[path] = FileConstraint(
            level=level,
            directive=directive,
            auto_generated=auto_generated or directive is None,
            requires_approval=level is LockLevel.APPROVAL_REQUIRED,
            requires_tests=level is LockLevel.TESTS_REQUIRED,
            requires_docs=level is LockLevel.DOCS_REQUIRED,
        )
        members = self._constraints.by_lock_level.setdefault(level.value, [])
        if path not in members:
            members.append(path)
        return self

    def add_hack(
        self,
        path: str,
        line: int,
        reason: str | None = None,
        ticket: str | None = None,
        expires: str | None = None,
    ) -> CacheBuilder:
        path = normalize_path(path)
        self._constraints.hacks.append(
            HackMarker(
                id=f"{path}:{line}",
                file=path,
                line=line,
                reason=reason or "Temporary hack",
                ticket=ticket,
                expires=expires,
            )
        )
        return self

    # -- run-level settings ------------------------------------------------

    def set_git_commit(self, commit: str) -> CacheBuilder:
        self._index.git_commit = commit
        return self

    def set_conventions(self, conventions: Conventions) -> CacheBuilder:
        self._conventions = conventions
        return self

    def set_bridge(self, *, enabled: bool, precedence: str) -> CacheBuilder:
        self._bridge_enabled = enabled
        self._bridge_precedence = precedence
        return self

    def set_low_confidence_threshold(self, threshold: float) -> CacheBuilder:
        self._low_confidence_threshold = threshold
        return self

    @property
    def file_paths(self) -> list[str]:
        return list(self._index.files)

    @property
    def _graph(self) -> CallGraph:
        if self._index.graph is None:
            self._index.graph = CallGraph()
        return self._index.graph

    # -- finish ------------------------------------------------------------

    def build(self) -> Index:
        """Finish the index: derive callers, domains and all statistics."""
        index = self._index

        for symbol in index.symbols.values():
            if symbol.file not in index.files:
                raise InternalError.invariant(
                    "symbol references unknown file", symbol=symbol.name, file=symbol.file
                )

        reverse = self._graph.reverse
        for name, symbol in index.symbols.items():
            symbol.called_by = list(reverse.get(name, []))

        self._build_domains()

        index.constraints = None if self._constraints.is_empty() else self._constraints
        if self._conventions is not None and not self._conventions.is_empty():
            index.conventions = self._conventions

        index.update_stats()

        provenance = compute_provenance_stats(index, self._low_confidence_threshold)
        index.provenance = None if provenance.is_empty() else provenance

        bridge: BridgeStats = compute_bridge_stats(
            index, enabled=self._bridge_enabled, precedence=self._bridge_precedence
        )
        index.bridge = None if bridge.is_empty() else bridge

        return index

    def _build_domains(self) -> None:
        index = self._index
        for name, files in self._domain_files.items():
            entry = index.domains.get(name) or DomainEntry(name=name, files=[])
            for path in files:
                if path not in entry.files:
                    entry.files.append(path)
            index.domains[name] = entry

        for entry in index.domains.values():
            members = set(entry.files)
            for symbol_name, symbol in index.symbols.items():
                if symbol.file in members and symbol_name not in entry.symbols:
                    entry.symbols.append(symbol_name)
