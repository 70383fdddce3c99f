"""Read-only queries over a finished index.

Every query is a pure function of the Index it was built from. Graph
lookups for unknown names return empty lists rather than raising.
"""

from __future__ import annotations

from pathlib import Path

from acpindex.cache.io import load_index
from acpindex.cache.models import DomainEntry, FileEntry, Index, Stats, SymbolEntry
from acpindex.cache.paths import lookup_path
from acpindex.config.constants import HOTPATH_LIMIT


class Query:
    """Query facade over an Index.

    Usage::

        query = Query.load(Path(".acp.cache.json"))
        query.callers("validate_session")
        query.file("./src\\\\auth\\\\session.ts")
    """

    def __init__(self, index: Index) -> None:
        self.index = index
        self._symbols_by_file: dict[str, list[str]] = {}
        for name in sorted(index.symbols):
            self._symbols_by_file.setdefault(index.symbols[name].file, []).append(name)

    @classmethod
    def load(cls, path: Path) -> Query:
        return cls(load_index(path))

    def symbol(self, name: str) -> SymbolEntry | None:
        return self.index.symbols.get(name)

    def file(self, path: str) -> FileEntry | None:
        """File record for ``path``, tolerating ``./`` prefixes and backslashes."""
        return lookup_path(self.index.files, path)

    def callers(self, name: str) -> list[str]:
        graph = self.index.graph
        return list(graph.reverse.get(name, [])) if graph is not None else []

    def callees(self, name: str) -> list[str]:
        graph = self.index.graph
        return list(graph.forward.get(name, [])) if graph is not None else []

    def domain(self, name: str) -> DomainEntry | None:
        return self.index.domains.get(name)

    def domains(self) -> list[DomainEntry]:
        return [self.index.domains[name] for name in sorted(self.index.domains)]

    def stats(self) -> Stats:
        return self.index.stats

    def symbols_in_file(self, path: str) -> list[SymbolEntry]:
        entry = self.file(path)
        if entry is None:
            return []
        return [self.index.symbols[name] for name in self._symbols_by_file.get(entry.path, [])]

    def files_in_domain(self, name: str) -> list[FileEntry]:
        domain = self.domain(name)
        if domain is None:
            return []
        return [self.index.files[path] for path in domain.files if path in self.index.files]

    def hotpaths(self, limit: int = HOTPATH_LIMIT) -> list[str]:
        """Most-called symbols, by number of distinct callers.

        Ties are broken by name. Known symbols are reported by qualified name;
        callees that resolve to no symbol are reported by their bare name.
        """
        graph = self.index.graph
        if graph is None or limit <= 0:
            return []
        ranked = sorted(
            (name for name, callers in graph.reverse.items() if callers),
            key=lambda name: (-len(graph.reverse[name]), name),
        )
        hot = []
        for name in ranked[:limit]:
            symbol = self.index.symbols.get(name)
            hot.append(symbol.qualified_name if symbol is not None else name)
        return hot
