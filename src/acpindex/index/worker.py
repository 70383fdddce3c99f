"""Per-file processing, run in worker processes.

``process_file`` is a module-level function so it can be submitted to a
``ProcessPoolExecutor``. It reads one file and returns a self-contained
``FileResult``; it never touches the in-progress index.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from acpindex.bridge import (
    AcpAnnotations,
    BridgeMerger,
    BridgeResult,
    FormatDetector,
    parse_native_doc,
    tally,
)
from acpindex.cache.io import file_mtime
from acpindex.cache.models import (
    DocumentationAnnotations,
    SourceFormat,
    SymbolEntry,
    TypeInfo,
    TypeParamInfo,
    TypeReturnInfo,
)
from acpindex.config.models import BridgeConfig
from acpindex.index.extraction.protocol import CallEdge, ExtractedSymbol, SymbolExtractor
from acpindex.parse import AnnotationParser, FileParseResult


@dataclass
class WorkerOptions:
    """Everything a worker needs besides the file itself. Must be picklable."""

    review_threshold: float = 0.8
    bridge: BridgeConfig = field(default_factory=BridgeConfig)
    extractor: SymbolExtractor | None = None


@dataclass
class FileResult:
    """Outcome of processing one file. ``error`` is set when it failed."""

    path: str
    parsed: FileParseResult | None = None
    modified_at: datetime | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.parsed is not None


def process_file(rel_path: str, root: str, options: WorkerOptions) -> FileResult:
    """Parse annotations, extract symbols and calls, and bridge docs for one file.

    Raises whatever reading or parsing the file raises; the caller records
    the failure and moves on.
    """
    full_path = Path(root) / rel_path
    content = full_path.read_text(encoding="utf-8")
    modified_at = file_mtime(full_path)

    parsed = AnnotationParser(options.review_threshold).parse(rel_path, content)
    docs: dict[str, str] = {}

    if options.extractor is not None:
        extracted = options.extractor.extract(rel_path, content)
        calls = options.extractor.extract_calls(rel_path, content)
        docs = _merge_extracted(parsed, extracted)
        _merge_calls(parsed, calls)

    language = parsed.file.language.value
    if docs and options.bridge.is_enabled_for(language):
        _bridge_file(parsed, docs, language, options.bridge)

    return FileResult(path=rel_path, parsed=parsed, modified_at=modified_at)


# -- extraction --------------------------------------------------------------


def _merge_extracted(parsed: FileParseResult, extracted: list[ExtractedSymbol]) -> dict[str, str]:
    """Fold extracted symbols into the annotation-derived ones.

    An extracted symbol with the same name as an annotated one refines its
    location, kind and signature; others are added. Returns raw doc comments
    by symbol name.
    """
    by_name = {symbol.name: symbol for symbol in parsed.symbols}
    docs: dict[str, str] = {}

    for found in extracted:
        if not found.name:
            continue
        if found.doc_comment:
            docs[found.name] = found.doc_comment

        existing = by_name.get(found.name)
        if existing is not None:
            existing.lines = (found.start_line, max(found.start_line, found.end_line))
            existing.symbol_type = found.kind
            existing.signature = found.signature or existing.signature
            existing.visibility = found.visibility
            existing.is_async = existing.is_async or found.is_async
            if found.qualified_name:
                existing.qualified_name = found.qualified_name
            continue

        symbol = SymbolEntry(
            name=found.name,
            qualified_name=found.qualified_name or f"{parsed.file.path}:{found.name}",
            symbol_type=found.kind,
            file=parsed.file.path,
            lines=(found.start_line, max(found.start_line, found.end_line)),
            exported=found.exported,
            signature=found.signature,
            is_async=found.is_async,
            visibility=found.visibility,
        )
        parsed.symbols.append(symbol)
        by_name[symbol.name] = symbol
        if found.exported and found.name not in parsed.file.exports:
            parsed.file.exports.append(found.name)

    return docs


def _merge_calls(parsed: FileParseResult, edges: list[CallEdge]) -> None:
    by_name = {symbol.name: symbol for symbol in parsed.symbols}
    for edge in edges:
        symbol = by_name.get(edge.caller)
        if symbol is not None and edge.callee not in symbol.calls:
            symbol.calls.append(edge.callee)
    parsed.calls = [(symbol.name, list(symbol.calls)) for symbol in parsed.symbols if symbol.calls]


# -- bridge ------------------------------------------------------------------


def _acp_annotations(symbol: SymbolEntry) -> AcpAnnotations:
    acp = AcpAnnotations(summary=symbol.summary, directive=symbol.purpose)
    if symbol.type_info is not None:
        acp.params = [(p.name, p.directive) for p in symbol.type_info.params if p.directive]
        if symbol.type_info.returns is not None:
            acp.returns = symbol.type_info.returns.directive
    return acp


def _apply_result(symbol: SymbolEntry, result: BridgeResult) -> None:
    if result.summary is not None:
        symbol.summary = result.summary

    info = symbol.type_info or TypeInfo()
    declared = {param.name: param for param in info.params}
    params: list[TypeParamInfo] = []
    for entry in result.params:
        prior = declared.pop(entry.name, None)
        has_prior_type = prior is not None and prior.type_name is not None
        params.append(
            TypeParamInfo(
                name=entry.name,
                type_name=prior.type_name if has_prior_type else entry.type_name,
                type_source=prior.type_source if has_prior_type else entry.type_source,
                optional=prior.optional if prior is not None else entry.optional,
                default=prior.default if prior is not None else entry.default,
                directive=entry.directive or (prior.directive if prior is not None else None),
            )
        )
    params.extend(declared.values())
    info.params = params

    if result.returns is not None:
        prior_returns = info.returns
        keep_type = prior_returns is not None and prior_returns.type_name is not None
        info.returns = TypeReturnInfo(
            type_name=prior_returns.type_name if keep_type else result.returns.type_name,
            type_source=prior_returns.type_source if keep_type else result.returns.type_source,
            directive=result.returns.directive,
        )
    symbol.type_info = None if info.is_empty() else info

    if result.examples:
        docs = symbol.documentation
        if docs is None:
            docs = DocumentationAnnotations()
        docs.examples.extend(e for e in result.examples if e not in docs.examples)
        symbol.documentation = docs


def _bridge_file(
    parsed: FileParseResult, docs: dict[str, str], language: str, config: BridgeConfig
) -> None:
    detector = FormatDetector(config)
    merger = BridgeMerger(config)
    results: list[BridgeResult] = []
    formats: Counter[SourceFormat] = Counter()

    for symbol in parsed.symbols:
        doc = docs.get(symbol.name)
        if doc is None:
            continue
        fmt = detector.resolve(doc, language)
        if fmt is None:
            continue
        native = parse_native_doc(doc, fmt)
        acp = _acp_annotations(symbol)
        if native.is_empty() and acp.is_empty():
            continue
        result = merger.merge(native, fmt, acp)
        _apply_result(symbol, result)
        results.append(result)
        formats[fmt] += 1

    if results:
        detected = formats.most_common(1)[0][0]
        parsed.file.bridge = tally(results, detected)
