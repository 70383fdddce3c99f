"""Annotation-driven file parsing.

Turns one file's ``@acp:`` annotations into a FileEntry, the symbols the
annotations declare, their call edges, and the lock/hack data the index's
constraint section is built from.

Annotations before the first symbol marker (``@acp:symbol``, ``@acp:fn``,
``@acp:function``, ``@acp:class``, ``@acp:method``) describe the file; those
after it describe the current symbol until the next marker.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime

from acpindex.cache.models import (
    AnnotationProvenance,
    BehavioralAnnotations,
    DocumentationAnnotations,
    FileEntry,
    InlineAnnotation,
    Language,
    LifecycleAnnotations,
    PerformanceAnnotations,
    Stability,
    SymbolConstraint,
    SymbolEntry,
    SymbolType,
    TypeInfo,
    TypeParamInfo,
    TypeReturnInfo,
    TypeSource,
    TypeTypeParam,
)
from acpindex.config.constants import ANNOTATED_SYMBOL_SPAN
from acpindex.core.languages import detect_language
from acpindex.parse.annotations import (
    Annotation,
    AnnotationWithProvenance,
    parse_annotations_with_provenance,
)
from acpindex.parse.provenance import provenance_record

_SYMBOL_MARKERS = {
    "symbol": SymbolType.FUNCTION,
    "fn": SymbolType.FUNCTION,
    "function": SymbolType.FUNCTION,
    "class": SymbolType.CLASS,
    "method": SymbolType.METHOD,
}

_STABILITY_VALUES = frozenset(s.value for s in Stability)

_AI_HINTS = frozenset({"ai-careful", "ai-readonly", "ai-avoid", "ai-no-modify"})

_INLINE_FALLBACKS = {
    "todo": "Pending work item",
    "fixme": "Known issue requiring fix",
    "critical": "Critical section - extra review required",
}

_LIFECYCLE_FLAGS = {
    "experimental": "experimental",
    "beta": "beta",
    "internal": "internal",
    "public-api": "public_api",
}

_BEHAVIOR_FLAGS = {
    "pure": "pure",
    "idempotent": "idempotent",
    "async": "is_async",
    "generator": "generator",
    "transactional": "transactional",
}


class UnsupportedLanguageError(ValueError):
    """Raised for files whose extension maps to no known language."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Unsupported language: {path}")
        self.path = path


@dataclass(slots=True)
class HackAnnotation:
    line: int
    expires: str | None = None
    ticket: str | None = None
    reason: str | None = None


@dataclass
class FileParseResult:
    """Everything the annotation pass learned about one file."""

    file: FileEntry
    symbols: list[SymbolEntry] = field(default_factory=list)
    calls: list[tuple[str, list[str]]] = field(default_factory=list)
    lock_level: str | None = None
    lock_directive: str | None = None
    lock_auto_generated: bool = False
    hacks: list[HackAnnotation] = field(default_factory=list)


def _unquote(value: str) -> str:
    return value.strip('"')


def _split_list(value: str) -> list[str]:
    return [_unquote(part.strip()) for part in value.split(",")]


def _leading_type(value: str) -> tuple[str | None, str]:
    """Split ``{Type} rest`` into ("Type", "rest"). No braces gives (None, value)."""
    value = value.strip()
    if value.startswith("{"):
        close = value.find("}")
        if close != -1:
            return value[1:close].strip(), value[close + 1 :].strip()
    return None, value


def _parse_param(value: str, directive: str | None) -> TypeParamInfo | None:
    type_expr, rest = _leading_type(value)
    optional = False
    default = None
    if rest.startswith("[") and "]" in rest:
        optional = True
        inner = rest[1 : rest.index("]")]
        name, sep, default_text = inner.partition("=")
        name = name.strip()
        default = default_text.strip() if sep else None
    elif rest.startswith("["):
        name = _unquote(rest)
    else:
        words = rest.split()
        name = _unquote(words[0]) if words else ""

    if not name:
        return None
    return TypeParamInfo(
        name=name,
        type_name=type_expr,
        type_source=TypeSource.ACP if type_expr is not None else None,
        optional=optional,
        default=default,
        directive=directive,
    )


def _parse_hack(ann: Annotation) -> HackAnnotation:
    hack = HackAnnotation(line=ann.line)
    if ann.value is None:
        return hack
    for part in ann.value.split():
        if part.startswith("expires="):
            hack.expires = part.removeprefix("expires=")
        elif part.startswith("ticket="):
            hack.ticket = part.removeprefix("ticket=")
        elif part.startswith('"'):
            quoted = ann.value.split('"')
            hack.reason = quoted[1] if len(quoted) > 1 else ""
            break
    return hack


def _text_of(ann: Annotation) -> str | None:
    """Directive if present, else the unquoted value."""
    if ann.directive is not None:
        return ann.directive
    return _unquote(ann.value) if ann.value is not None else None


@dataclass
class _SymbolBuilder:
    name: str
    qualified_name: str
    line: int
    symbol_type: SymbolType = SymbolType.FUNCTION
    summary: str | None = None
    purpose: str | None = None
    constraint: SymbolConstraint | None = None
    calls: list[str] = field(default_factory=list)
    behavioral: BehavioralAnnotations = field(default_factory=BehavioralAnnotations)
    lifecycle: LifecycleAnnotations = field(default_factory=LifecycleAnnotations)
    documentation: DocumentationAnnotations = field(default_factory=DocumentationAnnotations)
    performance: PerformanceAnnotations = field(default_factory=PerformanceAnnotations)
    type_info: TypeInfo = field(default_factory=TypeInfo)
    annotations: dict[str, AnnotationProvenance] = field(default_factory=dict)

    def build(self, file_path: str) -> SymbolEntry:
        return SymbolEntry(
            name=self.name,
            qualified_name=self.qualified_name,
            symbol_type=self.symbol_type,
            file=file_path,
            lines=(self.line, self.line + ANNOTATED_SYMBOL_SPAN),
            exported=True,
            summary=self.summary,
            purpose=self.purpose,
            constraints=self.constraint,
            is_async=self.behavioral.is_async,
            calls=list(self.calls),
            annotations=dict(self.annotations),
            behavioral=None if self.behavioral.is_empty() else self.behavioral,
            lifecycle=None if self.lifecycle.is_empty() else self.lifecycle,
            documentation=None if self.documentation.is_empty() else self.documentation,
            performance=None if self.performance.is_empty() else self.performance,
            type_info=None if self.type_info.is_empty() else self.type_info,
        )


class AnnotationParser:
    """Parse ``@acp:`` annotations out of source text.

    Stateless apart from the provenance review threshold, so one instance can
    be shared or pickled to worker processes.
    """

    def __init__(self, review_threshold: float = 0.8) -> None:
        self.review_threshold = review_threshold

    def parse(self, path: str, content: str, language: Language | None = None) -> FileParseResult:
        """Parse one file.

        Args:
            path: Normalized path relative to the project root
            content: Full file text
            language: Overrides extension-based detection

        Raises:
            UnsupportedLanguageError: If no language is given and none is
                detected from the extension.
        """
        if language is None:
            detected = detect_language(path)
            if detected is None:
                raise UnsupportedLanguageError(path)
            language = Language(detected)

        state = _FileState(path, self.review_threshold)
        for item in parse_annotations_with_provenance(content):
            state.record_provenance(item)
            state.dispatch(item.annotation)
        state.flush_symbol()

        calls = [(sym.name, list(sym.calls)) for sym in state.symbols if sym.calls]

        entry = FileEntry(
            path=path,
            lines=len(content.splitlines()),
            language=language,
            exports=state.exports,
            imports=state.imports,
            module=state.module,
            summary=state.summary,
            purpose=state.purpose,
            owner=state.owner,
            inline=state.inline,
            domains=state.domains,
            layer=state.layer,
            stability=state.stability,
            ai_hints=state.ai_hints,
            annotations=state.file_annotations,
            version=state.version,
            since=state.since,
            license=state.license,
            author=state.author,
            lifecycle=None if state.lifecycle.is_empty() else state.lifecycle,
        )
        return FileParseResult(
            file=entry,
            symbols=state.symbols,
            calls=calls,
            lock_level=state.lock_level,
            lock_directive=state.lock_directive,
            lock_auto_generated=state.lock_auto_generated,
            hacks=state.hacks,
        )


class _FileState:
    """Accumulators for one parse pass."""

    def __init__(self, path: str, review_threshold: float) -> None:
        self.path = path
        self.review_threshold = review_threshold
        self.generated_at = datetime.now(UTC).isoformat()

        self.module: str | None = None
        self.summary: str | None = None
        self.purpose: str | None = None
        self.owner: str | None = None
        self.layer: str | None = None
        self.stability: Stability | None = None
        self.version: str | None = None
        self.since: str | None = None
        self.license: str | None = None
        self.author: str | None = None
        self.lock_level: str | None = None
        self.lock_directive: str | None = None
        self.lock_auto_generated = False
        self.domains: list[str] = []
        self.imports: list[str] = []
        self.exports: list[str] = []
        self.ai_hints: list[str] = []
        self.inline: list[InlineAnnotation] = []
        self.hacks: list[HackAnnotation] = []
        self.lifecycle = LifecycleAnnotations()
        self.file_annotations: dict[str, AnnotationProvenance] = {}

        self.symbols: list[SymbolEntry] = []
        self.current: _SymbolBuilder | None = None

    # -- provenance --------------------------------------------------------

    def record_provenance(self, item: AnnotationWithProvenance) -> None:
        name = item.annotation.name
        if name.startswith("source"):
            return
        record = provenance_record(item, self.review_threshold, self.generated_at)
        key = f"@acp:{name}"
        if name in _SYMBOL_MARKERS or self.current is None:
            # Markers open a new symbol scope, so they are recorded on the file.
            self.file_annotations[key] = record
        else:
            self.current.annotations[key] = record

    # -- symbol scope ------------------------------------------------------

    def flush_symbol(self) -> None:
        if self.current is None:
            return
        symbol = self.current.build(self.path)
        self.exports.append(symbol.name)
        self.symbols.append(symbol)
        self.current = None

    def start_symbol(self, ann: Annotation) -> None:
        self.flush_symbol()
        if ann.value is None:
            return
        name = _unquote(ann.value)
        builder = _SymbolBuilder(
            name=name,
            qualified_name=f"{self.path}:{name}",
            line=ann.line,
            symbol_type=_SYMBOL_MARKERS[ann.name],
        )
        if ann.name != "symbol":
            builder.purpose = ann.directive
        self.current = builder

    # -- dispatch ----------------------------------------------------------

    def dispatch(self, ann: Annotation) -> None:
        name = ann.name
        value = ann.value
        sym = self.current

        if name in _SYMBOL_MARKERS:
            self.start_symbol(ann)
        elif name == "module":
            if value is not None:
                self.module = _unquote(value)
        elif name == "summary":
            if value is not None:
                if sym is not None:
                    sym.summary = _unquote(value)
                else:
                    self.summary = _unquote(value)
        elif name == "domain":
            if value is not None:
                self.domains.append(_unquote(value))
        elif name == "layer":
            if value is not None:
                self.layer = _unquote(value)
        elif name == "stability":
            if value is not None and _unquote(value) in _STABILITY_VALUES:
                self.stability = Stability(_unquote(value))
        elif name == "lock":
            self._lock(ann)
        elif name == "purpose":
            if value is not None:
                self.purpose = _unquote(value)
            elif ann.directive is not None:
                self.purpose = ann.directive
        elif name == "owner":
            if value is not None:
                self.owner = _unquote(value)
        elif name in _AI_HINTS:
            self.ai_hints.append(f"{name}: {_unquote(value)}" if value is not None else name)
        elif name == "hack":
            self._hack(ann)
        elif name in _INLINE_FALLBACKS:
            self._inline(ann, _INLINE_FALLBACKS[name])
            if name == "todo" and sym is not None:
                sym.documentation.todos.append(_text_of(ann) or "Pending work item")
        elif name == "perf":
            self._inline(ann, "Performance-sensitive code")
            if sym is not None and value is not None:
                sym.performance.complexity = _unquote(value)
        elif name == "calls":
            if sym is not None and value is not None:
                sym.calls.extend(_split_list(value))
        elif name in ("imports", "depends"):
            if value is not None:
                self.imports.extend(_split_list(value))
        elif name in ("version", "license", "author"):
            if value is not None:
                setattr(self, name, _unquote(value))
        elif sym is not None:
            self._symbol_annotation(sym, ann)
        else:
            self._file_lifecycle(ann)

    def _lock(self, ann: Annotation) -> None:
        if ann.value is not None:
            self.lock_level = _unquote(ann.value)
        self.lock_directive = ann.directive
        self.lock_auto_generated = ann.auto_generated
        if self.current is not None and ann.value is not None:
            self.current.constraint = SymbolConstraint(
                level=_unquote(ann.value),
                directive=ann.directive or "",
                auto_generated=ann.auto_generated,
            )

    def _hack(self, ann: Annotation) -> None:
        hack = _parse_hack(ann)
        self.hacks.append(hack)
        self.inline.append(
            InlineAnnotation(
                line=ann.line,
                annotation_type="hack",
                value=ann.value,
                directive=ann.directive or "Temporary workaround",
                expires=hack.expires,
                ticket=hack.ticket,
                auto_generated=ann.auto_generated,
            )
        )

    def _inline(self, ann: Annotation, fallback: str) -> None:
        self.inline.append(
            InlineAnnotation(
                line=ann.line,
                annotation_type=ann.name,
                value=ann.value,
                directive=ann.directive or fallback,
                auto_generated=ann.auto_generated,
            )
        )

    def _file_lifecycle(self, ann: Annotation) -> None:
        if ann.name == "deprecated":
            self.lifecycle.deprecated = _text_of(ann) or "Deprecated"
        elif ann.name in _LIFECYCLE_FLAGS:
            setattr(self.lifecycle, _LIFECYCLE_FLAGS[ann.name], True)
        elif ann.name == "since" and ann.value is not None:
            self.since = _unquote(ann.value)

    def _symbol_annotation(self, sym: _SymbolBuilder, ann: Annotation) -> None:
        name = ann.name
        value = ann.value

        # Types
        if name == "param":
            if value is not None:
                param = _parse_param(value, ann.directive)
                if param is not None:
                    sym.type_info.params.append(param)
        elif name in ("returns", "return"):
            type_expr = _leading_type(value)[0] if value is not None else None
            sym.type_info.returns = TypeReturnInfo(
                type_name=type_expr,
                type_source=TypeSource.ACP if type_expr is not None else None,
                directive=ann.directive,
            )
        elif name == "template":
            if value is not None:
                param_name, sep, constraint = value.strip().partition(" extends ")
                words = param_name.split()
                if sep:
                    type_name = param_name.strip()
                elif words:
                    type_name = words[0]
                else:
                    type_name = ""
                if type_name:
                    sym.type_info.type_params.append(
                        TypeTypeParam(
                            name=type_name,
                            constraint=constraint.strip() if sep else None,
                            directive=ann.directive,
                        )
                    )

        # Behavior
        elif name in _BEHAVIOR_FLAGS:
            setattr(sym.behavioral, _BEHAVIOR_FLAGS[name], True)
        elif name == "memoized":
            sym.behavioral.memoized = _unquote(value) if value is not None else True
        elif name == "throttled":
            if value is not None:
                sym.behavioral.throttled = _unquote(value)
        elif name == "side-effects":
            if value is not None:
                sym.behavioral.side_effects.extend(_split_list(value))

        # Lifecycle
        elif name == "deprecated":
            sym.lifecycle.deprecated = _text_of(ann) or "Deprecated"
        elif name in _LIFECYCLE_FLAGS:
            setattr(sym.lifecycle, _LIFECYCLE_FLAGS[name], True)
        elif name == "since":
            if value is not None:
                sym.lifecycle.since = _unquote(value)

        # Documentation
        elif name in ("example", "note", "warning"):
            text = _text_of(ann)
            if text:
                target = {"example": "examples", "note": "notes", "warning": "warnings"}[name]
                getattr(sym.documentation, target).append(text)
        elif name == "see":
            if value is not None:
                sym.documentation.see_also.append(_unquote(value))
        elif name == "link":
            if value is not None:
                sym.documentation.links.append(_unquote(value))

        # Performance
        elif name == "memory":
            if value is not None:
                sym.performance.memory = _unquote(value)
        elif name == "cached":
            sym.performance.cached = _unquote(value) if value is not None else "true"
