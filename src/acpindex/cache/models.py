"""Pydantic models for the persisted index document (``.acp.cache.json``).

Single source of truth for the on-disk shape. Every record type the indexer
writes, and every record type a query reads back, lives here.

Serialization rules:
- Optional fields that are None are omitted on write.
- Fields listed in a model's ``omit_default`` are omitted when they equal
  their default (empty list, empty dict, False, public visibility, ...).
- Omitted fields deserialize back to the same None/default, so
  dump -> load -> dump is byte-identical.

Core records (Index, FileEntry, SymbolEntry, ...) use snake_case keys.
Bridge, provenance and extended-annotation records use camelCase keys.
"""

from datetime import datetime
from enum import Enum
from typing import Any, ClassVar

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SerializationInfo,
    SerializerFunctionWrapHandler,
    model_serializer,
)
from pydantic.alias_generators import to_camel

from acpindex.config.constants import SCHEMA_URL

# ============================================================================
# BASE CLASSES
# ============================================================================


class CacheModel(BaseModel):
    """Base for every persisted record.

    Drops None fields and default-valued fields named in ``omit_default``
    from the serialized output.
    """

    model_config = ConfigDict(populate_by_name=True)

    omit_default: ClassVar[frozenset[str]] = frozenset()

    @model_serializer(mode="wrap")
    def _omit_empty(
        self, handler: SerializerFunctionWrapHandler, info: SerializationInfo
    ) -> dict[str, Any]:
        data = handler(self)
        for name, field in type(self).model_fields.items():
            key = field.alias if info.by_alias and field.alias else name
            if key not in data:
                continue
            value = getattr(self, name)
            if value is None or (
                name in self.omit_default
                and value == field.get_default(call_default_factory=True)
            ):
                del data[key]
        return data


class CamelModel(CacheModel):
    """Persisted record with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# ENUMS
# ============================================================================


class Language(str, Enum):
    """Language identifiers stored in file records."""

    TYPESCRIPT = "typescript"
    JAVASCRIPT = "javascript"
    PYTHON = "python"
    RUST = "rust"
    GO = "go"
    JAVA = "java"
    CSHARP = "c-sharp"
    CPP = "cpp"
    C = "c"
    RUBY = "ruby"
    PHP = "php"
    SWIFT = "swift"
    KOTLIN = "kotlin"


class SymbolType(str, Enum):
    FUNCTION = "function"
    METHOD = "method"
    CLASS = "class"
    INTERFACE = "interface"
    TYPE = "type"
    ENUM = "enum"
    STRUCT = "struct"
    TRAIT = "trait"
    CONST = "const"


class Visibility(str, Enum):
    PUBLIC = "public"
    PRIVATE = "private"
    PROTECTED = "protected"


class Stability(str, Enum):
    STABLE = "stable"
    EXPERIMENTAL = "experimental"
    DEPRECATED = "deprecated"


class SourceOrigin(str, Enum):
    """How an annotation value was obtained."""

    EXPLICIT = "explicit"  # Written by a human
    CONVERTED = "converted"  # Taken from native documentation
    HEURISTIC = "heuristic"  # Pattern-based inference
    REFINED = "refined"  # Heuristic output improved by a model
    INFERRED = "inferred"  # Fully model-generated


class BridgeSource(str, Enum):
    """Origin of a bridged documentation entry."""

    EXPLICIT = "explicit"
    CONVERTED = "converted"
    MERGED = "merged"
    HEURISTIC = "heuristic"


class SourceFormat(str, Enum):
    """Native documentation format an entry was taken from."""

    ACP = "acp"
    JSDOC = "jsdoc"
    DOCSTRING_GOOGLE = "docstring:google"
    DOCSTRING_NUMPY = "docstring:numpy"
    DOCSTRING_SPHINX = "docstring:sphinx"
    RUSTDOC = "rustdoc"
    JAVADOC = "javadoc"
    GODOC = "godoc"
    TYPE_HINT = "type_hint"


class TypeSource(str, Enum):
    """Where a type expression came from."""

    ACP = "acp"
    TYPE_HINT = "type_hint"
    JSDOC = "jsdoc"
    DOCSTRING = "docstring"
    RUSTDOC = "rustdoc"
    JAVADOC = "javadoc"
    INFERRED = "inferred"
    NATIVE = "native"


class LockLevel(str, Enum):
    """How freely an agent may modify a file."""

    FROZEN = "frozen"
    RESTRICTED = "restricted"
    APPROVAL_REQUIRED = "approval-required"
    TESTS_REQUIRED = "tests-required"
    DOCS_REQUIRED = "docs-required"
    EXPERIMENTAL = "experimental"
    NORMAL = "normal"


class ModuleSystem(str, Enum):
    ESM = "esm"
    COMMONJS = "commonjs"


class PathStyle(str, Enum):
    RELATIVE = "relative"
    ABSOLUTE = "absolute"
    ALIAS = "alias"


# ============================================================================
# PROVENANCE
# ============================================================================


class AnnotationProvenance(CamelModel):
    """Provenance of a single annotation value.

    ``reviewed`` implies not ``needs_review``. Both the parser and
    ``mark_reviewed`` maintain this.
    """

    omit_default: ClassVar[frozenset[str]] = frozenset({"source", "needs_review", "reviewed"})

    value: str
    source: SourceOrigin = SourceOrigin.EXPLICIT
    confidence: float | None = None
    needs_review: bool = False
    reviewed: bool = False
    reviewed_at: str | None = None
    generated_at: str | None = None
    generation_id: str | None = None

    def mark_reviewed(self, when: str | None = None) -> None:
        """Record a human review of this value."""
        self.reviewed = True
        self.needs_review = False
        self.reviewed_at = when


class SourceCounts(CacheModel):
    explicit: int = 0
    converted: int = 0
    heuristic: int = 0
    refined: int = 0
    inferred: int = 0

    def increment(self, origin: SourceOrigin) -> None:
        setattr(self, origin.value, getattr(self, origin.value) + 1)


class ProvenanceSummary(CamelModel):
    omit_default: ClassVar[frozenset[str]] = frozenset({"average_confidence"})

    total: int = 0
    by_source: SourceCounts = Field(default_factory=SourceCounts)
    needs_review: int = 0
    reviewed: int = 0
    average_confidence: dict[str, float] = Field(default_factory=dict)


class LowConfidenceEntry(CamelModel):
    target: str  # "path" for file annotations, "path:symbol" for symbol annotations
    annotation: str
    confidence: float
    value: str


class ProvenanceStats(CamelModel):
    omit_default: ClassVar[frozenset[str]] = frozenset({"low_confidence"})

    summary: ProvenanceSummary = Field(default_factory=ProvenanceSummary)
    low_confidence: list[LowConfidenceEntry] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return self.summary.total == 0


# ============================================================================
# BRIDGE
# ============================================================================


class ParamEntry(CamelModel):
    """Parameter documentation with bridge provenance."""

    omit_default: ClassVar[frozenset[str]] = frozenset({"optional", "source", "source_formats"})

    name: str
    type_name: str | None = Field(default=None, alias="type")
    type_source: TypeSource | None = None
    description: str | None = None
    directive: str | None = None
    optional: bool = False
    default: str | None = None
    source: BridgeSource = BridgeSource.EXPLICIT
    source_format: SourceFormat | None = None
    source_formats: list[SourceFormat] = Field(default_factory=list)


class ReturnsEntry(CamelModel):
    omit_default: ClassVar[frozenset[str]] = frozenset({"source", "source_formats"})

    type_name: str | None = Field(default=None, alias="type")
    type_source: TypeSource | None = None
    description: str | None = None
    directive: str | None = None
    source: BridgeSource = BridgeSource.EXPLICIT
    source_format: SourceFormat | None = None
    source_formats: list[SourceFormat] = Field(default_factory=list)


class ThrowsEntry(CamelModel):
    omit_default: ClassVar[frozenset[str]] = frozenset({"source"})

    exception: str
    description: str | None = None
    directive: str | None = None
    source: BridgeSource = BridgeSource.EXPLICIT
    source_format: SourceFormat | None = None


class BridgeMetadata(CamelModel):
    """Per-file bridge bookkeeping."""

    enabled: bool = False
    detected_format: SourceFormat | None = None
    converted_count: int = 0
    merged_count: int = 0
    explicit_count: int = 0

    def is_empty(self) -> bool:
        return not self.enabled and self.converted_count == 0 and self.merged_count == 0


class BridgeSummary(CamelModel):
    total_annotations: int = 0
    explicit_count: int = 0
    converted_count: int = 0
    merged_count: int = 0


class BridgeStats(CamelModel):
    omit_default: ClassVar[frozenset[str]] = frozenset({"by_format"})

    enabled: bool = False
    precedence: str = "acp-first"
    summary: BridgeSummary = Field(default_factory=BridgeSummary)
    by_format: dict[str, int] = Field(default_factory=dict)

    def is_empty(self) -> bool:
        return not self.enabled and self.summary.total_annotations == 0


# ============================================================================
# EXTENDED ANNOTATIONS
# ============================================================================


class BehavioralAnnotations(CamelModel):
    omit_default: ClassVar[frozenset[str]] = frozenset(
        {"pure", "idempotent", "is_async", "generator", "transactional", "side_effects"}
    )

    pure: bool = False
    idempotent: bool = False
    memoized: bool | str | None = None  # True, or a duration such as "5min"
    is_async: bool = Field(default=False, alias="async")
    generator: bool = False
    throttled: str | None = None
    transactional: bool = False
    side_effects: list[str] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return self == BehavioralAnnotations()


class LifecycleAnnotations(CamelModel):
    omit_default: ClassVar[frozenset[str]] = frozenset(
        {"experimental", "beta", "internal", "public_api"}
    )

    deprecated: str | None = None
    experimental: bool = False
    beta: bool = False
    internal: bool = False
    public_api: bool = False
    since: str | None = None

    def is_empty(self) -> bool:
        return self == LifecycleAnnotations()


class DocumentationAnnotations(CamelModel):
    omit_default: ClassVar[frozenset[str]] = frozenset(
        {"examples", "see_also", "links", "notes", "warnings", "todos"}
    )

    examples: list[str] = Field(default_factory=list)
    see_also: list[str] = Field(default_factory=list)
    links: list[str] = Field(default_factory=list)
    notes: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    todos: list[str] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return self == DocumentationAnnotations()


class PerformanceAnnotations(CamelModel):
    complexity: str | None = None
    memory: str | None = None
    cached: str | None = None

    def is_empty(self) -> bool:
        return self.complexity is None and self.memory is None and self.cached is None


class TypeParamInfo(CamelModel):
    omit_default: ClassVar[frozenset[str]] = frozenset({"optional"})

    name: str
    type_name: str | None = Field(default=None, alias="type")
    type_source: TypeSource | None = None
    optional: bool = False
    default: str | None = None
    directive: str | None = None


class TypeReturnInfo(CamelModel):
    type_name: str | None = Field(default=None, alias="type")
    type_source: TypeSource | None = None
    directive: str | None = None


class TypeTypeParam(CamelModel):
    name: str
    constraint: str | None = None
    directive: str | None = None


class TypeInfo(CamelModel):
    omit_default: ClassVar[frozenset[str]] = frozenset({"params", "type_params"})

    params: list[TypeParamInfo] = Field(default_factory=list)
    returns: TypeReturnInfo | None = None
    type_params: list[TypeTypeParam] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.params and self.returns is None and not self.type_params


# ============================================================================
# GIT
# ============================================================================


class GitFileInfo(CacheModel):
    last_commit: str
    last_author: str
    last_modified: datetime
    commit_count: int
    contributors: list[str] = Field(default_factory=list)


class GitSymbolInfo(CacheModel):
    last_commit: str
    last_author: str
    code_age_days: int


# ============================================================================
# CONSTRAINTS & CONVENTIONS
# ============================================================================


class FileConstraint(CacheModel):
    omit_default: ClassVar[frozenset[str]] = frozenset(
        {"auto_generated", "requires_approval", "requires_tests", "requires_docs"}
    )

    level: LockLevel = LockLevel.NORMAL
    directive: str | None = None
    auto_generated: bool = False
    requires_approval: bool = False
    requires_tests: bool = False
    requires_docs: bool = False


class HackMarker(CacheModel):
    id: str  # "path:line"
    file: str
    line: int
    reason: str
    ticket: str | None = None
    expires: str | None = None


class ConstraintIndex(CacheModel):
    omit_default: ClassVar[frozenset[str]] = frozenset({"by_file", "by_lock_level", "hacks"})

    by_file: dict[str, FileConstraint] = Field(default_factory=dict)
    by_lock_level: dict[str, list[str]] = Field(default_factory=dict)
    hacks: list[HackMarker] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.by_file and not self.hacks


class FileNamingConvention(CacheModel):
    omit_default: ClassVar[frozenset[str]] = frozenset({"anti_patterns"})

    directory: str
    pattern: str  # "*.service.ts"
    confidence: float
    examples: list[str] = Field(default_factory=list)
    anti_patterns: list[str] = Field(default_factory=list)


class ImportConventions(CacheModel):
    omit_default: ClassVar[frozenset[str]] = frozenset({"index_exports"})

    module_system: ModuleSystem | None = None
    path_style: PathStyle | None = None
    index_exports: bool = False


class Conventions(CacheModel):
    omit_default: ClassVar[frozenset[str]] = frozenset({"file_naming"})

    file_naming: list[FileNamingConvention] = Field(default_factory=list)
    imports: ImportConventions | None = None

    def is_empty(self) -> bool:
        return not self.file_naming and self.imports is None


# ============================================================================
# CORE RECORDS
# ============================================================================


class InlineAnnotation(CacheModel):
    """Line-anchored marker: hack, todo, fixme, critical, perf."""

    omit_default: ClassVar[frozenset[str]] = frozenset({"auto_generated"})

    line: int
    annotation_type: str = Field(alias="type")
    value: str | None = None
    directive: str
    expires: str | None = None
    ticket: str | None = None
    auto_generated: bool = False


class SymbolConstraint(CacheModel):
    omit_default: ClassVar[frozenset[str]] = frozenset({"auto_generated"})

    level: str
    directive: str
    auto_generated: bool = False


class FileEntry(CacheModel):
    """One indexed source file."""

    omit_default: ClassVar[frozenset[str]] = frozenset(
        {"inline", "domains", "ai_hints", "annotations"}
    )

    path: str
    lines: int
    language: Language
    exports: list[str] = Field(default_factory=list)
    imports: list[str] = Field(default_factory=list)
    module: str | None = None
    summary: str | None = None
    purpose: str | None = None
    owner: str | None = None
    inline: list[InlineAnnotation] = Field(default_factory=list)
    domains: list[str] = Field(default_factory=list)
    layer: str | None = None
    stability: Stability | None = None
    ai_hints: list[str] = Field(default_factory=list)
    git: GitFileInfo | None = None
    annotations: dict[str, AnnotationProvenance] = Field(default_factory=dict)
    bridge: BridgeMetadata | None = None
    version: str | None = None
    since: str | None = None
    license: str | None = None
    author: str | None = None
    lifecycle: LifecycleAnnotations | None = None


class SymbolEntry(CacheModel):
    """One indexed symbol. ``lines`` is inclusive ``[start, end]``."""

    omit_default: ClassVar[frozenset[str]] = frozenset(
        {"is_async", "visibility", "calls", "called_by", "annotations"}
    )

    name: str
    qualified_name: str  # "path:Class.method"
    symbol_type: SymbolType = Field(default=SymbolType.FUNCTION, alias="type")
    file: str
    lines: tuple[int, int]
    exported: bool
    signature: str | None = None
    summary: str | None = None
    purpose: str | None = None
    constraints: SymbolConstraint | None = None
    is_async: bool = Field(default=False, alias="async")
    visibility: Visibility = Visibility.PUBLIC
    calls: list[str] = Field(default_factory=list)
    called_by: list[str] = Field(default_factory=list)
    git: GitSymbolInfo | None = None
    annotations: dict[str, AnnotationProvenance] = Field(default_factory=dict)
    behavioral: BehavioralAnnotations | None = None
    lifecycle: LifecycleAnnotations | None = None
    documentation: DocumentationAnnotations | None = None
    performance: PerformanceAnnotations | None = None
    type_info: TypeInfo | None = None


class CallGraph(CacheModel):
    """Forward (caller -> callees) and reverse (callee -> callers) edges."""

    forward: dict[str, list[str]] = Field(default_factory=dict)
    reverse: dict[str, list[str]] = Field(default_factory=dict)


class DomainEntry(CacheModel):
    name: str
    files: list[str]
    symbols: list[str] = Field(default_factory=list)
    description: str | None = None


class ProjectInfo(CacheModel):
    name: str
    root: str
    description: str | None = None


class Stats(CacheModel):
    files: int = 0
    symbols: int = 0
    lines: int = 0
    annotation_coverage: float = 0.0


class Index(CacheModel):
    """The complete index document."""

    omit_default: ClassVar[frozenset[str]] = frozenset({"domains"})

    schema_url: str = Field(default=SCHEMA_URL, alias="$schema")
    version: str
    generated_at: datetime
    git_commit: str | None = None
    project: ProjectInfo
    stats: Stats = Field(default_factory=Stats)
    source_files: dict[str, datetime] = Field(default_factory=dict)
    files: dict[str, FileEntry] = Field(default_factory=dict)
    symbols: dict[str, SymbolEntry] = Field(default_factory=dict)
    graph: CallGraph | None = None
    domains: dict[str, DomainEntry] = Field(default_factory=dict)
    constraints: ConstraintIndex | None = None
    conventions: Conventions | None = None
    provenance: ProvenanceStats | None = None
    bridge: BridgeStats | None = None

    def update_stats(self) -> None:
        """Recompute aggregate statistics from the stored records."""
        symbol_count = len(self.symbols)
        annotated = sum(1 for s in self.symbols.values() if s.summary is not None)
        self.stats = Stats(
            files=len(self.files),
            symbols=symbol_count,
            lines=sum(f.lines for f in self.files.values()),
            annotation_coverage=(annotated / symbol_count * 100.0) if symbol_count else 0.0,
        )
