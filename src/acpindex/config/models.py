"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (ACPINDEX__SECTION__KEY)
3. Repo YAML (.acpindex/config.yaml)
4. Global YAML (~/.config/acpindex/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    ACPINDEX__<SECTION>__<KEY>=<VALUE>

Examples:
    ACPINDEX__LOGGING__LEVEL=DEBUG
    ACPINDEX__INDEXER__MAX_WORKERS=4
    ACPINDEX__BRIDGE__ENABLED=true
    ACPINDEX__BRIDGE__PRECEDENCE=native-first
"""

import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from acpindex.core.excludes import DEFAULT_EXCLUDE, DEFAULT_INCLUDE

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
Precedence = Literal["acp-first", "native-first", "merge"]
Strictness = Literal["permissive", "strict"]
DocstringStyle = Literal["auto", "google", "numpy", "sphinx"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        ACPINDEX__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs one line per parsed file.",
    )
    outputs: list[LogOutputConfig] = Field(
        default_factory=lambda: [LogOutputConfig()],
        description="Log destinations. Each can override the root level.",
    )


class IndexConfig(BaseModel):
    """What gets indexed and where the index is written.

    Env vars:
        ACPINDEX__INDEX__OUTPUT: Index file path (relative to repo root)
        ACPINDEX__INDEX__GIT: Attach git history and blame
    """

    include: list[str] = Field(
        default_factory=lambda: list(DEFAULT_INCLUDE),
        description="Glob patterns a file must match (any). Empty list matches everything.",
    )
    exclude: list[str] = Field(
        default_factory=lambda: list(DEFAULT_EXCLUDE),
        description="Glob patterns that reject a file (any).",
    )
    output: str = Field(
        default=".acp.cache.json",
        description="Index document path, relative to the repository root unless absolute.",
    )
    detect_conventions: bool = Field(
        default=True,
        description="Run the naming convention detector during assembly.",
    )
    git: bool = Field(
        default=True,
        description="Attach commit history and blame when the root is a git repository.",
    )


class IndexerConfig(BaseModel):
    """Parallel extraction configuration.

    Env vars:
        ACPINDEX__INDEXER__MAX_WORKERS: Parallel extraction workers
    """

    max_workers: int = Field(
        default_factory=lambda: os.cpu_count() or 1,
        description="Worker processes for per-file extraction. 1 runs in-process.",
    )

    @field_validator("max_workers")
    @classmethod
    def validate_max_workers(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_workers must be >= 1")
        return v


class ProvenanceConfig(BaseModel):
    """Annotation provenance review thresholds.

    Env vars:
        ACPINDEX__PROVENANCE__REVIEW_THRESHOLD: Confidence below which review is required
        ACPINDEX__PROVENANCE__LOW_CONFIDENCE_THRESHOLD: Confidence listed as low
    """

    review_threshold: float = Field(
        default=0.8,
        description="Generated annotations below this confidence are flagged needs_review.",
    )
    low_confidence_threshold: float = Field(
        default=0.5,
        description="Annotations below this confidence appear in the low-confidence report.",
    )

    @field_validator("review_threshold", "low_confidence_threshold")
    @classmethod
    def validate_unit_interval(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"Threshold must be within [0, 1]: {v}")
        return v


class JsDocBridgeConfig(BaseModel):
    """JSDoc/TSDoc bridging."""

    enabled: bool = True
    extract_types: bool = True
    convert_tags: list[str] = Field(
        default_factory=lambda: ["param", "returns", "throws", "deprecated", "example", "see"]
    )


class PythonBridgeConfig(BaseModel):
    """Python docstring bridging."""

    enabled: bool = True
    docstring_style: DocstringStyle = Field(
        default="auto",
        description="Force a docstring dialect instead of detecting it.",
    )
    extract_type_hints: bool = True
    convert_sections: list[str] = Field(
        default_factory=lambda: ["Args", "Parameters", "Returns", "Raises", "Example", "Yields"]
    )


class RustBridgeConfig(BaseModel):
    """Rust doc comment bridging."""

    enabled: bool = True
    convert_sections: list[str] = Field(
        default_factory=lambda: ["Arguments", "Returns", "Panics", "Errors", "Examples", "Safety"]
    )


class BridgeProvenanceConfig(BaseModel):
    """How bridged entries report their origin."""

    mark_converted: bool = Field(
        default=True,
        description="Tag entries taken from native docs as converted (else explicit).",
    )
    include_source_format: bool = Field(
        default=True,
        description="Record the native format on each bridged entry.",
    )


class BridgeConfig(BaseModel):
    """Documentation bridge configuration.

    Env vars:
        ACPINDEX__BRIDGE__ENABLED: Turn bridging on
        ACPINDEX__BRIDGE__PRECEDENCE: acp-first, native-first or merge
        ACPINDEX__BRIDGE__STRICTNESS: permissive or strict
    """

    enabled: bool = Field(
        default=False,
        description="Merge native documentation with @acp annotations.",
    )
    precedence: Precedence = Field(
        default="acp-first",
        description="Which source wins when both document a symbol.",
    )
    strictness: Strictness = Field(
        default="permissive",
        description="strict only bridges docs whose format was positively detected.",
    )
    jsdoc: JsDocBridgeConfig = Field(default_factory=JsDocBridgeConfig)
    python: PythonBridgeConfig = Field(default_factory=PythonBridgeConfig)
    rust: RustBridgeConfig = Field(default_factory=RustBridgeConfig)
    provenance: BridgeProvenanceConfig = Field(default_factory=BridgeProvenanceConfig)

    def is_enabled_for(self, language: str) -> bool:
        """Whether bridging applies to files of the given language."""
        if not self.enabled:
            return False
        match language.lower():
            case "javascript" | "typescript" | "js" | "ts":
                return self.jsdoc.enabled
            case "python" | "py":
                return self.python.enabled
            case "rust" | "rs":
                return self.rust.enabled
            case "java" | "kotlin" | "go":
                return True
            case _:
                return False


class AcpIndexConfig(BaseModel):
    """Root configuration for acp-index.

    All settings can be configured via:
    1. Environment variables: ACPINDEX__SECTION__KEY
    2. YAML config files (repo or global)
    3. Direct kwargs to load_config()
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    index: IndexConfig = Field(default_factory=IndexConfig)
    indexer: IndexerConfig = Field(default_factory=IndexerConfig)
    provenance: ProvenanceConfig = Field(default_factory=ProvenanceConfig)
    bridge: BridgeConfig = Field(default_factory=BridgeConfig)
