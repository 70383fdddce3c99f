"""Errors that end an indexing run, with numeric codes.

Codes are grouped by range: 2xxx configuration, 3xxx index build and index
document I/O, 9xxx broken internal invariants. A single source file that
cannot be processed is not an error here; the indexer logs it and moves on.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Self


class ErrorCode(IntEnum):
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    INDEX_NO_FILES = 3001
    INDEX_MALFORMED = 3002
    INDEX_NOT_FOUND = 3003
    INDEX_WRITE_FAILED = 3004

    INTERNAL_INVARIANT = 9001


@dataclass(frozen=True, slots=True)
class AcpIndexError(Exception):
    """Base error. ``details`` holds the structured context for log events."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def _make(
        cls, code: ErrorCode, message: str, *, retryable: bool = False, **details: Any
    ) -> Self:
        return cls(code=code, message=message, retryable=retryable, details=details)

    @property
    def error_name(self) -> str:
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(AcpIndexError):
    """A configuration layer could not be read or validated."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls._make(
            ErrorCode.CONFIG_PARSE_ERROR,
            f"Failed to parse config at {path}: {reason}",
            path=path,
            reason=reason,
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls._make(
            ErrorCode.CONFIG_INVALID_VALUE,
            f"Invalid value for '{field}': {reason}",
            field=field,
            value=str(value),
            reason=reason,
        )


class IndexBuildError(AcpIndexError):
    """The run as a whole failed, or the index document cannot be read or written."""

    @classmethod
    def no_files(cls, root: str, include: list[str], exclude: list[str]) -> "IndexBuildError":
        patterns = (
            f"include={', '.join(include) or '(any)'}; exclude={', '.join(exclude) or '(none)'}"
        )
        return cls._make(
            ErrorCode.INDEX_NO_FILES,
            f"No files matched under {root}. {patterns}",
            root=root,
            include=list(include),
            exclude=list(exclude),
        )

    @classmethod
    def malformed(cls, path: str, reason: str) -> "IndexBuildError":
        return cls._make(
            ErrorCode.INDEX_MALFORMED,
            f"Malformed index document at {path}: {reason}",
            path=path,
            reason=reason,
        )

    @classmethod
    def not_found(cls, path: str) -> "IndexBuildError":
        return cls._make(ErrorCode.INDEX_NOT_FOUND, f"Index file not found: {path}", path=path)

    @classmethod
    def write_failed(cls, path: str, reason: str) -> "IndexBuildError":
        return cls._make(
            ErrorCode.INDEX_WRITE_FAILED,
            f"Cannot write index to {path}: {reason}",
            retryable=True,
            path=path,
            reason=reason,
        )


class InternalError(AcpIndexError):
    """The builder was handed data that breaks an index invariant."""

    @classmethod
    def invariant(cls, reason: str, **details: Any) -> "InternalError":
        return cls._make(
            ErrorCode.INTERNAL_INVARIANT, f"Index invariant violated: {reason}", **details
        )
