"""Value types flowing through the documentation bridge.

``ParsedDocumentation`` is the normalized form of a native doc comment,
``AcpAnnotations`` the directive side of the same symbol, and
``BridgeResult`` what the merger makes of the two. None of these are
persisted directly; the indexer folds a result into the symbol record.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from acpindex.cache.models import (
    BridgeSource,
    ParamEntry,
    ReturnsEntry,
    SourceFormat,
    ThrowsEntry,
    TypeSource,
)

_DOCSTRING_FORMATS = frozenset(
    {
        SourceFormat.DOCSTRING_GOOGLE,
        SourceFormat.DOCSTRING_NUMPY,
        SourceFormat.DOCSTRING_SPHINX,
    }
)


def type_source_from_format(fmt: SourceFormat) -> TypeSource | None:
    """Where type information taken from a doc in ``fmt`` comes from."""
    if fmt is SourceFormat.JSDOC:
        return TypeSource.JSDOC
    if fmt in _DOCSTRING_FORMATS:
        return TypeSource.DOCSTRING
    if fmt is SourceFormat.RUSTDOC:
        return TypeSource.RUSTDOC
    if fmt is SourceFormat.JAVADOC:
        return TypeSource.JAVADOC
    if fmt is SourceFormat.TYPE_HINT:
        return TypeSource.TYPE_HINT
    return None


@dataclass
class ParsedDocumentation:
    """A native doc comment reduced to its parts.

    Attributes:
        summary: First paragraph of the description
        params: (name, type, description) in declaration order
        returns: (type, description), or None when undocumented
        throws: (exception, description) pairs
        examples: Example blocks, verbatim
    """

    summary: str | None = None
    params: list[tuple[str, str | None, str | None]] = field(default_factory=list)
    returns: tuple[str | None, str | None] | None = None
    throws: list[tuple[str, str | None]] = field(default_factory=list)
    examples: list[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return (
            self.summary is None
            and not self.params
            and self.returns is None
            and not self.throws
            and not self.examples
        )


@dataclass
class AcpAnnotations:
    """Directive annotations attached to one symbol."""

    summary: str | None = None
    directive: str | None = None
    params: list[tuple[str, str]] = field(default_factory=list)
    returns: str | None = None
    throws: list[tuple[str, str]] = field(default_factory=list)

    def is_empty(self) -> bool:
        return (
            self.summary is None
            and self.directive is None
            and not self.params
            and self.returns is None
            and not self.throws
        )

    def param_directive(self, name: str) -> str | None:
        for param_name, directive in self.params:
            if param_name == name:
                return directive
        return None

    def throws_directive(self, exception: str) -> str | None:
        for exc, directive in self.throws:
            if exc == exception:
                return directive
        return None


@dataclass
class BridgeResult:
    """Merged documentation for one symbol."""

    summary: str | None = None
    directive: str | None = None
    params: list[ParamEntry] = field(default_factory=list)
    returns: ReturnsEntry | None = None
    throws: list[ThrowsEntry] = field(default_factory=list)
    examples: list[str] = field(default_factory=list)
    source: BridgeSource = BridgeSource.EXPLICIT
    source_formats: list[SourceFormat] = field(default_factory=list)

    @classmethod
    def from_acp(cls, acp: AcpAnnotations) -> BridgeResult:
        """Result built only from directive annotations."""
        result = cls(
            summary=acp.summary,
            directive=acp.directive,
            source=BridgeSource.EXPLICIT,
            source_formats=[SourceFormat.ACP],
        )
        for name, directive in acp.params:
            result.params.append(
                ParamEntry(
                    name=name,
                    directive=directive,
                    source=BridgeSource.EXPLICIT,
                    source_format=SourceFormat.ACP,
                )
            )
        if acp.returns is not None:
            result.returns = ReturnsEntry(
                directive=acp.returns,
                source=BridgeSource.EXPLICIT,
                source_format=SourceFormat.ACP,
            )
        for exception, directive in acp.throws:
            result.throws.append(
                ThrowsEntry(
                    exception=exception,
                    directive=directive,
                    source=BridgeSource.EXPLICIT,
                    source_format=SourceFormat.ACP,
                )
            )
        return result

    @classmethod
    def from_native(cls, parsed: ParsedDocumentation, fmt: SourceFormat) -> BridgeResult:
        """Result built only from native documentation. No entry carries a directive."""
        type_source = type_source_from_format(fmt)
        result = cls(
            summary=parsed.summary,
            source=BridgeSource.CONVERTED,
            source_formats=[fmt],
            examples=list(parsed.examples),
        )
        for name, type_name, description in parsed.params:
            result.params.append(
                ParamEntry(
                    name=name,
                    type_name=type_name,
                    type_source=type_source,
                    description=description,
                    source=BridgeSource.CONVERTED,
                    source_format=fmt,
                )
            )
        if parsed.returns is not None:
            type_name, description = parsed.returns
            result.returns = ReturnsEntry(
                type_name=type_name,
                type_source=type_source,
                description=description,
                source=BridgeSource.CONVERTED,
                source_format=fmt,
            )
        for exception, description in parsed.throws:
            result.throws.append(
                ThrowsEntry(
                    exception=exception,
                    description=description,
                    source=BridgeSource.CONVERTED,
                    source_format=fmt,
                )
            )
        return result

    def entries(self) -> list[ParamEntry | ReturnsEntry | ThrowsEntry]:
        """Every param, returns and throws entry, in that order."""
        items: list[ParamEntry | ReturnsEntry | ThrowsEntry] = list(self.params)
        if self.returns is not None:
            items.append(self.returns)
        items.extend(self.throws)
        return items
