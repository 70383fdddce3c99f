"""Merging native documentation with ``@acp`` directive annotations.

Resolution order for one symbol:

1. Bridging off, or no (or empty) native docs: directives only, EXPLICIT.
2. No directives at all: native docs only, CONVERTED.
3. Both present: merge according to the configured precedence.

Individual entries are MERGED when both sides contributed, CONVERTED when
only the native doc did, and EXPLICIT when only a directive did.
"""

from __future__ import annotations

from acpindex.bridge.models import (
    AcpAnnotations,
    BridgeResult,
    ParsedDocumentation,
    type_source_from_format,
)
from acpindex.cache.models import (
    BridgeMetadata,
    BridgeSource,
    ParamEntry,
    ReturnsEntry,
    SourceFormat,
    ThrowsEntry,
)
from acpindex.config.models import BridgeConfig


class BridgeMerger:
    """Combine one symbol's native docs and directives into a BridgeResult."""

    def __init__(self, config: BridgeConfig | None = None) -> None:
        self.config = config or BridgeConfig(enabled=True)

    def merge(
        self,
        native: ParsedDocumentation | None,
        fmt: SourceFormat,
        acp: AcpAnnotations,
    ) -> BridgeResult:
        if native is None or not self.config.enabled or native.is_empty():
            return self._finish(BridgeResult.from_acp(acp))

        if acp.is_empty():
            return self._finish(BridgeResult.from_native(native, fmt))

        match self.config.precedence:
            case "native-first":
                result = self._native_first(native, fmt, acp)
            case "merge":
                result = self._merge_both(native, fmt, acp)
            case _:
                result = self._acp_first(native, fmt, acp)
        return self._finish(result)

    # -- precedence modes --------------------------------------------------

    def _acp_first(
        self, native: ParsedDocumentation, fmt: SourceFormat, acp: AcpAnnotations
    ) -> BridgeResult:
        return BridgeResult(
            summary=native.summary if native.summary is not None else acp.summary,
            directive=acp.directive,
            params=_merge_params(native, fmt, acp),
            returns=_merge_returns(native, fmt, acp),
            throws=_merge_throws(native, fmt, acp),
            examples=list(native.examples),
            source=BridgeSource.MERGED,
            source_formats=[fmt, SourceFormat.ACP],
        )

    def _native_first(
        self, native: ParsedDocumentation, fmt: SourceFormat, acp: AcpAnnotations
    ) -> BridgeResult:
        """Native conversion with directives layered onto matching entries only."""
        result = BridgeResult.from_native(native, fmt)
        result.directive = acp.directive
        result.source = BridgeSource.MERGED
        result.source_formats = [fmt, SourceFormat.ACP]

        for param in result.params:
            directive = acp.param_directive(param.name)
            if directive is not None:
                param.directive = directive
                param.source = BridgeSource.MERGED
                param.source_formats = [fmt, SourceFormat.ACP]

        if result.returns is not None and acp.returns is not None:
            result.returns.directive = acp.returns
            result.returns.source = BridgeSource.MERGED
            result.returns.source_formats = [fmt, SourceFormat.ACP]

        for throws in result.throws:
            directive = acp.throws_directive(throws.exception)
            if directive is not None:
                throws.directive = directive
                throws.source = BridgeSource.MERGED
        return result

    def _merge_both(
        self, native: ParsedDocumentation, fmt: SourceFormat, acp: AcpAnnotations
    ) -> BridgeResult:
        result = self._acp_first(native, fmt, acp)
        if native.summary is not None and acp.summary is not None and native.summary != acp.summary:
            result.summary = f"{native.summary} {acp.summary}"
        return result

    # -- config-driven post-processing -------------------------------------

    def _finish(self, result: BridgeResult) -> BridgeResult:
        provenance = self.config.provenance
        if not provenance.mark_converted:
            if result.source is BridgeSource.CONVERTED:
                result.source = BridgeSource.EXPLICIT
            for entry in result.entries():
                if entry.source is BridgeSource.CONVERTED:
                    entry.source = BridgeSource.EXPLICIT
        if not provenance.include_source_format:
            result.source_formats = []
            for entry in result.entries():
                entry.source_format = None
                if not isinstance(entry, ThrowsEntry):
                    entry.source_formats = []
        return result


def _merge_params(
    native: ParsedDocumentation, fmt: SourceFormat, acp: AcpAnnotations
) -> list[ParamEntry]:
    type_source = type_source_from_format(fmt)
    params: list[ParamEntry] = []
    native_names: set[str] = set()

    for name, type_name, description in native.params:
        native_names.add(name)
        directive = acp.param_directive(name)
        merged = directive is not None
        params.append(
            ParamEntry(
                name=name,
                type_name=type_name,
                type_source=type_source,
                description=description,
                directive=directive,
                source=BridgeSource.MERGED if merged else BridgeSource.CONVERTED,
                source_format=None if merged else fmt,
                source_formats=[fmt, SourceFormat.ACP] if merged else [],
            )
        )

    for name, directive in acp.params:
        if name in native_names:
            continue
        params.append(
            ParamEntry(
                name=name,
                directive=directive,
                source=BridgeSource.EXPLICIT,
                source_format=SourceFormat.ACP,
            )
        )
    return params


def _merge_returns(
    native: ParsedDocumentation, fmt: SourceFormat, acp: AcpAnnotations
) -> ReturnsEntry | None:
    if native.returns is None:
        if acp.returns is None:
            return None
        return ReturnsEntry(
            directive=acp.returns,
            source=BridgeSource.EXPLICIT,
            source_format=SourceFormat.ACP,
        )

    type_name, description = native.returns
    merged = acp.returns is not None
    return ReturnsEntry(
        type_name=type_name,
        type_source=type_source_from_format(fmt),
        description=description,
        directive=acp.returns,
        source=BridgeSource.MERGED if merged else BridgeSource.CONVERTED,
        source_format=None if merged else fmt,
        source_formats=[fmt, SourceFormat.ACP] if merged else [],
    )


def _merge_throws(
    native: ParsedDocumentation, fmt: SourceFormat, acp: AcpAnnotations
) -> list[ThrowsEntry]:
    throws: list[ThrowsEntry] = []
    native_names: set[str] = set()

    for exception, description in native.throws:
        native_names.add(exception)
        directive = acp.throws_directive(exception)
        throws.append(
            ThrowsEntry(
                exception=exception,
                description=description,
                directive=directive,
                source=BridgeSource.MERGED if directive is not None else BridgeSource.CONVERTED,
                source_format=fmt,
            )
        )

    for exception, directive in acp.throws:
        if exception in native_names:
            continue
        throws.append(
            ThrowsEntry(
                exception=exception,
                directive=directive,
                source=BridgeSource.EXPLICIT,
                source_format=SourceFormat.ACP,
            )
        )
    return throws


def tally(
    results: list[BridgeResult], fmt: SourceFormat | None, *, enabled: bool = True
) -> BridgeMetadata:
    """Per-file bridge metadata: entry counts by source across ``results``."""
    meta = BridgeMetadata(enabled=enabled, detected_format=fmt)
    for result in results:
        sources = [entry.source for entry in result.entries()] or [result.source]
        for source in sources:
            match source:
                case BridgeSource.MERGED:
                    meta.merged_count += 1
                case BridgeSource.CONVERTED:
                    meta.converted_count += 1
                case _:
                    meta.explicit_count += 1
    return meta
