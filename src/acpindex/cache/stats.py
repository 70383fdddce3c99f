"""Provenance and bridge statistics, recomputed from a finished index.

Both are projections over the full record set. Callers that mutate
provenance (e.g. marking annotations reviewed) recompute rather than patch.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterator

from acpindex.cache.models import (
    AnnotationProvenance,
    BridgeStats,
    BridgeSummary,
    Index,
    LowConfidenceEntry,
    ProvenanceStats,
)


def _iter_provenance(index: Index) -> Iterator[tuple[str, str, AnnotationProvenance]]:
    """Yield (target, key, record) for every file and symbol annotation."""
    for path in sorted(index.files):
        for key, record in sorted(index.files[path].annotations.items()):
            yield path, key, record
    for name in sorted(index.symbols):
        symbol = index.symbols[name]
        target = f"{symbol.file}:{symbol.name}"
        for key, record in sorted(symbol.annotations.items()):
            yield target, key, record


def compute_provenance_stats(
    index: Index, low_confidence_threshold: float = 0.5
) -> ProvenanceStats:
    """Count annotations by origin and review state.

    Low-confidence entries (confidence below the threshold) are listed in
    ascending confidence order.
    """
    stats = ProvenanceStats()
    summary = stats.summary
    confidence_sums: dict[str, list[float]] = defaultdict(list)

    for target, key, record in _iter_provenance(index):
        summary.total += 1
        summary.by_source.increment(record.source)
        if record.needs_review:
            summary.needs_review += 1
        if record.reviewed:
            summary.reviewed += 1

        if record.confidence is None:
            continue
        confidence_sums[record.source.value].append(record.confidence)
        if record.confidence < low_confidence_threshold:
            stats.low_confidence.append(
                LowConfidenceEntry(
                    target=target,
                    annotation=key,
                    confidence=record.confidence,
                    value=record.value,
                )
            )

    summary.average_confidence = {
        source: sum(values) / len(values) for source, values in sorted(confidence_sums.items())
    }
    stats.low_confidence.sort(key=lambda entry: entry.confidence)
    return stats


def compute_bridge_stats(index: Index, *, enabled: bool, precedence: str) -> BridgeStats:
    """Sum per-file bridge counts and count files per detected native format."""
    summary = BridgeSummary()
    by_format: dict[str, int] = defaultdict(int)

    for path in sorted(index.files):
        meta = index.files[path].bridge
        if meta is None:
            continue
        summary.explicit_count += meta.explicit_count
        summary.converted_count += meta.converted_count
        summary.merged_count += meta.merged_count
        if meta.detected_format is not None:
            by_format[meta.detected_format.value] += 1

    summary.total_annotations = (
        summary.explicit_count + summary.converted_count + summary.merged_count
    )
    return BridgeStats(
        enabled=enabled,
        precedence=precedence,
        summary=summary,
        by_format=dict(by_format),
    )
