"""Turn parsed annotations into stored provenance records."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime

from acpindex.cache.models import AnnotationProvenance, SourceOrigin
from acpindex.parse.annotations import AnnotationWithProvenance


def provenance_record(
    item: AnnotationWithProvenance,
    review_threshold: float,
    generated_at: str | None = None,
) -> AnnotationProvenance:
    """Build the provenance record for one annotation.

    Annotations without markers are human-written: explicit and reviewed.
    Marked annotations need review when their confidence is below the
    threshold, unless they are already reviewed.
    """
    ann = item.annotation
    value = ann.value or ""
    marker = item.provenance

    if marker is None:
        return AnnotationProvenance(
            value=value,
            source=SourceOrigin.EXPLICIT,
            reviewed=True,
        )

    reviewed = bool(marker.reviewed)
    low_confidence = marker.confidence is not None and marker.confidence < review_threshold
    return AnnotationProvenance(
        value=value,
        source=marker.source,
        confidence=marker.confidence,
        needs_review=low_confidence and not reviewed,
        reviewed=reviewed,
        generated_at=generated_at or datetime.now(UTC).isoformat(),
        generation_id=marker.generation_id,
    )


def extract_provenance(
    annotations: Iterable[AnnotationWithProvenance],
    review_threshold: float = 0.8,
    generated_at: str | None = None,
) -> dict[str, AnnotationProvenance]:
    """Map ``@acp:<name>`` to its provenance record.

    Provenance markers themselves (``source*``) are skipped. When a name
    repeats, the last occurrence wins.
    """
    records: dict[str, AnnotationProvenance] = {}
    for item in annotations:
        name = item.annotation.name
        if name.startswith("source"):
            continue
        records[f"@acp:{name}"] = provenance_record(item, review_threshold, generated_at)
    return records
