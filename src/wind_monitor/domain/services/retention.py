"""
Merge freshly parsed observations into a retained history.

The retained history for one owner is ordered newest first, holds at most
``DEFAULT_RETENTION_LIMIT`` records and never contains two records whose
timestamps are closer than the duplicate tolerance.
"""

from __future__ import annotations

from typing import Iterable, List, Sequence

from ..models import WindObservation

DEFAULT_RETENTION_LIMIT = 60
DEFAULT_DUPLICATE_TOLERANCE_MS = 30_000


def is_duplicate(a: WindObservation, b: WindObservation, tolerance_ms: int) -> bool:
    """Two readings are the same observation when their timestamps are within tolerance.

    A tolerance of 0 means the timestamps must be equal.
    """
    delta = abs(a.timestamp_millis - b.timestamp_millis)
    if tolerance_ms <= 0:
        return delta == 0
    return delta < tolerance_ms


def deduplicate(
    records: Iterable[WindObservation],
    tolerance_ms: int = DEFAULT_DUPLICATE_TOLERANCE_MS,
) -> List[WindObservation]:
    """Keep the first occurrence, drop later records within tolerance of a kept one."""
    kept: List[WindObservation] = []
    for record in records:
        if any(is_duplicate(record, existing, tolerance_ms) for existing in kept):
            continue
        kept.append(record)
    return kept


def merge_history(
    history: Sequence[WindObservation],
    candidates: Sequence[WindObservation],
    *,
    tolerance_ms: int = DEFAULT_DUPLICATE_TOLERANCE_MS,
    limit: int = DEFAULT_RETENTION_LIMIT,
) -> List[WindObservation]:
    """Return the new retained history.

    Candidates go ahead of the existing history so that new data wins a
    duplicate collision; survivors are sorted newest first and truncated.
    """
    if not candidates:
        return list(history)

    combined = [*candidates, *history]
    unique = deduplicate(combined, tolerance_ms)
    # sorted() is stable, so equal timestamps keep new-first order
    unique = sorted(unique, key=lambda record: record.timestamp_millis, reverse=True)
    return unique[:max(limit, 0)]
