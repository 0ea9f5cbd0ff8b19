"""Relative disk-bloat index.

``relative_index = size_bytes / mean(size_bytes)`` over the whole snapshot,
so the index is unchanged when every size is scaled by the same factor and
no absolute threshold has to be configured.  An empty workspace or one
where every size is 0 gives every project an index of 0.
"""

from __future__ import annotations

from typing import Iterable

from toad.model.records import BloatEntry, ProjectRecord


def central_size(records: Iterable[ProjectRecord]) -> float:
    """Arithmetic mean of ``size_bytes`` (0.0 for no records)."""
    sizes = [r.size_bytes for r in records]
    if not sizes:
        return 0.0
    return sum(sizes) / len(sizes)


def bloat_index(records: Iterable[ProjectRecord]) -> list[BloatEntry]:
    """Return one entry per record, largest relative index first.

    Ties are broken by ascending name.
    """
    records = list(records)
    mean = central_size(records)
    entries = [
        BloatEntry(
            record_name=r.name,
            size_bytes=r.size_bytes,
            relative_index=(r.size_bytes / mean) if mean > 0 else 0.0,
        )
        for r in records
    ]
    entries.sort(key=lambda e: (-e.relative_index, e.record_name))
    return entries
