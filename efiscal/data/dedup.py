"""
Deduplication gate: decide which ingested notas are new to the store.
"""
from __future__ import annotations

from collections import Counter
from typing import AbstractSet, Iterable

from efiscal.data.schemas import CanonicalRecord


def filter_new(records: Iterable[CanonicalRecord], existing_keys: AbstractSet[str]) -> list[CanonicalRecord]:
    """Records whose dedup_key is absent from existing_keys, in input order.

    Records sharing a key inside the same batch all pass; only keys
    already known to the store are rejected.
    """
    return [r for r in records if r.dedup_key not in existing_keys]


def batch_duplicate_keys(records: Iterable[CanonicalRecord]) -> list[str]:
    """Keys that occur more than once within a batch, in first-seen order."""
    counts = Counter(r.dedup_key for r in records)
    return [key for key, n in counts.items() if n > 1]
