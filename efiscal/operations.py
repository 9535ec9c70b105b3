"""
Store-facing workflows: import an uploaded workbook, categorize the untreated backlog.

These are the only places where the pure ingestion/categorization core meets
the NotaStore; the API and the CLI both go through here.
"""
from __future__ import annotations

import time
from dataclasses import dataclass, field

from efiscal.categorization import categorize
from efiscal.config import CATEGORIZE_BATCH_SIZE
from efiscal.data.dedup import filter_new
from efiscal.data.ingest import parse_workbook
from efiscal.data.schemas import CategorizationSummary, CategorizedRecord
from efiscal.data.store import NotaStore
from efiscal.errors import NoValidRecordsError


@dataclass
class UploadOutcome:
    processed: int
    new: int
    duplicates: int
    dropped: int
    batch_duplicate_keys: list[str] = field(default_factory=list)


@dataclass
class CategorizationRun:
    summary: CategorizationSummary
    updated: int
    elapsed_ms: int
    results: list[CategorizedRecord] = field(default_factory=list)


def import_workbook(store: NotaStore, buffer: bytes, persist: bool = True) -> UploadOutcome:
    """Parse a workbook, skip notas already stored, insert the rest.

    Raises:
        StructureError, ParseError: the workbook can't be ingested
        NoValidRecordsError: every data row was dropped
    """
    result = parse_workbook(buffer)
    if not result.records:
        raise NoValidRecordsError(result.rows_read, result.dropped_count)

    # Key lookup and insert form one atomic step
    with store.lock:
        existing = store.existing_keys(r.dedup_key for r in result.records)
        new_records = filter_new(result.records, existing)
        inserted = store.insert(new_records)
        if inserted and persist:
            store.save()
    print(f"  Dedup: {len(result.records):,} parsed, {len(existing):,} keys already stored "
          f"→ {inserted:,} new")

    return UploadOutcome(
        processed=len(result.records),
        new=inserted,
        duplicates=len(result.records) - inserted,
        dropped=result.dropped_count,
        batch_duplicate_keys=result.batch_duplicate_keys,
    )


def categorize_pending(store: NotaStore, persist: bool = True) -> CategorizationRun:
    """Categorize every untreated nota and write the results back to the store.

    Updates are applied in chunks; a failure part-way leaves earlier chunks applied.
    """
    start = time.perf_counter()
    # The backlog fetched here is the one written back
    with store.lock:
        pending = store.untreated()
        if not pending:
            return CategorizationRun(CategorizationSummary(), 0, 0)

        results, summary = categorize(pending)

        updated = 0
        for i in range(0, len(results), CATEGORIZE_BATCH_SIZE):
            updated += store.apply(results[i:i + CATEGORIZE_BATCH_SIZE])
        if updated and persist:
            store.save()

    elapsed_ms = int((time.perf_counter() - start) * 1000)
    print(f"  Categorized {summary.processed:,} notas in {elapsed_ms:,} ms — "
          f"{summary.quality:,} quality, {summary.returned:,} return, "
          f"{summary.unidentified:,} unidentified, {summary.standard:,} standard "
          f"({summary.reorganized:,} reorganized)")
    return CategorizationRun(summary, updated, elapsed_ms, results)
