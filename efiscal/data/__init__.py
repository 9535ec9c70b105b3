"""Workbook ingestion, normalization, deduplication, and the in-memory nota store."""
from .ingest import ingest, parse_workbook
from .dedup import filter_new, batch_duplicate_keys
from .store import NotaStore
from .schemas import CanonicalRecord, CategorizedRecord, CategorizationSummary, Category, NotaFilter
