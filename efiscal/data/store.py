"""
NotaStore — In-memory nota table backed by pandas, persisted as one CSV file.

Loaded once at startup; the categorization core never touches it directly,
callers fetch batches from it and hand results back.
"""
from __future__ import annotations

import threading
from pathlib import Path
from typing import Iterable, Sequence

import pandas as pd

from efiscal.config import NOTAS_FILE, SEARCH_COLUMNS
from efiscal.data.schemas import CanonicalRecord, CategorizedRecord, Category, NotaFilter

COLUMNS = list(CanonicalRecord.__dataclass_fields__)

_DTYPES = {col: "object" for col in COLUMNS}
_DTYPES.update({"id": "int64", "quantity": "float64", "value": "float64", "treated": "bool"})


def _empty_frame() -> pd.DataFrame:
    return pd.DataFrame({col: pd.Series(dtype=_DTYPES[col]) for col in COLUMNS})


def _coerce_types(df: pd.DataFrame) -> pd.DataFrame:
    """Turn an all-string CSV frame into the store's column types."""
    df = df.reindex(columns=COLUMNS, fill_value="")
    df["id"] = pd.to_numeric(df["id"], errors="coerce").fillna(0).astype("int64")
    for col in ["quantity", "value"]:
        df[col] = pd.to_numeric(df[col], errors="coerce").fillna(0.0).astype("float64")
    df["treated"] = df["treated"].astype(str).str.strip().str.lower().eq("true")
    df["category"] = df["category"].replace("", Category.STANDARD.value)
    return df


def _to_record(row: dict) -> CanonicalRecord:
    row = dict(row)
    row["id"] = int(row["id"])
    row["quantity"] = float(row["quantity"])
    row["value"] = float(row["value"])
    row["treated"] = bool(row["treated"])
    return CanonicalRecord.from_dict(row)


class NotaStore:
    """Nota table with key lookups, untreated batches and filtered listing.

    Every method takes ``lock``; hold it yourself to make a read-then-write
    sequence (dedup then insert, fetch untreated then apply) atomic.
    """

    def __init__(self, path: Path = NOTAS_FILE) -> None:
        self.path = Path(path)
        self.df: pd.DataFrame = _empty_frame()
        self.lock = threading.RLock()
        self._loaded = False

    # ------------------------------------------------------------------
    # Loading / saving
    # ------------------------------------------------------------------

    def load(self, path: Path | None = None) -> "NotaStore":
        """Load the CSV file if it exists, otherwise start empty."""
        with self.lock:
            if path is not None:
                self.path = Path(path)
            print("Loading notas...")
            if self.path.exists():
                raw = pd.read_csv(self.path, dtype=str, keep_default_na=False)
                self.df = _coerce_types(raw)
                print(f"  {self.path.name}: {len(self.df):,} notas, {self.untreated_count():,} untreated")
            else:
                self.df = _empty_frame()
                print(f"  No notas file at {self.path} — starting with empty store")
            self._loaded = True
        return self

    def save(self) -> Path:
        with self.lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.df.to_csv(self.path, index=False)
        return self.path

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert(self, records: Sequence[CanonicalRecord]) -> int:
        """Append records, assigning incremental ids. Returns the count inserted."""
        if not records:
            return 0
        with self.lock:
            next_id = int(self.df["id"].max()) + 1 if not self.df.empty else 1
            rows = []
            for offset, record in enumerate(records):
                row = record.to_dict()
                row["id"] = next_id + offset
                rows.append(row)
            new = pd.DataFrame(rows, columns=COLUMNS).astype(_DTYPES)
            if self.df.empty:
                self.df = new
            else:
                self.df = pd.concat([self.df, new], ignore_index=True)
        return len(new)

    def apply(self, categorized: Iterable[CategorizedRecord]) -> int:
        """Write (message, category, treated=True) for each categorized record, by id."""
        messages: dict[int, str] = {}
        categories: dict[int, str] = {}
        skipped = 0
        for item in categorized:
            if item.record.id is None:
                skipped += 1
                continue
            fields = item.update_fields()
            messages[item.record.id] = fields["message"]
            categories[item.record.id] = fields["category"]

        with self.lock:
            mask = self.df["id"].isin(list(messages))
            ids = self.df.loc[mask, "id"]
            self.df.loc[mask, "message"] = ids.map(messages)
            self.df.loc[mask, "category"] = ids.map(categories)
            self.df.loc[mask, "treated"] = True
            updated = int(mask.sum())

        skipped += len(messages) - updated
        if skipped:
            print(f"  Warning: {skipped:,} categorized notas had no matching id in the store")
        return updated

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def existing_keys(self, keys: Iterable[str]) -> set[str]:
        """The subset of keys already stored."""
        wanted = list(keys)
        with self.lock:
            if not wanted or self.df.empty:
                return set()
            hits = self.df.loc[self.df["dedup_key"].isin(wanted), "dedup_key"]
        return set(hits.tolist())

    def untreated(self) -> list[CanonicalRecord]:
        """Untreated notas ordered by invoice number, then material."""
        with self.lock:
            pending = self.df[~self.df["treated"]]
            pending = pending.sort_values(["invoice_number", "material_code"], kind="mergesort")
            rows = pending.to_dict("records")
        return [_to_record(row) for row in rows]

    def query(self, flt: NotaFilter | None = None) -> tuple[list[CanonicalRecord], int]:
        """Filtered page of notas (newest supply date first) and the unpaginated total."""
        flt = flt or NotaFilter()
        with self.lock:
            df = self.df.copy()

        if flt.category is not None:
            df = df[df["category"] == flt.category.value]
        if flt.date_up_to is not None:
            # ISO dates compare correctly as strings
            df = df[df["supply_date"] <= flt.date_up_to.isoformat()]
        if flt.treated is not None:
            df = df[df["treated"] == flt.treated]
        if flt.text and flt.text.strip():
            needle = flt.text.strip().lower()
            hit = pd.Series(False, index=df.index)
            for col in SEARCH_COLUMNS:
                hit |= df[col].astype(str).str.lower().str.contains(needle, regex=False)
            df = df[hit]

        total = len(df)
        df = df.sort_values(["supply_date", "id"], ascending=[False, False])
        page = df.iloc[flt.offset:flt.offset + flt.limit]
        return [_to_record(row) for row in page.to_dict("records")], total

    # ------------------------------------------------------------------
    # Counts
    # ------------------------------------------------------------------

    def row_count(self) -> int:
        with self.lock:
            return len(self.df)

    def untreated_count(self) -> int:
        with self.lock:
            if self.df.empty:
                return 0
            return int((~self.df["treated"]).sum())

    def category_counts(self) -> dict[str, int]:
        """Stored notas per category (all categories present, zero-filled)."""
        with self.lock:
            counts = self.df["category"].value_counts()
        return {c.value: int(counts.get(c.value, 0)) for c in Category}
