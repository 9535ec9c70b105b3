"""
Record schemas: raw spreadsheet rows, canonical notas, categorization results, filters.
"""
from __future__ import annotations

import datetime as dt
from dataclasses import asdict, dataclass, field, replace
from enum import Enum
from typing import Any, Mapping, Optional, Union

from efiscal.config import COLUMN_MAP, DEFAULT_PAGE_LIMIT

Cell = Union[str, int, float, dt.date, dt.datetime, None]


class Category(str, Enum):
    STANDARD = "standard"
    QUALITY = "quality"
    RETURN = "return"
    UNIDENTIFIED = "unidentified"


# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------

@dataclass
class RawRow:
    """One spreadsheet line, keyed by internal field name with untouched cell values."""
    row_number: int                      # 1-based sheet row (header is row 1)
    destination: Cell = None
    supply_date: Cell = None
    invoice_number: Cell = None
    origin: Cell = None
    origin_description: Cell = None
    material_code: Cell = None
    material_description: Cell = None
    order_number: Cell = None
    quantity: Cell = None
    unit: Cell = None
    value: Cell = None
    supply_reference: Cell = None
    message: Cell = None

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any], row_number: int) -> "RawRow":
        """Build from a header → cell mapping; unknown headers are ignored."""
        cells = {name: row.get(header) for header, name in COLUMN_MAP.items()}
        return cls(row_number=row_number, **cells)


@dataclass(frozen=True)
class CanonicalRecord:
    """A validated, normalized nota in its persisted shape."""
    destination: str
    supply_date: str                     # YYYY-MM-DD
    invoice_number: str
    origin: str
    origin_description: str
    material_code: str
    material_description: str
    order_number: str
    quantity: float
    unit: str
    value: float
    supply_reference: str
    message: str
    upload_timestamp: str                # YYYY-MM-DD HH:MM:SS
    dedup_key: str
    treated: bool = False
    category: Category = Category.STANDARD
    id: Optional[int] = None             # assigned by the store

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["category"] = self.category.value
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CanonicalRecord":
        values = {f: data[f] for f in cls.__dataclass_fields__ if f in data}
        values["category"] = Category(values.get("category", Category.STANDARD))
        return cls(**values)


@dataclass(frozen=True)
class RowAccepted:
    row_number: int
    record: CanonicalRecord


@dataclass(frozen=True)
class RowDropped:
    """A row excluded from ingestion. Never fatal for the batch."""
    row_number: int
    reason: str
    missing_fields: tuple[str, ...] = ()


RowResult = Union[RowAccepted, RowDropped]


@dataclass
class IngestionResult:
    records: list[CanonicalRecord] = field(default_factory=list)
    rows_read: int = 0
    dropped: list[RowDropped] = field(default_factory=list)
    batch_duplicate_keys: list[str] = field(default_factory=list)

    @property
    def valid_count(self) -> int:
        return len(self.records)

    @property
    def dropped_count(self) -> int:
        return len(self.dropped)


# ---------------------------------------------------------------------------
# Categorization
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CategorizedRecord:
    """An untreated record paired with the category and message it should receive."""
    record: CanonicalRecord
    new_category: Category
    new_message: str

    def apply(self) -> CanonicalRecord:
        """Return the record in its terminal, treated state."""
        return replace(
            self.record,
            category=self.new_category,
            message=self.new_message,
            treated=True,
        )

    def update_fields(self) -> dict[str, Any]:
        """Columns a store must write for this record."""
        return {
            "message": self.new_message,
            "category": self.new_category.value,
            "treated": True,
        }


@dataclass
class CategorizationSummary:
    processed: int = 0
    standard: int = 0
    quality: int = 0
    returned: int = 0
    unidentified: int = 0
    reorganized: int = 0

    def count(self, category: Category) -> None:
        """Tally one categorized record."""
        self.processed += 1
        if category is Category.STANDARD:
            self.standard += 1
        elif category is Category.QUALITY:
            self.quality += 1
        elif category is Category.RETURN:
            self.returned += 1
        elif category is Category.UNIDENTIFIED:
            self.unidentified += 1
        else:
            raise ValueError(f"Unknown category: {category!r}")

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


# ---------------------------------------------------------------------------
# Store queries
# ---------------------------------------------------------------------------

@dataclass
class NotaFilter:
    """Filters for listing stored notas."""
    category: Optional[Category] = None
    date_up_to: Optional[dt.date] = None
    text: Optional[str] = None           # case-insensitive, any text column
    treated: Optional[bool] = None
    limit: int = DEFAULT_PAGE_LIMIT
    offset: int = 0
