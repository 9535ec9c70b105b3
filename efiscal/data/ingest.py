"""
Workbook ingestion: structure validation, row validation, canonical records.
"""
from __future__ import annotations

import datetime as dt
import io
from collections import Counter

import pandas as pd

from efiscal.config import REQUIRED_HEADERS, ROW_REQUIRED_HEADERS, COLUMN_MAP
from efiscal.data.dedup import batch_duplicate_keys
from efiscal.data.normalize import (
    clean_text,
    is_blank,
    make_dedup_key,
    parse_money,
    parse_quantity,
    to_iso_date,
)
from efiscal.data.schemas import (
    CanonicalRecord,
    Category,
    IngestionResult,
    RawRow,
    RowAccepted,
    RowDropped,
    RowResult,
)
from efiscal.errors import ParseError, StructureError


# ---------------------------------------------------------------------------
# Sheet reading
# ---------------------------------------------------------------------------

def _read_first_sheet(buffer: bytes) -> pd.DataFrame:
    """Read the first sheet header-less, keeping native cell types."""
    try:
        xls = pd.ExcelFile(io.BytesIO(buffer), engine="openpyxl")
    except Exception as exc:
        raise ParseError(f"File is not a readable workbook: {exc}") from exc

    with xls:
        if not xls.sheet_names:
            raise StructureError("Workbook contains no sheets")
        try:
            # Only truly empty cells are NA; texts like "NA" stay as written
            return xls.parse(
                xls.sheet_names[0],
                header=None,
                dtype=object,
                keep_default_na=False,
                na_values=[""],
            )
        except Exception as exc:
            raise ParseError(f"Could not read sheet '{xls.sheet_names[0]}': {exc}") from exc


def _header_names(header_row: pd.Series) -> list[str]:
    return [clean_text(h) for h in header_row.tolist()]


def _header_position(sheet: pd.DataFrame) -> int:
    """Position of the first non-blank row; blank rows above the header are skipped."""
    filled = sheet.notna().any(axis=1).to_numpy()
    if sheet.empty or not filled.any():
        raise StructureError("Sheet is empty")
    return int(filled.argmax())


def validate_structure(sheet: pd.DataFrame) -> tuple[int, list[str]]:
    """Locate the header row and return its position and trimmed header names.

    Raises:
        StructureError: sheet is empty or required headers are missing
    """
    position = _header_position(sheet)
    headers = _header_names(sheet.iloc[position])
    found = set(headers)
    missing = [h for h in REQUIRED_HEADERS if h not in found]
    if missing:
        raise StructureError("Required columns not found", missing)
    return position, headers


def _data_rows(sheet: pd.DataFrame, header_position: int, headers: list[str]) -> pd.DataFrame:
    """Data lines below the header, blank lines skipped, first duplicate header wins."""
    data = sheet.iloc[header_position + 1:].copy()
    data.columns = headers
    data = data.loc[:, ~data.columns.duplicated()]
    data = data[[h for h in REQUIRED_HEADERS]]
    # Sheet row numbers are 1-based: frame position p is sheet row p + 1
    data.index = range(header_position + 2, len(sheet) + 1)
    return data.dropna(how="all")


# ---------------------------------------------------------------------------
# Row conversion
# ---------------------------------------------------------------------------

def validate_row(raw: RawRow, now: dt.datetime) -> RowResult:
    """Convert one raw row to a canonical record, or explain why it's dropped."""
    missing = tuple(
        header for header in ROW_REQUIRED_HEADERS
        if is_blank(getattr(raw, COLUMN_MAP[header]))
    )
    if missing:
        return RowDropped(raw.row_number, "missing required fields", missing)

    supply_date = to_iso_date(raw.supply_date)
    if supply_date is None:
        return RowDropped(raw.row_number, f"unresolvable supply date: {raw.supply_date!r}")

    invoice_number = clean_text(raw.invoice_number)
    origin = clean_text(raw.origin)
    material_code = clean_text(raw.material_code)

    record = CanonicalRecord(
        destination=clean_text(raw.destination),
        supply_date=supply_date,
        invoice_number=invoice_number,
        origin=origin,
        origin_description=clean_text(raw.origin_description),
        material_code=material_code,
        material_description=clean_text(raw.material_description),
        order_number=clean_text(raw.order_number),
        quantity=parse_quantity(raw.quantity),
        unit=clean_text(raw.unit),
        value=parse_money(raw.value),
        supply_reference=clean_text(raw.supply_reference),
        message=clean_text(raw.message),
        upload_timestamp=now.strftime("%Y-%m-%d %H:%M:%S"),
        dedup_key=make_dedup_key(supply_date, invoice_number, origin, material_code),
        treated=False,
        category=Category.STANDARD,
    )
    return RowAccepted(raw.row_number, record)


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------

def parse_workbook(buffer: bytes, now: dt.datetime | None = None) -> IngestionResult:
    """Parse an uploaded workbook into canonical records plus a drop report.

    Raises:
        ParseError: unreadable workbook, or no data rows
        StructureError: missing/empty first sheet or missing headers
    """
    if now is None:
        now = dt.datetime.now(dt.timezone.utc)

    sheet = _read_first_sheet(buffer)
    header_position, headers = validate_structure(sheet)
    data = _data_rows(sheet, header_position, headers)
    if data.empty:
        raise ParseError("Sheet has no data rows")

    result = IngestionResult(rows_read=len(data))
    for row_number, row in data.iterrows():
        outcome = validate_row(RawRow.from_mapping(row.to_dict(), row_number), now)
        if isinstance(outcome, RowAccepted):
            result.records.append(outcome.record)
        else:
            result.dropped.append(outcome)

    result.batch_duplicate_keys = batch_duplicate_keys(result.records)

    print(f"  Parsed {result.rows_read:,} rows → {result.valid_count:,} valid, "
          f"{result.dropped_count:,} dropped")
    if result.dropped:
        reasons = Counter(d.reason.split(":")[0] for d in result.dropped)
        for reason, n in reasons.most_common():
            print(f"    - {reason}: {n:,}")
    if result.batch_duplicate_keys:
        sample = ", ".join(result.batch_duplicate_keys[:5])
        print(f"  Warning: {len(result.batch_duplicate_keys):,} keys repeat within this upload ({sample})")

    return result


def ingest(buffer: bytes) -> list[CanonicalRecord]:
    """Parse a workbook and return only the canonical records."""
    return parse_workbook(buffer).records
