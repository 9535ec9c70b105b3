"""
Cell normalization: spreadsheet dates, money, quantities, text, dedup keys.
"""
from __future__ import annotations

import datetime as dt
import math
import numbers
import re

import pandas as pd

from efiscal.config import SERIAL_MIN, SERIAL_MAX, SERIAL_LEAP_BUG_THRESHOLD

_SERIAL_EPOCH = dt.datetime(1900, 1, 1)
_DMY_RE = re.compile(r"(\d{1,2})/(\d{1,2})/(\d{4})")
_CURRENCY_RE = re.compile(r"[R$\s]")
_WHITESPACE_RE = re.compile(r"\s+")
# Leading decimal number, as far as it parses ("12.5abc" → "12.5")
_LEADING_NUMBER_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)


# ---------------------------------------------------------------------------
# Emptiness
# ---------------------------------------------------------------------------

def is_blank(value) -> bool:
    """True for None, NaN/NaT and whitespace-only strings. Numeric 0 is not blank."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _is_number(value) -> bool:
    return isinstance(value, numbers.Number) and not isinstance(value, bool)


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------

def serial_to_date(serial: float) -> dt.date | None:
    """Convert a 1900-system spreadsheet serial to a calendar date.

    Serials above 59 are shifted back one day to skip the fictitious
    29/02/1900. Out-of-range serials return None.
    """
    if not (SERIAL_MIN <= serial <= SERIAL_MAX):
        return None
    adjusted = serial - 1 if serial > SERIAL_LEAP_BUG_THRESHOLD else serial
    return (_SERIAL_EPOCH + dt.timedelta(days=adjusted - 1)).date()


def to_iso_date(value) -> str | None:
    """Normalize a supply-date cell to YYYY-MM-DD, or None when it can't be resolved.

    Accepts spreadsheet serials, "dd/mm/yyyy" strings, numeric strings
    (treated as serials), and date/datetime cell values.
    """
    if is_blank(value):
        return None

    if isinstance(value, (dt.datetime, dt.date)):
        if isinstance(value, dt.datetime):
            value = value.date()
        return value.isoformat()

    if _is_number(value):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        d = serial_to_date(float(value))
        return d.isoformat() if d else None

    if isinstance(value, str):
        text = value.strip()
        if "/" in text:
            m = _DMY_RE.fullmatch(text)
            if not m:
                return None
            day, month, year = (int(g) for g in m.groups())
            try:
                return dt.date(year, month, day).isoformat()
            except ValueError:
                return None
        try:
            serial = float(text.replace(",", "."))
        except ValueError:
            return None
        return to_iso_date(serial) if math.isfinite(serial) else None

    return None


# ---------------------------------------------------------------------------
# Numbers
# ---------------------------------------------------------------------------

def _finite_or_zero(number) -> float:
    number = float(number)
    return number if math.isfinite(number) else 0.0


def _leading_number(text: str) -> float:
    """Numeric prefix of text ("2.5 kg" → 2.5); no prefix → 0."""
    m = _LEADING_NUMBER_RE.match(text.lstrip())
    return _finite_or_zero(m.group()) if m else 0.0


def parse_money(value) -> float:
    """Parse a BRL amount like "R$ 1.234,56" → 1234.56. Unparsable → 0."""
    if _is_number(value):
        return 0.0 if pd.isna(value) else _finite_or_zero(value)
    if not isinstance(value, str):
        return 0.0
    clean = _CURRENCY_RE.sub("", value).replace(".", "").replace(",", ".", 1)
    return _leading_number(clean)


def parse_quantity(value) -> float:
    """Parse a quantity cell; comma decimals accepted. Unparsable → 0."""
    if _is_number(value):
        return 0.0 if pd.isna(value) else _finite_or_zero(value)
    if not isinstance(value, str):
        return 0.0
    return _leading_number(value.replace(",", ".", 1))


# ---------------------------------------------------------------------------
# Text & keys
# ---------------------------------------------------------------------------

def clean_text(value) -> str:
    """Render a cell as trimmed text. Integral floats lose their ".0"."""
    if is_blank(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, dt.datetime):
        return value.strftime("%Y-%m-%d %H:%M:%S")
    return str(value).strip()


def make_dedup_key(supply_date: str, invoice_number: str, origin: str, material_code: str) -> str:
    """Business identity of a nota: date_invoice_origin_material, whitespace → "_"."""
    key = f"{supply_date}_{invoice_number}_{origin}_{material_code}"
    return _WHITESPACE_RE.sub("_", key)
