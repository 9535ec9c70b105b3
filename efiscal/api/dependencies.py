"""
FastAPI dependencies — NotaStore singleton, listing filter parsing.
"""
from __future__ import annotations

import datetime as dt
from typing import Optional

from fastapi import HTTPException, Query

from efiscal.config import DEFAULT_PAGE_LIMIT
from efiscal.data.store import NotaStore
from efiscal.data.schemas import Category, NotaFilter

# ---------------------------------------------------------------------------
# Global store singleton (set during startup)
# ---------------------------------------------------------------------------
_store: NotaStore | None = None


def set_store(store: NotaStore) -> None:
    global _store
    _store = store


def get_store() -> NotaStore:
    if _store is None or not _store.is_loaded:
        raise HTTPException(503, "Store not loaded yet")
    return _store


# ---------------------------------------------------------------------------
# Listing filters from query params
# ---------------------------------------------------------------------------

def parse_nota_filter(
    category: Optional[str] = Query(None, description="standard|quality|return|unidentified"),
    date_up_to: Optional[str] = Query(None, description="YYYY-MM-DD"),
    text: Optional[str] = Query(None, description="Search across text columns"),
    treated: Optional[bool] = Query(None),
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1),
    offset: int = Query(0, ge=0),
) -> NotaFilter:
    """Parse listing query parameters into a NotaFilter."""
    cat = None
    if category:
        try:
            cat = Category(category)
        except ValueError:
            raise HTTPException(400, f"Invalid category: {category}")

    up_to = None
    if date_up_to:
        try:
            up_to = dt.date.fromisoformat(date_up_to)
        except ValueError:
            raise HTTPException(400, f"Invalid date_up_to: {date_up_to}")

    return NotaFilter(
        category=cat,
        date_up_to=up_to,
        text=text,
        treated=treated,
        limit=limit,
        offset=offset,
    )
