"""
Listing endpoint: filtered, paginated notas.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends

from efiscal.data.store import NotaStore
from efiscal.data.schemas import NotaFilter
from efiscal.api.dependencies import get_store, parse_nota_filter
from efiscal.api.response_models import NotaModel, NotasResponse

router = APIRouter(prefix="/api", tags=["notas"])


@router.get("/notas", response_model=NotasResponse)
def list_notas(
    flt: NotaFilter = Depends(parse_nota_filter),
    store: NotaStore = Depends(get_store),
):
    """Notas matching the filters, newest supply date first."""
    records, total = store.query(flt)
    return NotasResponse(
        success=True,
        data=[NotaModel(**r.to_dict()) for r in records],
        total=total,
    )
