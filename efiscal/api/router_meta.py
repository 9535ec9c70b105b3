"""
Meta endpoints: health.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends

from efiscal.data.store import NotaStore
from efiscal.api.dependencies import get_store
from efiscal.api.response_models import HealthResponse

router = APIRouter(prefix="/api", tags=["meta"])


@router.get("/health", response_model=HealthResponse)
def health(store: NotaStore = Depends(get_store)):
    return HealthResponse(
        status="ok",
        rows=store.row_count(),
        untreated=store.untreated_count(),
        categories=store.category_counts(),
    )
