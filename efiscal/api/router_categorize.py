"""
Categorization endpoints: run the engine over untreated notas, check the backlog.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends

from efiscal.data.store import NotaStore
from efiscal.api.dependencies import get_store
from efiscal.api.response_models import CategorizationResponse, SummaryModel, UntreatedResponse
from efiscal.operations import categorize_pending

router = APIRouter(prefix="/api", tags=["categorization"])


@router.post("/categorizar-notas", response_model=CategorizationResponse)
def categorize_notas(store: NotaStore = Depends(get_store)):
    run = categorize_pending(store)
    message = "Categorization complete" if run.summary.processed else "No untreated notas found"
    return CategorizationResponse(
        success=True,
        message=message,
        summary=SummaryModel(**run.summary.to_dict()),
        updated=run.updated,
        elapsed_ms=run.elapsed_ms,
    )


@router.get("/categorizar-notas", response_model=UntreatedResponse)
def untreated_status(store: NotaStore = Depends(get_store)):
    count = store.untreated_count()
    return UntreatedResponse(has_untreated=count > 0, count=count)
