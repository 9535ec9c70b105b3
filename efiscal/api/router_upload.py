"""
Upload endpoints: import a nota workbook into the store.
"""
from __future__ import annotations

import asyncio
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, UploadFile, File

from efiscal.config import ACCEPTED_EXTENSIONS, MAX_UPLOAD_MB
from efiscal.data.store import NotaStore
from efiscal.api.dependencies import get_store
from efiscal.api.response_models import UploadResponse, UploadStatusResponse
from efiscal.errors import EFiscalError
from efiscal.operations import import_workbook

router = APIRouter(prefix="/api", tags=["upload"])


@router.post("/upload-notas", response_model=UploadResponse)
async def upload_notas(file: UploadFile = File(...), store: NotaStore = Depends(get_store)):
    """Upload one .xlsx workbook; notas already stored (same key) are skipped."""
    if not file.filename:
        raise HTTPException(400, "Missing filename")
    if not file.filename.lower().endswith(ACCEPTED_EXTENSIONS):
        raise HTTPException(400, f"Only .xlsx files are accepted (got '{file.filename}')")

    content = await file.read()
    size_mb = len(content) / (1024 * 1024)
    if size_mb > MAX_UPLOAD_MB:
        raise HTTPException(400, f"File too large ({size_mb:.2f}MB). Maximum {MAX_UPLOAD_MB}MB allowed")

    print(f"Upload: {file.filename} ({len(content):,} bytes)")
    try:
        # Parsing and the store lock stay off the event loop
        outcome = await asyncio.to_thread(import_workbook, store, content)
    except EFiscalError as exc:
        print(f"  Rejected {file.filename}: {exc.message}")
        raise HTTPException(400, exc.message)

    return UploadResponse(
        success=True,
        message="Upload processed successfully",
        processed_count=outcome.processed,
        new_records_count=outcome.new,
        duplicates_count=outcome.duplicates,
        dropped_count=outcome.dropped,
    )


@router.get("/upload-notas", response_model=UploadStatusResponse)
def upload_status():
    return UploadStatusResponse(
        status="upload API running",
        timestamp=datetime.now(timezone.utc).isoformat(),
        endpoint="/api/upload-notas",
        max_upload_mb=MAX_UPLOAD_MB,
    )
