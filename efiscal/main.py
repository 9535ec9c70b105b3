"""
eFiscal Notas — FastAPI app factory with startup store loading.
"""
from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from efiscal.data.store import NotaStore
from efiscal.api.dependencies import set_store
from efiscal.api.router_meta import router as meta_router
from efiscal.api.router_upload import router as upload_router
from efiscal.api.router_categorize import router as categorize_router
from efiscal.api.router_notas import router as notas_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the nota store at startup."""
    import os
    from efiscal.config import BASE_FOLDER, NOTAS_FILE
    BASE_FOLDER.mkdir(parents=True, exist_ok=True)

    print(f"  EFISCAL_DATA_DIR = {os.environ.get('EFISCAL_DATA_DIR', '(not set)')}")
    print(f"  NOTAS_FILE = {NOTAS_FILE}")

    store = NotaStore(NOTAS_FILE).load()
    set_store(store)

    print(f"\neFiscal Notas ready — {store.row_count():,} notas, "
          f"{store.untreated_count():,} awaiting categorization\n")
    yield


def create_app() -> FastAPI:
    app = FastAPI(
        title="eFiscal Notas API",
        description="Invoice/shipment spreadsheet ingestion and message-based categorization",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(meta_router)
    app.include_router(upload_router)
    app.include_router(categorize_router)
    app.include_router(notas_router)

    return app


app = create_app()
