"""
Pydantic response schemas for the API.
"""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str
    rows: int
    untreated: int
    categories: dict[str, int]


class UploadResponse(BaseModel):
    success: bool
    message: str
    processed_count: int = 0
    new_records_count: int = 0
    duplicates_count: int = 0
    dropped_count: int = 0


class UploadStatusResponse(BaseModel):
    status: str
    timestamp: str
    endpoint: str
    max_upload_mb: int


class SummaryModel(BaseModel):
    processed: int
    standard: int
    quality: int
    returned: int
    unidentified: int
    reorganized: int


class CategorizationResponse(BaseModel):
    success: bool
    message: str
    summary: SummaryModel
    updated: int
    elapsed_ms: Optional[int] = None


class UntreatedResponse(BaseModel):
    has_untreated: bool
    count: int


class NotaModel(BaseModel):
    id: Optional[int] = None
    destination: str
    supply_date: str
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
    upload_timestamp: str
    dedup_key: str
    treated: bool
    category: str


class NotasResponse(BaseModel):
    success: bool
    data: list[NotaModel]
    total: int
