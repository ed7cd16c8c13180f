# schemas/imports.py

from pydantic import BaseModel, Field
from datetime import date
from decimal import Decimal
from typing import List


class PurchaseRowCreate(BaseModel):
    sku: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=255)
    quantity: int = Field(..., ge=0)
    cost_per_item: Decimal = Field(..., ge=0, lt=100_000_000, decimal_places=2)
    purchase_date: date
    batch_reference: str | None = Field(None, max_length=100)


class PurchaseImportCreate(BaseModel):
    rows: List[PurchaseRowCreate]


class ImportRowResult(BaseModel):
    row_number: int
    sku: str
    product_id: int | None
    batch_id: int | None
    created_product: bool
    error: str | None

    class Config:
        from_attributes = True


class PurchaseImportResponse(BaseModel):
    total_rows: int
    imported_rows: int
    failed_rows: int
    results: List[ImportRowResult]
