from decimal import Decimal
from pydantic import BaseModel, Field
from datetime import date


class BatchCreate(BaseModel):
    purchase_date: date
    quantity_purchased: int = Field(..., ge=0)
    quantity_available: int | None = Field(
        None,
        ge=0,
        description="Defaults to quantity_purchased for a fresh purchase"
    )
    cost_per_item: Decimal = Field(..., ge=0, lt=100_000_000, decimal_places=2)
    batch_reference: str | None = Field(None, max_length=100)


class BatchUpdate(BaseModel):
    purchase_date: date | None = None
    quantity_purchased: int | None = None
    quantity_available: int | None = None
    cost_per_item: Decimal | None = Field(None, ge=0, lt=100_000_000, decimal_places=2)
    batch_reference: str | None = Field(None, max_length=100)


class BatchResponse(BaseModel):
    id: int
    product_id: int
    purchase_date: date
    quantity_purchased: int
    quantity_available: int
    cost_per_item: Decimal
    batch_reference: str | None
    state: str

    class Config:
        from_attributes = True
