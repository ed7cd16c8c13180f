from decimal import Decimal
from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import Literal


ProductStatusLiteral = Literal[
    "active",
    "low_stock",
    "out_of_stock",
    "inactive",
    "discontinued",
]


class ProductCreate(BaseModel):
    sku: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=255)

    # Legacy flat fields; turned into the initial batch on first read
    quantity: int = Field(0, ge=0)
    available_qty: int | None = Field(None, ge=0)
    cost_per_item: Decimal = Field(
        Decimal("0.00"),
        ge=0,
        lt=100_000_000,
        decimal_places=2,
        description="Cost per item must be below 100 million"
    )
    purchase_date: date | None = None


class ProductStatusUpdate(BaseModel):
    status: ProductStatusLiteral


class ProductResponse(BaseModel):
    id: int
    sku: str
    name: str
    quantity: int
    cost_per_item: Decimal
    purchase_date: date | None
    available_qty: int
    stock_value: Decimal
    status: str
    sales_qty: int
    created_at: datetime

    class Config:
        from_attributes = True
