# schemas/report.py

from pydantic import BaseModel
from datetime import date
from decimal import Decimal
from typing import List


class BatchValuationLine(BaseModel):
    id: int
    purchase_date: date
    quantity_purchased: int
    quantity_available: int
    cost_per_item: Decimal
    batch_reference: str | None
    state: str
    value: Decimal


class BatchSummaryResponse(BaseModel):
    product_id: int
    sku: str
    next_batch_id: int | None
    active_batches: int
    depleted_batches: int
    total_purchased: int
    total_consumed: int
    available_qty: int
    stock_value: Decimal
    status: str
    batches: List[BatchValuationLine]


class ProductValuationLine(BaseModel):
    product_id: int
    sku: str
    name: str
    available_qty: int
    stock_value: Decimal
    status: str
    sales_qty: int


class InventoryValuationResponse(BaseModel):
    total_products: int
    total_units: int
    total_stock_value: Decimal
    products: List[ProductValuationLine]


class CostBasisLine(BaseModel):
    product_id: int
    batch_id: int
    purchase_date: date
    quantity: int
    unit_cost: Decimal
    line_cost: Decimal


class OrderCostBasisResponse(BaseModel):
    order_id: str
    total_quantity: int
    cost_of_goods: Decimal
    lines: List[CostBasisLine]
