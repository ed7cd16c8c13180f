# schemas/order.py

from pydantic import BaseModel, Field
from typing import List
from decimal import Decimal


class OrderLineCreate(BaseModel):
    product_id: int
    quantity: int = Field(..., gt=0)


class OrderCreate(BaseModel):
    # Caller's deduplication key; resubmitting it never deducts twice
    order_id: str = Field(..., min_length=1, max_length=100)
    items: List[OrderLineCreate]


class DepletedBatch(BaseModel):
    batch_id: int
    quantity: int


class OrderLineResponse(BaseModel):
    product_id: int
    quantity: int
    cost_of_goods: Decimal
    already_applied: bool
    available_qty: int
    stock_value: Decimal
    status: str
    depleted: List[DepletedBatch]


class OrderResponse(BaseModel):
    order_id: str
    cost_of_goods: Decimal
    lines: List[OrderLineResponse]
