# =========================================================
# ORDER INGESTION
#
# Every order line is deducted from batches in FIFO order.
# InsufficientStockError is a hard failure (409): the order
# needs an operator, stock is never silently clamped.
#
# The order_id doubles as the idempotency key, so a client
# retrying after a timeout cannot deduct twice.
# =========================================================

from decimal import Decimal

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from fifo_inventory.database import get_db
from fifo_inventory.core.config import settings
from fifo_inventory.core.consumption import consume_order, restore_order
from fifo_inventory.core.rate_limiter import limiter
from fifo_inventory.schemas.order import OrderCreate, OrderResponse
from fifo_inventory.schemas.product import ProductResponse

router = APIRouter(prefix="/orders", tags=["Orders"])


# =========================================================
# CONSUME ORDER
# =========================================================
@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.ORDER_RATE_LIMIT)
def create_order(
    request: Request,
    order_data: OrderCreate,
    db: Session = Depends(get_db),
):
    results = consume_order(
        db,
        order_data.order_id,
        [(item.product_id, item.quantity) for item in order_data.items],
    )

    lines = []
    total_cost = Decimal("0.00")

    for result in results:
        total_cost += result.cost_of_goods

        lines.append({
            "product_id": result.product.id,
            "quantity": result.quantity,
            "cost_of_goods": result.cost_of_goods,
            "already_applied": result.already_applied,
            "available_qty": result.product.available_qty,
            "stock_value": result.product.stock_value,
            "status": result.product.status,
            "depleted": [
                {"batch_id": batch_id, "quantity": quantity}
                for batch_id, quantity in result.depleted
            ],
        })

    return {
        "order_id": order_data.order_id,
        "cost_of_goods": total_cost,
        "lines": lines,
    }


# =========================================================
# REVERSE ORDER (RETURN STOCK TO ITS BATCHES)
# =========================================================
@router.delete("/{order_id}", response_model=list[ProductResponse])
def delete_order(
    order_id: str,
    db: Session = Depends(get_db),
):
    return restore_order(db, order_id)
