# =========================================================
# REPORTS ROUTER
#
# Read-only views for dashboards and cost-basis audits:
# - Inventory valuation (per product + totals)
# - Batch breakdown of a product, next FIFO batch first
# - Cost of goods of an order, per batch drawn from
# =========================================================

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from fifo_inventory.database import get_db
from fifo_inventory.core.bootstrap import ensure_batches
from fifo_inventory.core.reports import batch_summary, inventory_valuation, order_cost_basis
from fifo_inventory.schemas.report import (
    BatchSummaryResponse,
    InventoryValuationResponse,
    OrderCostBasisResponse,
)

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/valuation", response_model=InventoryValuationResponse)
def valuation_report(
    status: Optional[str] = Query(
        None,
        pattern="^(active|low_stock|out_of_stock|inactive|discontinued)$",
    ),
    db: Session = Depends(get_db),
):
    return inventory_valuation(db, status=status)


@router.get("/products/{product_id}/batches", response_model=BatchSummaryResponse)
def product_batch_report(
    product_id: int,
    db: Session = Depends(get_db),
):
    ensure_batches(db, product_id)

    return batch_summary(db, product_id)


@router.get("/orders/{order_id}/cost-basis", response_model=OrderCostBasisResponse)
def order_cost_basis_report(
    order_id: str,
    db: Session = Depends(get_db),
):
    return order_cost_basis(db, order_id)
