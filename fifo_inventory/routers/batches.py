# fifo_inventory/routers/batches.py

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from fifo_inventory.database import get_db
from fifo_inventory.core.batches import add_batch, delete_batch, update_batch
from fifo_inventory.core.bootstrap import ensure_batches
from fifo_inventory.core.fifo import fifo_order, next_batch
from fifo_inventory.schemas.batch import BatchCreate, BatchResponse, BatchUpdate

router = APIRouter(tags=["Batches"])


@router.get("/products/{product_id}/batches", response_model=list[BatchResponse])
def list_product_batches(
    product_id: int,
    db: Session = Depends(get_db),
):
    return fifo_order(ensure_batches(db, product_id))


@router.get("/products/{product_id}/batches/next", response_model=BatchResponse | None)
def next_product_batch(
    product_id: int,
    db: Session = Depends(get_db),
):
    ensure_batches(db, product_id)

    return next_batch(db, product_id)


@router.post(
    "/products/{product_id}/batches",
    response_model=BatchResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_batch(
    product_id: int,
    batch_data: BatchCreate,
    db: Session = Depends(get_db),
):
    return add_batch(
        db,
        product_id,
        purchase_date=batch_data.purchase_date,
        quantity_purchased=batch_data.quantity_purchased,
        quantity_available=batch_data.quantity_available,
        cost_per_item=batch_data.cost_per_item,
        batch_reference=batch_data.batch_reference,
    )


@router.put("/batches/{batch_id}", response_model=BatchResponse)
def edit_batch(
    batch_id: int,
    batch_data: BatchUpdate,
    db: Session = Depends(get_db),
):
    return update_batch(db, batch_id, **batch_data.model_dump(exclude_unset=True))


@router.delete("/batches/{batch_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_batch(
    batch_id: int,
    db: Session = Depends(get_db),
):
    delete_batch(db, batch_id)

    return None
