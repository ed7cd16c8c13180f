# fifo_inventory/routers/products.py

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from fifo_inventory.database import get_db
from fifo_inventory.core.bootstrap import ensure_batches
from fifo_inventory.core.batch_store import get_product
from fifo_inventory.core.valuation import set_status
from fifo_inventory.models.batches import ProductBatch
from fifo_inventory.models.products import STATUS_ACTIVE, Product
from fifo_inventory.schemas.product import (
    ProductCreate,
    ProductResponse,
    ProductStatusUpdate,
)

router = APIRouter(
    prefix="/products",
    tags=["Products"],
)


@router.post(
    "",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_product(
    product_data: ProductCreate,
    db: Session = Depends(get_db),
):
    # Prevent duplicate SKUs
    existing_product = (
        db.query(Product)
        .filter(Product.sku == product_data.sku)
        .first()
    )
    if existing_product:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Product with this SKU already exists",
        )

    available_qty = product_data.available_qty
    if available_qty is None:
        available_qty = product_data.quantity

    if available_qty > product_data.quantity:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Available quantity cannot exceed quantity",
        )

    # Flat legacy record; batches are created on first read
    product = Product(
        sku=product_data.sku,
        name=product_data.name,
        quantity=product_data.quantity,
        cost_per_item=product_data.cost_per_item,
        purchase_date=product_data.purchase_date,
        available_qty=available_qty,
        stock_value=available_qty * product_data.cost_per_item,
        status=STATUS_ACTIVE,
        sales_qty=0,
    )

    db.add(product)
    db.commit()
    db.refresh(product)

    return product


@router.get("", response_model=list[ProductResponse])
def list_products(
    db: Session = Depends(get_db),
):
    unbatched_ids = [
        product_id
        for (product_id,) in (
            db.query(Product.id)
            .outerjoin(ProductBatch, ProductBatch.product_id == Product.id)
            .filter(ProductBatch.id.is_(None))
            .all()
        )
    ]

    for product_id in unbatched_ids:
        ensure_batches(db, product_id)

    products = (
        db.query(Product)
        .order_by(Product.id.desc())
        .all()
    )

    return products


@router.get("/{product_id}", response_model=ProductResponse)
def get_product_detail(
    product_id: int,
    db: Session = Depends(get_db),
):
    ensure_batches(db, product_id)

    return get_product(db, product_id)


@router.put("/{product_id}/status", response_model=ProductResponse)
def update_product_status(
    product_id: int,
    status_data: ProductStatusUpdate,
    db: Session = Depends(get_db),
):
    ensure_batches(db, product_id)

    return set_status(db, product_id, status_data.status)
