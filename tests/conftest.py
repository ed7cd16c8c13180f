"""
Pytest fixtures for the inventory ledger test suite.

Provides:
- A file-backed SQLite database per test (threads get their own connections)
- Session, product and batch factories
- A FastAPI TestClient bound to the test database
"""

from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from fifo_inventory.core.batches import add_batch
from fifo_inventory.core.rate_limiter import limiter
from fifo_inventory.database import Base, get_db
from fifo_inventory.main import app
from fifo_inventory.models.batches import ProductBatch
from fifo_inventory.models.consumptions import BatchConsumption  # noqa: F401
from fifo_inventory.models.products import STATUS_ACTIVE, Product


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'inventory_test.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def make_product(db):
    """Create a product the way a pre-batch (legacy) record looks."""
    counter = {"n": 0}

    def _make(
        sku=None,
        name="Widget",
        quantity=0,
        available_qty=None,
        cost_per_item="0.00",
        purchase_date=None,
        status=STATUS_ACTIVE,
    ) -> Product:
        counter["n"] += 1
        if available_qty is None:
            available_qty = quantity

        product = Product(
            sku=sku or f"SKU-{counter['n']:03d}",
            name=name,
            quantity=quantity,
            cost_per_item=Decimal(cost_per_item),
            purchase_date=purchase_date,
            available_qty=available_qty,
            stock_value=Decimal(cost_per_item) * available_qty,
            status=status,
            sales_qty=0,
        )
        db.add(product)
        db.commit()
        return product

    return _make


@pytest.fixture
def make_batch(db):
    def _make(
        product: Product,
        purchase_date: date,
        quantity_purchased: int,
        cost_per_item: str,
        quantity_available: int | None = None,
        batch_reference: str | None = None,
    ) -> ProductBatch:
        return add_batch(
            db,
            product.id,
            purchase_date=purchase_date,
            quantity_purchased=quantity_purchased,
            quantity_available=quantity_available,
            cost_per_item=Decimal(cost_per_item),
            batch_reference=batch_reference,
        )

    return _make


@pytest.fixture
def two_batch_product(make_product, make_batch):
    """A: 10 @ 2.00 bought 2024-01-01, B: 5 @ 3.00 bought 2024-02-01."""
    product = make_product(sku="TWO-BATCH")
    batch_a = make_batch(product, date(2024, 1, 1), 10, "2.00", batch_reference="A")
    batch_b = make_batch(product, date(2024, 2, 1), 5, "3.00", batch_reference="B")
    return product, batch_a, batch_b


@pytest.fixture
def snapshot(session_factory):
    """Batch rows of a product as plain tuples, read through a fresh session."""

    def _snapshot(product_id: int):
        session = session_factory()
        try:
            return [
                (b.id, b.purchase_date, b.quantity_purchased, b.quantity_available, b.cost_per_item)
                for b in (
                    session.query(ProductBatch)
                    .filter(ProductBatch.product_id == product_id)
                    .order_by(ProductBatch.id)
                    .all()
                )
            ]
        finally:
            session.close()

    return _snapshot


@pytest.fixture
def client(session_factory):
    def _get_test_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_test_db
    limiter.enabled = False

    yield TestClient(app)

    limiter.enabled = True
    app.dependency_overrides.clear()
