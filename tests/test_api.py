from decimal import Decimal
from io import BytesIO

from openpyxl import load_workbook


def _create_product(client, **overrides):
    payload = {
        "sku": "API-1",
        "name": "Desk Lamp",
        "quantity": 10,
        "available_qty": 10,
        "cost_per_item": "2.00",
        "purchase_date": "2024-01-01",
    }
    payload.update(overrides)
    response = client.post("/products", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def _setup_two_batches(client):
    product = _create_product(client)

    # First read turns the legacy fields into the initial batch
    batches = client.get(f"/products/{product['id']}/batches").json()
    assert len(batches) == 1
    assert batches[0]["batch_reference"] == "Initial Batch"

    response = client.post(
        f"/products/{product['id']}/batches",
        json={
            "purchase_date": "2024-02-01",
            "quantity_purchased": 5,
            "cost_per_item": "3.00",
            "batch_reference": "B",
        },
    )
    assert response.status_code == 201, response.text
    assert response.json()["quantity_available"] == 5

    return product["id"], batches[0]["id"], response.json()["id"]


def test_root(client):
    response = client.get("/")

    assert response.status_code == 200


def test_duplicate_sku_rejected(client):
    _create_product(client)

    response = client.post("/products", json={"sku": "API-1", "name": "Again"})

    assert response.status_code == 409


def test_get_product_bootstraps_once(client):
    product = _create_product(client, quantity=7, available_qty=4)

    first = client.get(f"/products/{product['id']}").json()
    client.get(f"/products/{product['id']}")
    batches = client.get(f"/products/{product['id']}/batches").json()

    assert first["available_qty"] == 4
    assert first["status"] == "low_stock"
    assert len(batches) == 1
    assert batches[0]["quantity_purchased"] == 7


def test_missing_product_is_404(client):
    response = client.get("/products/4242")

    assert response.status_code == 404
    assert response.json()["error"] == "NotFoundError"


def test_order_consumes_fifo_and_reports_cost(client):
    product_id, batch_a, batch_b = _setup_two_batches(client)

    response = client.post(
        "/orders",
        json={"order_id": "WM-1001", "items": [{"product_id": product_id, "quantity": 12}]},
    )

    assert response.status_code == 201, response.text
    body = response.json()
    line = body["lines"][0]
    assert line["depleted"] == [
        {"batch_id": batch_a, "quantity": 10},
        {"batch_id": batch_b, "quantity": 2},
    ]
    assert line["available_qty"] == 3
    assert Decimal(line["stock_value"]) == Decimal("9.00")
    assert line["status"] == "low_stock"
    assert Decimal(body["cost_of_goods"]) == Decimal("26.00")

    next_batch = client.get(f"/products/{product_id}/batches/next").json()
    assert next_batch["id"] == batch_b

    basis = client.get("/reports/orders/WM-1001/cost-basis").json()
    assert basis["total_quantity"] == 12
    assert Decimal(basis["cost_of_goods"]) == Decimal("26.00")
    assert [Decimal(l["unit_cost"]) for l in basis["lines"]] == [Decimal("2.00"), Decimal("3.00")]


def test_resubmitted_order_is_not_applied_twice(client):
    product_id, _, _ = _setup_two_batches(client)
    order = {"order_id": "WM-2002", "items": [{"product_id": product_id, "quantity": 3}]}

    client.post("/orders", json=order)
    again = client.post("/orders", json=order).json()

    assert again["lines"][0]["already_applied"] is True
    assert client.get(f"/products/{product_id}").json()["available_qty"] == 12


def test_order_without_items_is_rejected(client):
    response = client.post("/orders", json={"order_id": "WM-0000", "items": []})

    assert response.status_code == 400
    assert response.json()["detail"] == "Order must contain items"


def test_insufficient_stock_is_a_hard_failure(client):
    product_id, _, _ = _setup_two_batches(client)

    response = client.post(
        "/orders",
        json={"order_id": "WM-3003", "items": [{"product_id": product_id, "quantity": 99}]},
    )

    assert response.status_code == 409
    assert response.json()["error"] == "InsufficientStockError"
    assert client.get(f"/products/{product_id}").json()["available_qty"] == 15


def test_delete_order_returns_stock(client):
    product_id, _, _ = _setup_two_batches(client)
    client.post(
        "/orders",
        json={"order_id": "WM-4004", "items": [{"product_id": product_id, "quantity": 11}]},
    )

    response = client.delete("/orders/WM-4004")

    assert response.status_code == 200
    assert response.json()[0]["available_qty"] == 15
    assert client.delete("/orders/WM-4004").status_code == 404


def test_sub_cent_batch_cost_is_rejected(client):
    product_id, batch_a, _ = _setup_two_batches(client)

    created = client.post(
        f"/products/{product_id}/batches",
        json={"purchase_date": "2024-03-01", "quantity_purchased": 10, "cost_per_item": "1.005"},
    )
    edited = client.put(f"/batches/{batch_a}", json={"cost_per_item": "2.001"})

    assert created.status_code == 422
    assert edited.status_code == 422
    assert Decimal(client.get(f"/products/{product_id}").json()["stock_value"]) == Decimal("35.00")


def test_batch_edit_and_delete_rules(client):
    product_id, batch_a, batch_b = _setup_two_batches(client)
    client.post(
        "/orders",
        json={"order_id": "WM-5005", "items": [{"product_id": product_id, "quantity": 4}]},
    )

    too_small = client.put(f"/batches/{batch_a}", json={"quantity_purchased": 3, "quantity_available": 0})
    assert too_small.status_code == 400

    edited = client.put(f"/batches/{batch_a}", json={"cost_per_item": "1.00"})
    assert edited.status_code == 200
    assert edited.json()["state"] == "partially_consumed"

    in_use = client.delete(f"/batches/{batch_a}")
    assert in_use.status_code == 409
    assert in_use.json()["error"] == "BatchInUseError"

    assert client.delete(f"/batches/{batch_b}").status_code == 204

    product = client.get(f"/products/{product_id}").json()
    assert product["available_qty"] == 6
    assert Decimal(product["stock_value"]) == Decimal("6.00")


def test_manual_status_override(client):
    product_id, _, _ = _setup_two_batches(client)

    response = client.put(f"/products/{product_id}/status", json={"status": "inactive"})
    assert response.json()["status"] == "inactive"

    client.post(
        "/orders",
        json={"order_id": "WM-6006", "items": [{"product_id": product_id, "quantity": 14}]},
    )
    assert client.get(f"/products/{product_id}").json()["status"] == "inactive"

    response = client.put(f"/products/{product_id}/status", json={"status": "active"})
    assert response.json()["status"] == "low_stock"


def test_import_and_valuation_report(client):
    response = client.post(
        "/imports/purchases",
        json={
            "rows": [
                {"sku": "IMP-A", "name": "Mug", "quantity": 6, "cost_per_item": "1.50", "purchase_date": "2024-01-05"},
                {"sku": "IMP-A", "name": "Mug", "quantity": 4, "cost_per_item": "2.00", "purchase_date": "2024-02-05"},
                {"sku": "IMP-B", "name": "Plate", "quantity": 3, "cost_per_item": "4.00", "purchase_date": "2024-01-05"},
            ]
        },
    )

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["imported_rows"] == 3
    assert body["failed_rows"] == 0

    report = client.get("/reports/valuation").json()
    assert report["total_products"] == 2
    assert report["total_units"] == 13
    assert Decimal(report["total_stock_value"]) == Decimal("29.00")

    low = client.get("/reports/valuation", params={"status": "low_stock"}).json()
    assert [p["sku"] for p in low["products"]] == ["IMP-B"]


def test_batch_summary_report(client):
    product_id, batch_a, batch_b = _setup_two_batches(client)
    client.post(
        "/orders",
        json={"order_id": "WM-7007", "items": [{"product_id": product_id, "quantity": 10}]},
    )

    summary = client.get(f"/reports/products/{product_id}/batches").json()

    assert summary["next_batch_id"] == batch_b
    assert summary["active_batches"] == 1
    assert summary["depleted_batches"] == 1
    assert summary["total_purchased"] == 15
    assert summary["total_consumed"] == 10
    assert [b["state"] for b in summary["batches"]] == ["fully_consumed", "unconsumed"]


def test_valuation_export_workbook(client):
    product_id, _, _ = _setup_two_batches(client)

    response = client.get("/exports/valuation")

    assert response.status_code == 200
    workbook = load_workbook(BytesIO(response.content))
    assert workbook.sheetnames == ["Batches", "Product Summary"]

    rows = list(workbook["Batches"].iter_rows(min_row=2, values_only=True))
    assert len(rows) == 2
    assert rows[0][-1] == "yes"

    summary = {row[0]: row[1] for row in workbook["Product Summary"].iter_rows(values_only=True) if row and row[0]}
    assert summary["Total Stock Value"] == summary["Batch Stock Value"] == 35.0
