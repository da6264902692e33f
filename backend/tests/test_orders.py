import re

from fastapi.testclient import TestClient

from rmerch.main import app

client = TestClient(app)


def _order_payload(customer, items, **extra):
    payload = {"items": items, "customer": customer, "paymentMethod": "card"}
    payload.update(extra)
    return payload


def _create(customer, product_id, quantity=1, **extra):
    res = client.post(
        "/api/orders",
        json=_order_payload(customer, [{"productId": product_id, "quantity": quantity}], **extra),
    )
    assert res.status_code == 201, res.text
    return res.json()["data"]


def test_create_order_defaults_user_to_customer_email(make_product, stock_of, customer):
    pid = make_product(price_cents=5000, stock=5)

    order = _create(customer, pid, quantity=2)

    assert re.fullmatch(r"ORD-\d{8}-0001", order["orderNumber"])
    assert order["userId"] == "ana@example.com"
    assert order["customer"]["email"] == "ana@example.com"
    assert order["totalCents"] == 10000
    assert order["items"][0]["subtotalCents"] == 10000
    assert order["items"][0]["product"]["description"] == "R-Merch Mug description"
    assert order["statusHistory"][0]["status"] == "pending"
    assert stock_of(pid) == 3


def test_default_user_id_finds_orders_and_allows_reviews(make_product, customer):
    pid = make_product(stock=5)
    order = _create(customer, pid)

    res = client.get("/api/orders", params={"userId": "ana@example.com"})
    assert res.json()["pagination"]["total"] == 1
    assert res.json()["data"][0]["id"] == order["id"]

    res = client.post(
        "/api/reviews",
        json={
            "userId": "ana@example.com",
            "productId": pid,
            "orderId": order["id"],
            "rating": 5,
            "comment": "Arrived fast",
        },
    )
    assert res.status_code == 201, res.text


def test_order_numbers_follow_the_running_count(make_product, customer):
    pid = make_product(stock=10)
    first = _create(customer, pid)
    second = _create(customer, pid)
    assert first["orderNumber"].endswith("-0001")
    assert second["orderNumber"].endswith("-0002")


def test_validation_errors_are_400(make_product, customer):
    pid = make_product(stock=5)

    res = client.post("/api/orders", json=_order_payload(customer, []))
    assert res.status_code == 400

    bad = dict(customer, phone="")
    res = client.post("/api/orders", json=_order_payload(bad, [{"productId": pid, "quantity": 1}]))
    assert res.status_code == 400
    assert res.json()["success"] is False

    res = client.post(
        "/api/orders",
        json=_order_payload(customer, [{"productId": pid, "quantity": 1}], paymentMethod="gold"),
    )
    assert res.status_code == 400
    assert "payment method" in res.json()["message"]

    res = client.post("/api/orders", json=_order_payload(customer, [{"productId": pid, "quantity": 0}]))
    assert res.status_code == 400


def test_unknown_product_is_404(customer):
    res = client.post("/api/orders", json=_order_payload(customer, [{"productId": 777, "quantity": 1}]))
    assert res.status_code == 404
    assert "777" in res.json()["message"]


def test_insufficient_stock_is_400(make_product, stock_of, customer):
    pid = make_product(name="Jersey", stock=1)
    res = client.post("/api/orders", json=_order_payload(customer, [{"productId": pid, "quantity": 2}]))
    assert res.status_code == 400
    assert res.json()["message"] == "Insufficient stock for Jersey. Available: 1, requested: 2"
    assert stock_of(pid) == 1


def test_list_is_paginated_and_filtered(make_product, customer):
    pid = make_product(stock=10)
    for _ in range(3):
        _create(customer, pid)
    _create(customer, pid, userId="someone-else")

    res = client.get("/api/orders", params={"page": 1, "limit": 2})
    body = res.json()
    assert res.status_code == 200
    assert len(body["data"]) == 2
    assert body["pagination"] == {"total": 4, "page": 1, "limit": 2, "totalPages": 2}
    # newest first
    assert body["data"][0]["orderNumber"].endswith("-0004")

    res = client.get("/api/orders", params={"userId": "someone-else"})
    assert [o["userId"] for o in res.json()["data"]] == ["someone-else"]

    res = client.get("/api/orders", params={"status": "shipped"})
    assert res.json()["data"] == []


def test_get_missing_order_is_404():
    res = client.get("/api/orders/12345")
    assert res.status_code == 404
    assert res.json() == {"success": False, "message": "Order not found"}


def test_patch_status_appends_history_and_merges_shipping(make_product, customer):
    pid = make_product(stock=5)
    order = _create(customer, pid, shippingInfo={"carrier": "Servientrega", "shippingCostCents": 500})

    res = client.patch(
        f"/api/orders/{order['id']}",
        json={
            "status": "shipped",
            "paymentStatus": "paid",
            "adminNotes": "Packed twice",
            "shippingInfo": {"trackingNumber": "SV-123"},
        },
    )
    assert res.status_code == 200
    data = res.json()["data"]
    assert data["status"] == "shipped"
    assert data["paymentStatus"] == "paid"
    assert data["adminNotes"] == "Packed twice"
    assert data["shippingInfo"]["carrier"] == "Servientrega"
    assert data["shippingInfo"]["tracking_number"] == "SV-123"
    last = data["statusHistory"][-1]
    assert last["status"] == "shipped"
    assert last["updatedBy"] == "admin"
    assert last["notes"] == "Status changed from pending to shipped"

    res = client.patch(
        f"/api/orders/{order['id']}", json={"status": "delivered", "updatedBy": "courier-bot"}
    )
    history = res.json()["data"]["statusHistory"]
    assert [h["status"] for h in history] == ["pending", "shipped", "delivered"]
    assert history[-1]["updatedBy"] == "courier-bot"


def test_patch_rejects_unknown_status(make_product, customer):
    pid = make_product(stock=5)
    order = _create(customer, pid)
    assert client.patch(f"/api/orders/{order['id']}", json={"status": "lost"}).status_code == 400
    assert client.patch(f"/api/orders/{order['id']}", json={"paymentStatus": "maybe"}).status_code == 400


def test_deleted_product_resolves_to_null_but_snapshot_stays(make_product, customer):
    pid = make_product(name="Limited poster", price_cents=900, stock=5)
    order = _create(customer, pid)

    assert client.delete(f"/api/products/{pid}").status_code == 200
    res = client.get(f"/api/orders/{order['id']}")
    line = res.json()["data"]["items"][0]
    assert line["product"] is None
    assert line["name"] == "Limited poster"
    assert line["priceCents"] == 900


def test_delete_order(make_product, customer):
    pid = make_product(stock=5)
    order = _create(customer, pid)
    assert client.delete(f"/api/orders/{order['id']}").status_code == 200
    assert client.get(f"/api/orders/{order['id']}").status_code == 404
