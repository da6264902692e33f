from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient

from rmerch.db import SessionLocal
from rmerch.main import app
from rmerch.models.cart import Cart
from rmerch.models.product import Product
from rmerch.repositories.cart_repo import CartRepository
from rmerch.services.cart_service import CartService

client = TestClient(app)

USER = "shopper@example.com"


def test_get_cart_creates_it_lazily():
    res = client.get("/api/cart", params={"userId": USER})
    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert body["data"]["userId"] == USER
    assert body["data"]["items"] == []
    assert body["data"]["totalCents"] == 0


def test_get_cart_requires_user():
    res = client.get("/api/cart")
    assert res.status_code == 400
    assert res.json()["success"] is False


def test_add_merges_quantities_and_keeps_total(make_product):
    pid = make_product(name="Tote bag", price_cents=2500, stock=5)

    client.post("/api/cart", json={"userId": USER, "productId": pid, "quantity": 2})
    res = client.post("/api/cart", json={"userId": USER, "productId": pid})
    assert res.status_code == 200
    cart = res.json()["data"]
    assert len(cart["items"]) == 1
    assert cart["items"][0]["quantity"] == 3
    assert cart["items"][0]["subtotalCents"] == 7500
    assert cart["items"][0]["image"] == "https://cdn.example.com/mug.png"
    assert cart["totalCents"] == 7500


def test_add_checks_stock_against_merged_quantity(make_product):
    pid = make_product(name="Tote bag", stock=3)

    assert client.post("/api/cart", json={"userId": USER, "productId": pid, "quantity": 2}).status_code == 200
    res = client.post("/api/cart", json={"userId": USER, "productId": pid, "quantity": 2})
    assert res.status_code == 400
    assert "Insufficient stock for Tote bag" in res.json()["message"]


def test_add_unknown_product_is_404():
    res = client.post("/api/cart", json={"userId": USER, "productId": 424242, "quantity": 1})
    assert res.status_code == 404


def test_update_refreshes_price_and_zero_removes(make_product):
    pid = make_product(price_cents=1000, stock=10)
    other = make_product(name="Pin", price_cents=300, stock=10)
    client.post("/api/cart", json={"userId": USER, "productId": pid, "quantity": 1})
    client.post("/api/cart", json={"userId": USER, "productId": other, "quantity": 1})

    db = SessionLocal()
    try:
        db.get(Product, pid).price_cents = 1200
        db.commit()
    finally:
        db.close()

    res = client.put("/api/cart", json={"userId": USER, "productId": pid, "quantity": 4})
    assert res.status_code == 200
    cart = res.json()["data"]
    assert cart["items"][0]["priceCents"] == 1200
    assert cart["totalCents"] == 4800 + 300

    res = client.put("/api/cart", json={"userId": USER, "productId": pid, "quantity": 0})
    cart = res.json()["data"]
    assert [it["productId"] for it in cart["items"]] == [other]
    assert cart["totalCents"] == 300


def test_update_line_not_in_cart_is_404(make_product):
    pid = make_product()
    client.get("/api/cart", params={"userId": USER})
    res = client.put("/api/cart", json={"userId": USER, "productId": pid, "quantity": 1})
    assert res.status_code == 404


def test_delete_one_line_or_clear(make_product):
    a = make_product(name="A", stock=10)
    b = make_product(name="B", stock=10)
    client.post("/api/cart", json={"userId": USER, "productId": a})
    client.post("/api/cart", json={"userId": USER, "productId": b})

    res = client.delete("/api/cart", params={"userId": USER, "productId": a})
    assert [it["productId"] for it in res.json()["data"]["items"]] == [b]

    res = client.delete("/api/cart", params={"userId": USER})
    assert res.status_code == 200
    assert res.json()["message"] == "Cart cleared"
    assert res.json()["data"]["items"] == []
    assert res.json()["data"]["totalCents"] == 0


def test_calculate_preview(make_product):
    pid = make_product(price_cents=5000, stock=10)
    client.post("/api/cart", json={"userId": USER, "productId": pid, "quantity": 2})

    res = client.post(
        "/api/cart/calculate",
        json={"userId": USER, "shippingCostCents": 1000, "couponCode": "DESCUENTO10"},
    )
    assert res.status_code == 200
    data = res.json()["data"]
    assert data["subtotalCents"] == 10000
    assert data["discountCents"] == 1000
    assert data["totalCents"] == 10000
    assert data["userId"] == USER
    assert data["items"][0]["quantity"] == 2
    # lines, not units
    assert data["itemCount"] == 1


def test_calculate_empty_cart_is_404():
    client.get("/api/cart", params={"userId": USER})
    res = client.post("/api/cart/calculate", json={"userId": USER})
    assert res.status_code == 404


def test_checkout_endpoint(make_product, stock_of, customer):
    pid = make_product(price_cents=5000, stock=5)
    client.post("/api/cart", json={"userId": USER, "productId": pid, "quantity": 2})

    res = client.post(
        "/api/cart/checkout",
        json={
            "userId": USER,
            "customer": customer,
            "paymentMethod": "mercado-pago",
            "notes": "Leave at reception",
            "shippingInfo": {"carrier": "Coordinadora", "shippingCostCents": 1200},
        },
    )
    assert res.status_code == 201
    order = res.json()["data"]
    assert order["totalCents"] == 11200
    assert order["userId"] == USER
    assert order["customer"]["address"]["zip_code"] == "050001"
    assert order["items"][0]["product"]["name"] == "R-Merch Mug"
    assert order["items"][0]["product"]["images"] == ["https://cdn.example.com/mug.png"]
    assert order["shippingInfo"]["carrier"] == "Coordinadora"
    assert stock_of(pid) == 3

    cart = client.get("/api/cart", params={"userId": USER}).json()["data"]
    assert cart["items"] == []
    assert cart["totalCents"] == 0


def test_checkout_with_bad_payment_method_keeps_cart(make_product, stock_of, customer):
    pid = make_product(stock=5)
    client.post("/api/cart", json={"userId": USER, "productId": pid, "quantity": 1})

    res = client.post(
        "/api/cart/checkout",
        json={"userId": USER, "customer": customer, "paymentMethod": "crypto"},
    )
    assert res.status_code == 400
    assert res.json()["success"] is False
    assert stock_of(pid) == 5
    assert len(client.get("/api/cart", params={"userId": USER}).json()["data"]["items"]) == 1


def test_purge_expired_removes_only_stale_carts(make_product):
    pid = make_product(stock=10)
    client.post("/api/cart", json={"userId": "stale", "productId": pid})
    client.post("/api/cart", json={"userId": "fresh", "productId": pid})

    db = SessionLocal()
    try:
        stale = db.query(Cart).filter(Cart.user_id == "stale").one()
        stale.expires_at = datetime.now(timezone.utc) - timedelta(days=1)
        db.commit()
    finally:
        db.close()

    db = SessionLocal()
    try:
        assert CartService(db).purge_expired() == 1
        assert [c.user_id for c in db.query(Cart).all()] == ["fresh"]
    finally:
        db.close()


def test_cart_writes_read_the_cart_row_for_update(monkeypatch, make_product):
    pid = make_product(stock=10)
    locked = []
    original = CartRepository.get_by_user

    def spy(self, user_id, for_update=False):
        locked.append(for_update)
        return original(self, user_id, for_update=for_update)

    monkeypatch.setattr(CartRepository, "get_by_user", spy)

    client.post("/api/cart", json={"userId": USER, "productId": pid, "quantity": 1})
    client.put("/api/cart", json={"userId": USER, "productId": pid, "quantity": 3})
    client.delete("/api/cart", params={"userId": USER, "productId": pid})

    assert locked == [True, True, True]
