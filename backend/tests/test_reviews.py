from fastapi.testclient import TestClient

from rmerch.main import app

client = TestClient(app)

BUYER = "buyer@example.com"


def _buy(customer, *product_ids, user_id=BUYER):
    res = client.post(
        "/api/orders",
        json={
            "userId": user_id,
            "items": [{"productId": pid, "quantity": 1} for pid in product_ids],
            "customer": customer,
            "paymentMethod": "cash",
        },
    )
    assert res.status_code == 201, res.text
    return res.json()["data"]["id"]


def _review(order_id, product_id, rating, user_id=BUYER, comment="Great quality"):
    return client.post(
        "/api/reviews",
        json={
            "userId": user_id,
            "productId": product_id,
            "orderId": order_id,
            "rating": rating,
            "comment": comment,
        },
    )


def test_review_updates_product_rating(make_product, customer):
    pid = make_product(owner_id="seller-9")
    order_id = _buy(customer, pid)
    other_order = _buy(customer, pid, user_id="second@example.com")

    res = _review(order_id, pid, 4)
    assert res.status_code == 201
    review = res.json()["data"]
    assert review["isVerifiedPurchase"] is True
    assert review["ownerId"] == "seller-9"

    assert _review(other_order, pid, 5, user_id="second@example.com").status_code == 201

    product = client.get(f"/api/products/{pid}").json()["data"]
    assert product["averageRating"] == 4.5
    assert product["totalReviews"] == 2


def test_average_is_rounded_to_one_decimal(make_product, customer):
    pid = make_product()
    for user, rating in (("a@x.co", 5), ("b@x.co", 4), ("c@x.co", 4)):
        assert _review(_buy(customer, pid, user_id=user), pid, rating, user_id=user).status_code == 201
    assert client.get(f"/api/products/{pid}").json()["data"]["averageRating"] == 4.3


def test_duplicate_review_is_409(make_product, customer):
    pid = make_product()
    order_id = _buy(customer, pid)
    assert _review(order_id, pid, 5).status_code == 201
    res = _review(order_id, pid, 3)
    assert res.status_code == 409


def test_purchase_must_match(make_product, customer):
    bought = make_product(name="Bought")
    not_bought = make_product(name="Not bought")
    order_id = _buy(customer, bought)

    assert _review(9999, bought, 5).status_code == 404
    assert _review(order_id, bought, 5, user_id="intruder@example.com").status_code == 403
    assert _review(order_id, not_bought, 5).status_code == 403


def test_rating_bounds_and_required_fields(make_product, customer):
    pid = make_product()
    order_id = _buy(customer, pid)
    assert _review(order_id, pid, 6).status_code == 400
    assert _review(order_id, pid, 3, comment="").status_code == 400


def test_only_author_can_edit_or_delete(make_product, customer):
    pid = make_product()
    order_id = _buy(customer, pid)
    review_id = _review(order_id, pid, 2).json()["data"]["id"]

    res = client.put(f"/api/reviews/{review_id}", json={"userId": "someone", "rating": 5})
    assert res.status_code == 403

    res = client.put(f"/api/reviews/{review_id}", json={"userId": BUYER, "rating": 5, "comment": "Changed my mind"})
    assert res.status_code == 200
    assert res.json()["data"]["comment"] == "Changed my mind"
    assert client.get(f"/api/products/{pid}").json()["data"]["averageRating"] == 5

    assert client.delete(f"/api/reviews/{review_id}", params={"userId": "someone"}).status_code == 403
    assert client.delete(f"/api/reviews/{review_id}", params={"userId": BUYER}).status_code == 200
    assert client.get(f"/api/reviews/{review_id}").status_code == 404

    product = client.get(f"/api/products/{pid}").json()["data"]
    assert product["averageRating"] == 0
    assert product["totalReviews"] == 0


def test_list_reviews_filters(make_product, customer):
    a = make_product(name="A")
    b = make_product(name="B")
    order_id = _buy(customer, a, b)
    _review(order_id, a, 5)
    _review(order_id, b, 3)

    res = client.get("/api/reviews", params={"productId": a})
    body = res.json()
    assert [r["productId"] for r in body["data"]] == [a]
    assert body["pagination"]["total"] == 1

    res = client.get("/api/reviews", params={"userId": BUYER})
    assert res.json()["pagination"]["total"] == 2
