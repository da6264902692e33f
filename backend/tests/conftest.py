import os
import tempfile

# must be set before rmerch is imported: the engine is built from settings at import time
_tmpdir = tempfile.mkdtemp(prefix="rmerch-tests-")
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(_tmpdir, "test.db")
os.environ["CART_PURGE_INTERVAL_SECONDS"] = "0"
os.environ["SMTP_HOST"] = ""

import pytest

from rmerch.db import SessionLocal, init_db
from rmerch.models.cart import Cart
from rmerch.models.cart_item import CartItem
from rmerch.models.product import Product
from rmerch.repositories.cart_repo import _expiry


@pytest.fixture(autouse=True)
def fresh_db():
    init_db(reset=True)
    yield


@pytest.fixture
def make_product():
    """Insert a product and return its id. Sessions are closed before returning."""

    def _make(name="R-Merch Mug", price_cents=5000, stock=5, **fields):
        fields.setdefault("images", ["https://cdn.example.com/mug.png"])
        fields.setdefault("description", f"{name} description")
        db = SessionLocal()
        try:
            p = Product(name=name, price_cents=price_cents, stock=stock, **fields)
            db.add(p)
            db.commit()
            return p.id
        finally:
            db.close()

    return _make


@pytest.fixture
def make_cart():
    """Write a cart directly, skipping the stock checks the cart endpoints apply."""

    def _make(user_id, lines):
        db = SessionLocal()
        try:
            cart = Cart(user_id=user_id, total_cents=0, expires_at=_expiry())
            for pos, (product_id, qty) in enumerate(lines):
                p = db.get(Product, product_id)
                cart.items.append(
                    CartItem(
                        product_id=p.id,
                        position=pos,
                        name=p.name,
                        price_cents=p.price_cents,
                        image=p.first_image,
                        quantity=qty,
                        subtotal_cents=p.price_cents * qty,
                    )
                )
            cart.total_cents = sum(it.subtotal_cents for it in cart.items)
            db.add(cart)
            db.commit()
            return cart.id
        finally:
            db.close()

    return _make


@pytest.fixture
def stock_of():
    def _stock(product_id):
        db = SessionLocal()
        try:
            return db.get(Product, product_id).stock
        finally:
            db.close()

    return _stock


@pytest.fixture
def customer():
    return {
        "name": "Ana Gomez",
        "email": "Ana@Example.com",
        "phone": "+57 300 000 0000",
        "address": {
            "street": "Calle 10 # 5-20",
            "city": "Medellin",
            "state": "Antioquia",
            "zipCode": "050001",
            "country": "Colombia",
        },
    }
