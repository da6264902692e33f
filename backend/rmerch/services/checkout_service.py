from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from rmerch.errors import (
    ConflictError,
    InsufficientStockError,
    NotFoundError,
    ProductNotFoundError,
    ShopError,
    TransactionError,
    ValidationError,
)
from rmerch.models.order import (
    Order,
    OrderLine,
    OrderStatus,
    OrderStatusEntry,
    PaymentMethod,
    PaymentStatus,
)
from rmerch.repositories.cart_repo import CartRepository
from rmerch.repositories.order_repo import OrderRepository
from rmerch.repositories.product_repo import ProductRepository
from rmerch.services.order_numbering import next_order_number
from rmerch.services.pricing import DEFAULT_COUPONS, CouponEffect, calculate_total
from rmerch.utils.logging import get_logger
from rmerch.utils.transactions import smart_transaction

log = get_logger("rmerch.checkout")

PAYMENT_METHODS = {m.value for m in PaymentMethod}


def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_customer(customer: Optional[Mapping]):
    if not customer or any(_blank(customer.get(f)) for f in ("name", "email", "phone")):
        raise ValidationError("Missing customer data: name, email and phone are required")
    address = customer.get("address") or {}
    if any(_blank(address.get(f)) for f in ("street", "city", "country")):
        raise ValidationError("A complete shipping address is required (street, city, country)")


def validate_payment_method(payment_method: Optional[str]):
    if _blank(payment_method):
        raise ValidationError("A payment method must be specified")
    if payment_method not in PAYMENT_METHODS:
        raise ValidationError(
            f"Invalid payment method. Allowed values: {', '.join(sorted(PAYMENT_METHODS))}"
        )


def validate_items(items: List[Mapping]):
    if not items:
        raise ValidationError("The order must include at least one product")
    for it in items:
        qty = it.get("quantity")
        if it.get("product_id") is None or not isinstance(qty, int) or qty <= 0:
            raise ValidationError("Each product needs a productId and a valid quantity")


class CheckoutService:
    """
    Turns a cart or an explicit item list into an order.

    Stock decrements, the order counter, the order row and the cart clear all
    happen in one transaction on `db`; any failure rolls every one of them back.
    """

    def __init__(self, db: Session, coupons: Mapping[str, CouponEffect] = DEFAULT_COUPONS):
        self.db = db
        self.coupons = coupons
        self.products = ProductRepository(db)
        self.carts = CartRepository(db)
        self.orders = OrderRepository(db)

    def checkout(
        self,
        user_id: Optional[str],
        customer: Mapping,
        payment_method: str,
        notes: Optional[str] = None,
        shipping_info: Optional[Mapping] = None,
        items: Optional[List[Mapping]] = None,
    ) -> Order:
        """
        items=None checks out everything in `user_id`'s cart and empties it;
        otherwise items is a list of {product_id, quantity}.
        """
        from_cart = items is None
        if from_cart and _blank(user_id):
            raise ValidationError("userId is required")
        if not from_cart:
            validate_items(items)
        validate_customer(customer)
        validate_payment_method(payment_method)
        shipping_info = dict(shipping_info or {})
        shipping_cost = shipping_info.get("shipping_cost_cents") or 0
        if shipping_cost < 0:
            raise ValidationError("Shipping cost cannot be negative")

        log.info(
            "checkout start user=%s source=%s", user_id, "cart" if from_cart else "items"
        )
        try:
            with smart_transaction(self.db):
                cart = None
                if from_cart:
                    cart = self.carts.get_by_user(user_id, for_update=True)
                    if not cart:
                        raise NotFoundError("Cart not found")
                    if not cart.items:
                        raise ValidationError("The cart is empty")
                    items = [
                        {"product_id": it.product_id, "quantity": it.quantity}
                        for it in cart.items
                    ]

                lines = self._take_stock(items)
                pricing = calculate_total(
                    lines, shipping_cents=shipping_cost, coupons=self.coupons
                )
                order = Order(
                    order_number=next_order_number(self.orders),
                    user_id=user_id,
                    customer=_normalize_customer(customer),
                    total_cents=pricing.total_cents,
                    status=OrderStatus.PENDING.value,
                    payment_method=payment_method,
                    payment_status=PaymentStatus.PENDING.value,
                    shipping_info=shipping_info,
                    notes=notes,
                    lines=lines,
                    status_history=[
                        OrderStatusEntry(
                            status=OrderStatus.PENDING.value,
                            date=datetime.now(timezone.utc),
                            updated_by="system",
                            notes="Order created",
                        )
                    ],
                )
                self.orders.insert(order)

                if cart is not None:
                    self.carts.replace_items(cart, [])
                    self.carts.save(cart)
            if self.db.in_transaction():
                # an outer transaction was already open; the savepoint alone doesn't persist
                self.db.commit()
        except ShopError as e:
            log.info("checkout rejected user=%s: %s", user_id, e.message)
            raise
        except IntegrityError as e:
            self.db.rollback()
            log.warning("checkout conflict user=%s: %s", user_id, e)
            raise ConflictError(
                "Order number already taken, please retry", detail=str(e.orig)
            ) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            log.exception("checkout transaction failed user=%s", user_id)
            raise TransactionError("Could not complete the checkout", detail=str(e)) from e

        log.info(
            "checkout ok order=%s total_cents=%s lines=%s",
            order.order_number,
            order.total_cents,
            len(order.lines),
        )
        return order

    def _take_stock(self, items: List[Mapping]) -> List[OrderLine]:
        lines = []
        for pos, it in enumerate(items):
            product_id, qty = it["product_id"], it["quantity"]
            product = self.products.get(product_id, for_update=True)
            if not product:
                raise ProductNotFoundError(product_id)
            if product.stock < qty:
                raise InsufficientStockError(product.name, qty, product.stock)

            lines.append(
                OrderLine(
                    position=pos,
                    product_id=product.id,
                    name=product.name,
                    price_cents=product.price_cents,
                    quantity=qty,
                    subtotal_cents=product.price_cents * qty,
                    image=product.first_image,
                    owner_id=product.owner_id,
                    is_official=bool(product.is_official),
                )
            )

            if not self.products.decrement_stock(product.id, qty):
                # lost a race between the read and the guarded update
                self.db.refresh(product)
                raise InsufficientStockError(product.name, qty, product.stock)
        return lines


def _normalize_customer(customer: Mapping) -> Dict:
    data = dict(customer)
    data["email"] = data["email"].strip().lower()
    data["address"] = dict(data.get("address") or {})
    return data
