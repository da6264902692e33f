from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from rmerch.api.responses import ok
from rmerch.api.routes_order import render_order
from rmerch.db import get_db
from rmerch.schemas.base import dump
from rmerch.schemas.cart_schema import (
    CartCalculateIn,
    CartCheckoutIn,
    CartItemIn,
    CartItemUpdate,
    CartOut,
)
from rmerch.schemas.order_schema import customer_dict, shipping_dict
from rmerch.services.cart_service import CartService
from rmerch.services.checkout_service import CheckoutService

router = APIRouter(prefix="/cart", tags=["cart"])


def _cart(cart) -> dict:
    return dump(CartOut.model_validate(cart))


@router.get("", summary="Get cart")
def get_cart(user_id: Optional[str] = Query(None, alias="userId"), db: Session = Depends(get_db)):
    return ok(_cart(CartService(db).get_cart(user_id)))


@router.post("", summary="Add product to cart")
def add_item(payload: CartItemIn, db: Session = Depends(get_db)):
    cart = CartService(db).add_item(payload.user_id, payload.product_id, payload.quantity)
    return ok(_cart(cart), message="Product added to cart")


@router.put("", summary="Set quantity of a cart line (0 removes it)")
def update_item(payload: CartItemUpdate, db: Session = Depends(get_db)):
    cart = CartService(db).update_item(payload.user_id, payload.product_id, payload.quantity)
    return ok(_cart(cart), message="Cart updated")


@router.delete("", summary="Remove a product, or clear the cart")
def remove_item(
    user_id: Optional[str] = Query(None, alias="userId"),
    product_id: Optional[int] = Query(None, alias="productId"),
    db: Session = Depends(get_db),
):
    cart = CartService(db).remove_item(user_id, product_id)
    msg = "Cart cleared" if product_id is None else "Product removed from cart"
    return ok(_cart(cart), message=msg)


@router.post("/calculate", summary="Price preview for the cart")
def calculate(payload: CartCalculateIn, db: Session = Depends(get_db)):
    cart, breakdown = CartService(db).calculate(
        payload.user_id,
        shipping_cents=payload.shipping_cost_cents,
        discount_cents=payload.discount_cents,
        coupon_code=payload.coupon_code,
    )
    data = breakdown.as_dict()
    cart_data = _cart(cart)
    data["userId"] = cart_data["userId"]
    data["items"] = cart_data["items"]
    # number of distinct lines, not units
    data["itemCount"] = len(cart.items)
    data["couponCode"] = payload.coupon_code
    return ok(data)


@router.post("/checkout", summary="Turn the cart into an order")
def checkout(payload: CartCheckoutIn, db: Session = Depends(get_db)):
    order = CheckoutService(db).checkout(
        payload.user_id,
        customer_dict(payload.customer),
        payload.payment_method,
        notes=payload.notes,
        shipping_info=shipping_dict(payload.shipping_info),
    )
    return ok(render_order(db, order), message="Order created", status_code=201)
