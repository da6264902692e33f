from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from rmerch.api.responses import ok, pagination
from rmerch.db import get_db
from rmerch.errors import ValidationError
from rmerch.models.order import Order
from rmerch.repositories.product_repo import ProductRepository
from rmerch.schemas.order_schema import (
    OrderCreate,
    OrderUpdate,
    customer_dict,
    serialize_order,
    shipping_dict,
)
from rmerch.services.checkout_service import CheckoutService
from rmerch.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


def render_order(db: Session, order: Order) -> dict:
    products = ProductRepository(db).get_many(line.product_id for line in order.lines)
    return serialize_order(order, products)


@router.get("", summary="List orders")
def list_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=200),
    status: Optional[str] = Query(None),
    user_id: Optional[str] = Query(None, alias="userId"),
    db: Session = Depends(get_db),
):
    orders, total = OrderService(db).list_orders(
        page=page, size=limit, status=status, user_id=user_id
    )
    return ok(
        [render_order(db, o) for o in orders], pagination=pagination(total, page, limit)
    )


@router.post("", summary="Create order from an explicit item list")
def create_order(payload: OrderCreate, db: Session = Depends(get_db)):
    if not payload.items:
        raise ValidationError("The order must include at least one product")
    customer = customer_dict(payload.customer)
    user_id = payload.user_id
    if not user_id and customer.get("email"):
        # same normalization the order's customer email gets
        user_id = customer["email"].strip().lower()
    order = CheckoutService(db).checkout(
        user_id,
        customer,
        payload.payment_method,
        notes=payload.notes,
        shipping_info=shipping_dict(payload.shipping_info),
        items=[it.model_dump() for it in payload.items],
    )
    return ok(render_order(db, order), message="Order created", status_code=201)


@router.get("/{order_id}", summary="Get order")
def get_order(order_id: int, db: Session = Depends(get_db)):
    order = OrderService(db).get_order(order_id)
    return ok(render_order(db, order))


@router.patch("/{order_id}", summary="Update order status, payment and shipping")
def update_order(order_id: int, payload: OrderUpdate, db: Session = Depends(get_db)):
    order = OrderService(db).update_order(
        order_id,
        status=payload.status,
        payment_status=payload.payment_status,
        notes=payload.notes,
        admin_notes=payload.admin_notes,
        shipping_info=shipping_dict(payload.shipping_info),
        updated_by=payload.updated_by,
    )
    return ok(render_order(db, order), message="Order updated")


@router.delete("/{order_id}", summary="Delete order")
def delete_order(order_id: int, db: Session = Depends(get_db)):
    OrderService(db).delete_order(order_id)
    return ok(message="Order deleted")
