from datetime import datetime
from typing import Dict, List, Optional

from rmerch.models.order import Order
from rmerch.models.product import Product
from rmerch.schemas.base import CamelModel, dump


class AddressIn(CamelModel):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None


class CustomerIn(CamelModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[AddressIn] = None


class ShippingInfoIn(CamelModel):
    carrier: Optional[str] = None
    tracking_number: Optional[str] = None
    estimated_delivery: Optional[datetime] = None
    shipping_cost_cents: Optional[int] = None


class OrderItemIn(CamelModel):
    product_id: Optional[int] = None
    quantity: Optional[int] = None


class OrderCreate(CamelModel):
    user_id: Optional[str] = None
    items: List[OrderItemIn] = []
    customer: Optional[CustomerIn] = None
    payment_method: Optional[str] = None
    notes: Optional[str] = None
    shipping_info: Optional[ShippingInfoIn] = None


class OrderUpdate(CamelModel):
    status: Optional[str] = None
    payment_status: Optional[str] = None
    notes: Optional[str] = None
    admin_notes: Optional[str] = None
    shipping_info: Optional[ShippingInfoIn] = None
    updated_by: Optional[str] = None


class ProductRef(CamelModel):
    id: int
    name: str
    images: List[str] = []
    description: Optional[str] = None


class OrderLineOut(CamelModel):
    product_id: int
    product: Optional[ProductRef] = None
    name: str
    price_cents: int
    quantity: int
    subtotal_cents: int
    image: Optional[str] = ""
    owner_id: Optional[str] = None
    is_official: bool = False


class StatusEntryOut(CamelModel):
    status: str
    date: datetime
    updated_by: Optional[str] = None
    notes: Optional[str] = None


class OrderOut(CamelModel):
    id: int
    order_number: str
    user_id: Optional[str] = None
    customer: Dict
    items: List[OrderLineOut]
    total_cents: int
    status: str
    payment_method: str
    payment_status: str
    shipping_info: Optional[Dict] = None
    notes: Optional[str] = None
    admin_notes: Optional[str] = None
    status_history: List[StatusEntryOut] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


def customer_dict(customer: Optional[CustomerIn]) -> Dict:
    """Service-side customer mapping (snake_case keys) from the request model."""
    if customer is None:
        return {}
    data = customer.model_dump(exclude_none=True)
    data["address"] = (customer.address.model_dump(exclude_none=True)
                       if customer.address else {})
    return data


def shipping_dict(info: Optional[ShippingInfoIn]) -> Dict:
    if info is None:
        return {}
    return info.model_dump(mode="json", exclude_none=True)


def serialize_order(order: Order, products: Dict[int, Product]) -> dict:
    """Order as camelCase JSON, each line's product resolved (None once deleted)."""
    items = []
    for line in order.lines:
        p = products.get(line.product_id)
        out = OrderLineOut.model_validate(line)
        out.product = ProductRef.model_validate(p) if p else None
        items.append(out)
    data = OrderOut(
        id=order.id,
        order_number=order.order_number,
        user_id=order.user_id,
        customer=order.customer or {},
        items=items,
        total_cents=order.total_cents,
        status=order.status,
        payment_method=order.payment_method,
        payment_status=order.payment_status,
        shipping_info=order.shipping_info or {},
        notes=order.notes,
        admin_notes=order.admin_notes,
        status_history=[StatusEntryOut.model_validate(e) for e in order.status_history],
        created_at=order.created_at,
        updated_at=order.updated_at,
    )
    return dump(data)
