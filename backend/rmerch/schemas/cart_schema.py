from datetime import datetime
from typing import List, Optional

from rmerch.schemas.base import CamelModel
from rmerch.schemas.order_schema import CustomerIn, ShippingInfoIn


class CartItemOut(CamelModel):
    product_id: int
    name: Optional[str] = None
    price_cents: int
    image: Optional[str] = ""
    quantity: int
    subtotal_cents: int


class CartOut(CamelModel):
    id: int
    user_id: str
    items: List[CartItemOut] = []
    total_cents: int
    expires_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CartItemIn(CamelModel):
    user_id: str
    product_id: int
    quantity: int = 1


class CartItemUpdate(CamelModel):
    user_id: str
    product_id: int
    quantity: int


class CartCalculateIn(CamelModel):
    user_id: str
    shipping_cost_cents: int = 0
    discount_cents: int = 0
    coupon_code: Optional[str] = None


class CartCheckoutIn(CamelModel):
    user_id: str
    customer: CustomerIn
    payment_method: str
    notes: Optional[str] = None
    shipping_info: Optional[ShippingInfoIn] = None
