from datetime import datetime
from typing import Optional

from rmerch.schemas.base import CamelModel


class ReviewOut(CamelModel):
    id: int
    rating: int
    comment: str
    user_id: str
    product_id: int
    order_id: int
    owner_id: Optional[str] = None
    is_verified_purchase: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ReviewCreate(CamelModel):
    rating: Optional[int] = None
    comment: Optional[str] = None
    user_id: Optional[str] = None
    product_id: Optional[int] = None
    order_id: Optional[int] = None


class ReviewUpdate(CamelModel):
    user_id: Optional[str] = None
    rating: Optional[int] = None
    comment: Optional[str] = None
