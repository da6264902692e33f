from datetime import datetime
from typing import List, Optional

from pydantic import ConfigDict, Field

from rmerch.schemas.base import CamelModel


class ProductOut(CamelModel):
    id: int
    name: str
    description: Optional[str] = None
    price_cents: int
    stock: int
    images: List[str] = []
    owner_id: Optional[str] = None
    owner_name: Optional[str] = None
    is_official: bool = False
    average_rating: float = 0
    total_reviews: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProductCreate(CamelModel):
    # types are checked by the service so the error messages stay uniform
    name: Optional[str] = None
    description: Optional[str] = None
    price_cents: Optional[int] = None
    stock: Optional[int] = None
    images: Optional[List[str]] = None
    owner_id: Optional[str] = None
    owner_name: Optional[str] = None
    is_official: bool = False


class ProductUpdate(CamelModel):
    """Unknown keys are kept so they can be rejected by name."""

    model_config = ConfigDict(extra="allow")

    name: Optional[str] = None
    description: Optional[str] = None
    price_cents: Optional[int] = Field(default=None)
    stock: Optional[int] = None
    images: Optional[List[str]] = None
