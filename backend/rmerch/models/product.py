from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, Column, DateTime, Float, Integer, String, Text

from rmerch.db import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(256), nullable=False)
    description = Column(Text, nullable=True)
    price_cents = Column(Integer, nullable=False, default=0)
    stock = Column(Integer, default=0, nullable=False)
    images = Column(JSON, nullable=False, default=list)
    owner_id = Column(String(128), nullable=True, index=True)  # null for official products
    owner_name = Column(String(256), nullable=True)
    is_official = Column(Boolean, default=False, nullable=False)
    average_rating = Column(Float, default=0, nullable=False)
    total_reviews = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    @property
    def first_image(self) -> str:
        return self.images[0] if self.images else ""

    def __repr__(self):
        return f"<Product id={self.id} name={self.name}>"
