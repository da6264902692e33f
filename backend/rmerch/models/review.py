from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Integer,
    String,
    Text,
    UniqueConstraint,
)

from rmerch.db import Base


class Review(Base):
    __tablename__ = "reviews"
    # one review per user and product
    __table_args__ = (UniqueConstraint("user_id", "product_id", name="uq_review_user_product"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=False)
    user_id = Column(String(255), nullable=False, index=True)
    product_id = Column(Integer, nullable=False, index=True)
    order_id = Column(Integer, nullable=False)
    owner_id = Column(String(128), nullable=True)
    is_verified_purchase = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
