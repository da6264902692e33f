from sqlalchemy import Column, ForeignKey, Integer, String

from rmerch.db import Base
from sqlalchemy.orm import relationship


class CartItem(Base):
    __tablename__ = "cart_items"
    id = Column(Integer, primary_key=True, index=True)
    cart_id = Column(
        Integer, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id = Column(Integer, nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    # denormalized from the product at the last write
    name = Column(String(256), nullable=False)
    price_cents = Column(Integer, nullable=False, default=0)
    image = Column(String(512), nullable=False, default="")
    quantity = Column(Integer, nullable=False, default=1)
    subtotal_cents = Column(Integer, nullable=False, default=0)

    cart = relationship("Cart", back_populates="items")
