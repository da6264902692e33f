import enum
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from rmerch.db import Base


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    REJECTED = "rejected"
    REFUNDED = "refunded"


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    CARD = "card"
    BANK_TRANSFER = "bank-transfer"
    PAYPAL = "paypal"
    MERCADO_PAGO = "mercado-pago"


class Order(Base):
    __tablename__ = "orders"
    id = Column(Integer, primary_key=True, autoincrement=True)
    order_number = Column(String(32), unique=True, nullable=False, index=True)
    user_id = Column(String(255), nullable=True, index=True)
    # {name, email, phone, address: {street, city, state, zip_code, country}}
    customer = Column(JSON, nullable=False)
    total_cents = Column(Integer, nullable=False, default=0)
    status = Column(String(32), nullable=False, default=OrderStatus.PENDING.value, index=True)
    payment_method = Column(String(32), nullable=False)
    payment_status = Column(String(32), nullable=False, default=PaymentStatus.PENDING.value)
    # {carrier, tracking_number, estimated_delivery, shipping_cost_cents}
    shipping_info = Column(JSON, nullable=False, default=dict)
    notes = Column(Text, nullable=True)
    admin_notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    lines = relationship(
        "OrderLine",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderLine.position",
    )
    status_history = relationship(
        "OrderStatusEntry",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderStatusEntry.id",
    )


class OrderLine(Base):
    __tablename__ = "order_lines"
    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    # plain column, not a FK: the line outlives the product
    product_id = Column(Integer, nullable=False, index=True)
    name = Column(String(256), nullable=False)
    price_cents = Column(Integer, nullable=False)
    quantity = Column(Integer, nullable=False)
    subtotal_cents = Column(Integer, nullable=False)
    image = Column(String(512), nullable=False, default="")
    owner_id = Column(String(128), nullable=True)
    is_official = Column(Boolean, nullable=False, default=False)

    order = relationship("Order", back_populates="lines")


class OrderStatusEntry(Base):
    __tablename__ = "order_status_history"
    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(32), nullable=False)
    date = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_by = Column(String(128), nullable=True)
    notes = Column(Text, nullable=True)

    order = relationship("Order", back_populates="status_history")


class OrderCounter(Base):
    """Store-side sequence used for order numbers; bumped inside the checkout transaction."""

    __tablename__ = "order_counters"
    name = Column(String(32), primary_key=True)
    value = Column(Integer, nullable=False, default=0)
