"""
Human-readable order numbers: ``ORD-YYYYMMDD-NNNN``.

The sequence is the running count of all orders ever created, not a per-day
counter. It is taken from the store-side counter inside the same transaction
as the order insert, and ``orders.order_number`` is unique, so two checkouts
can't end up with the same number.
"""
from datetime import date, datetime, timezone
from typing import Optional

from rmerch.repositories.order_repo import OrderRepository

PREFIX = "ORD"


def format_order_number(day: date, sequence: int) -> str:
    return f"{PREFIX}-{day:%Y%m%d}-{sequence:04d}"


def next_order_number(orders: OrderRepository, now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return format_order_number(now.date(), orders.next_sequence())
