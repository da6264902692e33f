from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from rmerch.models.order import Order, OrderCounter, OrderStatusEntry

ORDER_COUNTER = "orders"


class OrderRepository:
    def __init__(self, db: Session):
        self.db = db

    def count(self) -> int:
        return self.db.query(func.count(Order.id)).scalar() or 0

    def next_sequence(self) -> int:
        """
        Bump the order counter and return the new value.

        The UPDATE takes the row lock, so two open checkouts can never read
        the same value; the lock is held until the surrounding transaction ends.
        A missing counter row is seeded from the number of existing orders.
        """
        result = self.db.execute(
            update(OrderCounter)
            .where(OrderCounter.name == ORDER_COUNTER)
            .values(value=OrderCounter.value + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            self.db.add(OrderCounter(name=ORDER_COUNTER, value=self.count() + 1))
            self.db.flush()
        return self.db.execute(
            select(OrderCounter.value).where(OrderCounter.name == ORDER_COUNTER)
        ).scalar_one()

    def insert(self, order: Order) -> Order:
        self.db.add(order)
        self.db.flush()
        return order

    def get(self, order_id: int) -> Optional[Order]:
        return self.db.get(Order, order_id)

    def list(
        self,
        page: int = 1,
        size: int = 10,
        status: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> Tuple[List[Order], int]:
        query = self.db.query(Order)
        if status:
            query = query.filter(Order.status == status)
        if user_id:
            query = query.filter(Order.user_id == user_id)
        total = query.count()
        items = (
            query.order_by(Order.created_at.desc(), Order.id.desc())
            .offset((page - 1) * size)
            .limit(size)
            .all()
        )
        return items, total

    def update_status(
        self,
        order: Order,
        status: str,
        updated_by: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Order:
        """Set the delivery status and append the change to the history."""
        order.status = status
        order.status_history.append(
            OrderStatusEntry(
                status=status,
                date=datetime.now(timezone.utc),
                updated_by=updated_by,
                notes=notes,
            )
        )
        self.db.flush()
        return order

    def delete(self, order: Order):
        self.db.delete(order)
        self.db.flush()
