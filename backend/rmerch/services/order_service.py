from typing import Dict, List, Mapping, Optional, Tuple

from sqlalchemy.orm import Session

from rmerch.errors import NotFoundError, ValidationError
from rmerch.models.order import Order, OrderStatus, PaymentStatus
from rmerch.repositories.order_repo import OrderRepository
from rmerch.utils.logging import get_logger
from rmerch.utils.transactions import smart_transaction

log = get_logger("rmerch.orders")

ORDER_STATUSES = [s.value for s in OrderStatus]
PAYMENT_STATUSES = [s.value for s in PaymentStatus]


class OrderService:
    """Read and administer orders after checkout has created them."""

    def __init__(self, db: Session):
        self.db = db
        self.repo = OrderRepository(db)

    def list_orders(
        self,
        page: int = 1,
        size: int = 10,
        status: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> Tuple[List[Order], int]:
        if status and status not in ORDER_STATUSES:
            raise ValidationError(
                f"Invalid status. Allowed values: {', '.join(ORDER_STATUSES)}"
            )
        return self.repo.list(page=page, size=size, status=status, user_id=user_id)

    def get_order(self, order_id: int) -> Order:
        order = self.repo.get(order_id)
        if not order:
            raise NotFoundError("Order not found")
        return order

    def update_order(
        self,
        order_id: int,
        status: Optional[str] = None,
        payment_status: Optional[str] = None,
        notes: Optional[str] = None,
        admin_notes: Optional[str] = None,
        shipping_info: Optional[Mapping] = None,
        updated_by: Optional[str] = None,
    ) -> Order:
        """
        Admin update. A status change is appended to the history; shipping
        info is merged key by key into what the order already has.
        """
        if status is not None and status not in ORDER_STATUSES:
            raise ValidationError(
                f"Invalid status. Allowed values: {', '.join(ORDER_STATUSES)}"
            )
        if payment_status is not None and payment_status not in PAYMENT_STATUSES:
            raise ValidationError(
                f"Invalid payment status. Allowed values: {', '.join(PAYMENT_STATUSES)}"
            )

        with smart_transaction(self.db):
            order = self.get_order(order_id)
            if status is not None and status != order.status:
                previous = order.status
                self.repo.update_status(
                    order,
                    status,
                    updated_by=updated_by or "admin",
                    notes=f"Status changed from {previous} to {status}",
                )
                log.info("order %s: %s -> %s", order.order_number, previous, status)
            if payment_status is not None:
                order.payment_status = payment_status
            if notes is not None:
                order.notes = notes
            if admin_notes is not None:
                order.admin_notes = admin_notes
            if shipping_info:
                merged: Dict = dict(order.shipping_info or {})
                merged.update({k: v for k, v in shipping_info.items() if v is not None})
                # JSON column: assign a new object so the change is tracked
                order.shipping_info = merged
            self.db.flush()
        if self.db.in_transaction():
            self.db.commit()
        return order

    def delete_order(self, order_id: int):
        with smart_transaction(self.db):
            order = self.get_order(order_id)
            self.repo.delete(order)
        if self.db.in_transaction():
            self.db.commit()
        log.info("order %s deleted", order_id)
