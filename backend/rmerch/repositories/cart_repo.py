from datetime import datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy import delete
from sqlalchemy.orm import Session

from rmerch.config import settings
from rmerch.models.cart import Cart
from rmerch.models.cart_item import CartItem


def _expiry() -> datetime:
    return datetime.now(timezone.utc) + timedelta(days=settings.CART_TTL_DAYS)


class CartRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_user(self, user_id: str, for_update: bool = False) -> Optional[Cart]:
        qry = self.db.query(Cart).filter(Cart.user_id == user_id)
        if for_update:
            qry = qry.with_for_update().populate_existing()
        return qry.first()

    def get_or_create(self, user_id: str, for_update: bool = False) -> Cart:
        c = self.get_by_user(user_id, for_update=for_update)
        if c:
            return c
        c = Cart(user_id=user_id, total_cents=0, expires_at=_expiry())
        self.db.add(c)
        self.db.flush()
        return c

    def add_item(self, cart: Cart, item: CartItem) -> CartItem:
        item.position = max((it.position for it in cart.items), default=-1) + 1
        cart.items.append(item)
        return item

    def remove_item(self, cart: Cart, item: CartItem):
        cart.items.remove(item)

    def replace_items(self, cart: Cart, items: List[CartItem]):
        cart.items = []
        for pos, it in enumerate(items):
            it.position = pos
            cart.items.append(it)

    def save(self, cart: Cart) -> Cart:
        """Recompute the cached total, push the expiry out and flush."""
        cart.total_cents = sum(it.subtotal_cents for it in cart.items)
        cart.expires_at = _expiry()
        self.db.flush()
        return cart

    def purge_expired(self, now: Optional[datetime] = None) -> int:
        now = now or datetime.now(timezone.utc)
        expired_ids = [
            cid for (cid,) in self.db.query(Cart.id).filter(Cart.expires_at <= now).all()
        ]
        if not expired_ids:
            return 0
        self.db.execute(delete(CartItem).where(CartItem.cart_id.in_(expired_ids)))
        self.db.execute(delete(Cart).where(Cart.id.in_(expired_ids)))
        return len(expired_ids)
