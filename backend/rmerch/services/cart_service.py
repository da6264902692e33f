from typing import Optional

from sqlalchemy.orm import Session

from rmerch.errors import InsufficientStockError, NotFoundError, ValidationError
from rmerch.models.cart import Cart
from rmerch.models.cart_item import CartItem
from rmerch.repositories.cart_repo import CartRepository
from rmerch.repositories.product_repo import ProductRepository
from rmerch.services.pricing import DEFAULT_COUPONS, PriceBreakdown, calculate_total
from rmerch.utils.logging import get_logger
from rmerch.utils.transactions import smart_transaction

log = get_logger("rmerch.cart")


class CartService:
    def __init__(self, db: Session, coupons=DEFAULT_COUPONS):
        self.db = db
        self.cart_repo = CartRepository(db)
        self.product_repo = ProductRepository(db)
        self.coupons = coupons

    def _require_user(self, user_id: Optional[str]):
        if not user_id or not user_id.strip():
            raise ValidationError("userId is required")

    def _require_cart(self, user_id: str) -> Cart:
        # row lock: writes must not interleave with a checkout clearing the cart
        cart = self.cart_repo.get_by_user(user_id, for_update=True)
        if not cart:
            raise NotFoundError("Cart not found")
        return cart

    def get_cart(self, user_id: str) -> Cart:
        self._require_user(user_id)
        cart = self.cart_repo.get_or_create(user_id)
        total = sum(it.subtotal_cents for it in cart.items)
        if cart.total_cents != total:
            cart.total_cents = total
        self.db.commit()
        return cart

    def add_item(self, user_id: str, product_id: int, qty: int = 1) -> Cart:
        self._require_user(user_id)
        if product_id is None:
            raise ValidationError("productId is required")
        if qty <= 0:
            raise ValidationError("Quantity must be greater than 0")
        with smart_transaction(self.db):
            product = self.product_repo.get(product_id)
            if not product:
                raise NotFoundError("Product not found")
            if product.stock < qty:
                raise InsufficientStockError(product.name, qty, product.stock)

            cart = self.cart_repo.get_or_create(user_id, for_update=True)
            item = next((it for it in cart.items if it.product_id == product.id), None)
            if item:
                new_qty = item.quantity + qty
                if product.stock < new_qty:
                    raise InsufficientStockError(product.name, new_qty, product.stock)
                item.quantity = new_qty
            else:
                item = self.cart_repo.add_item(
                    cart, CartItem(product_id=product.id, quantity=qty)
                )
            # price and display fields always come fresh from the catalog on write
            item.name = product.name
            item.price_cents = product.price_cents
            item.image = product.first_image
            item.subtotal_cents = product.price_cents * item.quantity
            self.cart_repo.save(cart)
        self._commit_outer()
        return cart

    def update_item(self, user_id: str, product_id: int, qty: int) -> Cart:
        if not user_id or product_id is None:
            raise ValidationError("userId and productId are required")
        if qty is None or qty < 0:
            raise ValidationError("Quantity cannot be negative")
        with smart_transaction(self.db):
            cart = self._require_cart(user_id)
            item = next((it for it in cart.items if it.product_id == product_id), None)
            if not item:
                raise NotFoundError("Product not found in cart")
            if qty == 0:
                self.cart_repo.remove_item(cart, item)
            else:
                product = self.product_repo.get(product_id)
                if not product:
                    raise NotFoundError("Product not found")
                if product.stock < qty:
                    raise InsufficientStockError(product.name, qty, product.stock)
                item.quantity = qty
                item.name = product.name
                item.price_cents = product.price_cents
                item.image = product.first_image
                item.subtotal_cents = product.price_cents * qty
            self.cart_repo.save(cart)
        self._commit_outer()
        return cart

    def remove_item(self, user_id: str, product_id: Optional[int] = None) -> Cart:
        """Remove one product from the cart, or empty it when product_id is None."""
        self._require_user(user_id)
        with smart_transaction(self.db):
            cart = self._require_cart(user_id)
            if product_id is None:
                self.cart_repo.replace_items(cart, [])
            else:
                item = next((it for it in cart.items if it.product_id == product_id), None)
                if not item:
                    raise NotFoundError("Product not found in cart")
                self.cart_repo.remove_item(cart, item)
            self.cart_repo.save(cart)
        self._commit_outer()
        return cart

    def calculate(
        self,
        user_id: str,
        shipping_cents: int = 0,
        discount_cents: int = 0,
        coupon_code: Optional[str] = None,
    ):
        """Price preview for the cart; nothing is written."""
        self._require_user(user_id)
        cart = self.cart_repo.get_by_user(user_id)
        if not cart or not cart.items:
            raise NotFoundError("The cart is empty")
        breakdown: PriceBreakdown = calculate_total(
            cart.items,
            shipping_cents=shipping_cents,
            discount_cents=discount_cents,
            coupon_code=coupon_code,
            coupons=self.coupons,
        )
        return cart, breakdown

    def purge_expired(self) -> int:
        with smart_transaction(self.db):
            n = self.cart_repo.purge_expired()
        self._commit_outer()
        if n:
            log.info("purged %s expired carts", n)
        return n

    def _commit_outer(self):
        if self.db.in_transaction():
            self.db.commit()
