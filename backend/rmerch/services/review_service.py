import math
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rmerch.errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from rmerch.models.review import Review
from rmerch.repositories.order_repo import OrderRepository
from rmerch.repositories.product_repo import ProductRepository
from rmerch.repositories.review_repo import ReviewRepository
from rmerch.utils.logging import get_logger
from rmerch.utils.transactions import smart_transaction

log = get_logger("rmerch.reviews")


def round_rating(value: float) -> float:
    """One decimal, halves rounded up (4.25 -> 4.3)."""
    return math.floor(value * 10 + 0.5) / 10


def _check_rating(rating):
    if not isinstance(rating, int) or isinstance(rating, bool) or not 1 <= rating <= 5:
        raise ValidationError("Rating must be between 1 and 5")


class ReviewService:
    """Verified-purchase reviews; every write refreshes the product's rating summary."""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ReviewRepository(db)
        self.products = ProductRepository(db)
        self.orders = OrderRepository(db)

    def list_reviews(
        self,
        page: int = 1,
        size: int = 10,
        product_id: Optional[int] = None,
        user_id: Optional[str] = None,
    ) -> Tuple[List[Review], int]:
        return self.repo.list(page=page, size=size, product_id=product_id, user_id=user_id)

    def get_review(self, review_id: int) -> Review:
        review = self.repo.get(review_id)
        if not review:
            raise NotFoundError("Review not found")
        return review

    def create_review(
        self, user_id: str, product_id: int, order_id: int, rating: int, comment: str
    ) -> Review:
        if not all([rating, comment, user_id, product_id, order_id]):
            raise ValidationError("All fields are required")
        _check_rating(rating)

        try:
            with smart_transaction(self.db):
                order = self.orders.get(order_id)
                if not order:
                    raise NotFoundError("Order not found")
                if order.user_id != user_id:
                    raise PermissionDeniedError("You cannot review products from another order")
                if not any(line.product_id == product_id for line in order.lines):
                    raise PermissionDeniedError("You have not purchased this product")
                if self.repo.find(user_id, product_id):
                    raise ConflictError("You have already reviewed this product")
                product = self.products.get(product_id)
                if not product:
                    raise NotFoundError("Product not found")

                review = self.repo.add(
                    Review(
                        rating=rating,
                        comment=comment,
                        user_id=user_id,
                        product_id=product_id,
                        order_id=order_id,
                        owner_id=product.owner_id,
                        is_verified_purchase=True,
                    )
                )
                self._refresh_rating(product_id)
            if self.db.in_transaction():
                self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError("You have already reviewed this product") from e
        log.info("review %s on product %s by %s", review.id, product_id, user_id)
        return review

    def update_review(
        self,
        review_id: int,
        user_id: Optional[str],
        rating: Optional[int] = None,
        comment: Optional[str] = None,
    ) -> Review:
        if rating is not None:
            _check_rating(rating)
        with smart_transaction(self.db):
            review = self.get_review(review_id)
            if review.user_id != user_id:
                raise PermissionDeniedError("You cannot edit this review")
            if rating is not None:
                review.rating = rating
            if comment:
                review.comment = comment
            self.db.flush()
            self._refresh_rating(review.product_id)
        if self.db.in_transaction():
            self.db.commit()
        return review

    def delete_review(self, review_id: int, user_id: Optional[str]):
        with smart_transaction(self.db):
            review = self.get_review(review_id)
            if review.user_id != user_id:
                raise PermissionDeniedError("You cannot delete this review")
            product_id = review.product_id
            self.repo.delete(review)
            self._refresh_rating(product_id)
        if self.db.in_transaction():
            self.db.commit()

    def _refresh_rating(self, product_id: int):
        average, count = self.repo.rating_stats(product_id)
        self.products.set_rating(product_id, round_rating(average), count)
