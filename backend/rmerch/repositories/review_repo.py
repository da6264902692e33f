from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from rmerch.models.review import Review


class ReviewRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, review_id: int) -> Optional[Review]:
        return self.db.get(Review, review_id)

    def find(self, user_id: str, product_id: int) -> Optional[Review]:
        return (
            self.db.query(Review)
            .filter(Review.user_id == user_id, Review.product_id == product_id)
            .first()
        )

    def list(
        self,
        page: int = 1,
        size: int = 10,
        product_id: Optional[int] = None,
        user_id: Optional[str] = None,
    ) -> Tuple[List[Review], int]:
        query = self.db.query(Review)
        if product_id is not None:
            query = query.filter(Review.product_id == product_id)
        if user_id:
            query = query.filter(Review.user_id == user_id)
        total = query.count()
        items = (
            query.order_by(Review.created_at.desc(), Review.id.desc())
            .offset((page - 1) * size)
            .limit(size)
            .all()
        )
        return items, total

    def add(self, review: Review) -> Review:
        self.db.add(review)
        self.db.flush()
        return review

    def delete(self, review: Review):
        self.db.delete(review)
        self.db.flush()

    def rating_stats(self, product_id: int) -> Tuple[float, int]:
        """(mean rating, count) over all reviews of a product; (0.0, 0) when none."""
        avg, count = (
            self.db.query(func.avg(Review.rating), func.count(Review.id))
            .filter(Review.product_id == product_id)
            .one()
        )
        return float(avg or 0), int(count or 0)
