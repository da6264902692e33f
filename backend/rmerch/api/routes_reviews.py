from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from rmerch.api.responses import ok, pagination
from rmerch.db import get_db
from rmerch.schemas.base import dump
from rmerch.schemas.review_schema import ReviewCreate, ReviewOut, ReviewUpdate
from rmerch.services.review_service import ReviewService

router = APIRouter(prefix="/reviews", tags=["reviews"])


def _review(r) -> dict:
    return dump(ReviewOut.model_validate(r))


@router.get("", summary="List reviews")
def list_reviews(
    product_id: Optional[int] = Query(None, alias="productId"),
    user_id: Optional[str] = Query(None, alias="userId"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=200),
    db: Session = Depends(get_db),
):
    items, total = ReviewService(db).list_reviews(
        page=page, size=limit, product_id=product_id, user_id=user_id
    )
    return ok([_review(r) for r in items], pagination=pagination(total, page, limit))


@router.post("", summary="Review a purchased product")
def create_review(payload: ReviewCreate, db: Session = Depends(get_db)):
    r = ReviewService(db).create_review(
        payload.user_id, payload.product_id, payload.order_id, payload.rating, payload.comment
    )
    return ok(_review(r), message="Review created", status_code=201)


@router.get("/{review_id}", summary="Get review")
def get_review(review_id: int, db: Session = Depends(get_db)):
    return ok(_review(ReviewService(db).get_review(review_id)))


@router.put("/{review_id}", summary="Edit own review")
def update_review(review_id: int, payload: ReviewUpdate, db: Session = Depends(get_db)):
    r = ReviewService(db).update_review(
        review_id, payload.user_id, rating=payload.rating, comment=payload.comment
    )
    return ok(_review(r), message="Review updated")


@router.delete("/{review_id}", summary="Delete own review")
def delete_review(
    review_id: int,
    user_id: Optional[str] = Query(None, alias="userId"),
    db: Session = Depends(get_db),
):
    ReviewService(db).delete_review(review_id, user_id)
    return ok(message="Review deleted")
