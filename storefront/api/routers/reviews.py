# storefront/api/routers/reviews.py
import uuid
from typing import List

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from storefront.api.deps import user_context
from storefront.data.database import get_db
from storefront.domain.context import RequestContext
from storefront.domain.schemas import (
    ReviewCreate,
    ReviewModerationIn,
    ReviewOut,
    ReviewStatsOut,
    ReviewUpdate,
    ReviewVoteIn,
)
from storefront.services.review_service import ReviewService

router = APIRouter(prefix="/reviews", tags=["reviews"])


@router.post("", response_model=ReviewOut, status_code=201)
def create_review(
    payload: ReviewCreate,
    ctx: RequestContext = Depends(user_context),
    db: Session = Depends(get_db),
):
    """
    Dodaje recenzje do moderacji. Druga recenzja tego samego produktu -> 400.
    """
    return ReviewService(db).create_review(ctx, payload)


@router.get("/mine", response_model=List[ReviewOut])
def my_reviews(ctx: RequestContext = Depends(user_context), db: Session = Depends(get_db)):
    return ReviewService(db).list_user_reviews(ctx)


@router.get("/pending", response_model=List[ReviewOut])
def pending_reviews(db: Session = Depends(get_db)):
    return ReviewService(db).pending()


@router.get("/product/{product_id}", response_model=List[ReviewOut])
def product_reviews(
    product_id: uuid.UUID,
    rating: int | None = Query(None, ge=1, le=5),
    db: Session = Depends(get_db),
):
    return ReviewService(db).list_for_product(product_id, rating)


@router.get("/product/{product_id}/stats", response_model=ReviewStatsOut)
def product_review_stats(product_id: uuid.UUID, db: Session = Depends(get_db)):
    return ReviewService(db).stats(product_id)


@router.get("/{review_id}", response_model=ReviewOut)
def get_review(review_id: uuid.UUID, db: Session = Depends(get_db)):
    return ReviewService(db).get_review(review_id)


@router.patch("/{review_id}", response_model=ReviewOut)
def update_review(
    review_id: uuid.UUID,
    payload: ReviewUpdate,
    ctx: RequestContext = Depends(user_context),
    db: Session = Depends(get_db),
):
    return ReviewService(db).update_review(ctx, review_id, payload)


@router.delete("/{review_id}", status_code=204)
def delete_review(
    review_id: uuid.UUID,
    ctx: RequestContext = Depends(user_context),
    db: Session = Depends(get_db),
):
    ReviewService(db).delete_review(ctx, review_id)
    return Response(status_code=204)


@router.post("/{review_id}/helpful", response_model=ReviewOut)
def mark_helpful(
    review_id: uuid.UUID,
    payload: ReviewVoteIn,
    ctx: RequestContext = Depends(user_context),
    db: Session = Depends(get_db),
):
    return ReviewService(db).mark_helpful(ctx, review_id, payload.is_helpful)


@router.patch("/{review_id}/moderation", response_model=ReviewOut)
def moderate_review(review_id: uuid.UUID, payload: ReviewModerationIn, db: Session = Depends(get_db)):
    return ReviewService(db).moderate(review_id, payload.status)
