# storefront/services/review_service.py
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.data.models.review import ReviewModel, ReviewHelpfulnessModel
from storefront.domain.context import RequestContext
from storefront.domain.errors import NotFoundError, ValidationError, ForbiddenError
from storefront.domain.schemas import ReviewCreate, ReviewUpdate
from storefront.repos.product_repo import ProductRepo
from storefront.repos.review_repo import ReviewRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

MODERATION_STATUSES = ("approved", "rejected")


def _is_duplicate(error: IntegrityError) -> bool:
    text = str(error.orig)
    return "uq_review_product_user" in text or "reviews.product_id, reviews.user_id" in text


class ReviewService:
    """
    Recenzje produktow. Nowa i edytowana recenzja czeka na moderacje,
    publicznie widac tylko zatwierdzone.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = ReviewRepo(db)
        self.products = ProductRepo(db)

    def create_review(self, ctx: RequestContext, payload: ReviewCreate) -> ReviewModel:
        """
        Jedna recenzja na uzytkownika i produkt, pilnuje tego unikalny indeks.
        verified_purchase gdy uzytkownik ma dostarczone zamowienie z tym produktem.
        """
        user_id = ctx.require_user()
        if not self.products.get_product(payload.product_id):
            raise NotFoundError("Product not found")

        review = ReviewModel(
            product_id=payload.product_id,
            user_id=user_id,
            rating=payload.rating,
            title=payload.title,
            content=payload.content,
            verified_purchase=self.repo.has_delivered_purchase(user_id, payload.product_id),
            status="pending",
        )
        try:
            self.repo.create(review)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if _is_duplicate(e):
                raise ValidationError("You have already reviewed this product")
            logger.error(f"Review of product {payload.product_id} by {user_id} failed: {e}")
            raise

        self.db.refresh(review)
        logger.info(f"Review {review.id} for product {review.product_id} awaits moderation")
        return review

    def get_review(self, review_id) -> ReviewModel:
        review = self.repo.get(review_id)
        if not review:
            raise NotFoundError("Review not found")
        return review

    def _own(self, ctx: RequestContext, review_id, action: str) -> ReviewModel:
        user_id = ctx.require_user()
        review = self.get_review(review_id)
        if review.user_id != user_id:
            raise ForbiddenError(f"You can only {action} your own reviews")
        return review

    def list_for_product(self, product_id, rating: int | None = None) -> list[ReviewModel]:
        if rating is not None and not 1 <= rating <= 5:
            raise ValidationError("Rating must be between 1 and 5")
        return self.repo.list_by_product(product_id, rating=rating)

    def list_user_reviews(self, ctx: RequestContext) -> list[ReviewModel]:
        return self.repo.list_by_user(ctx.require_user())

    def update_review(self, ctx: RequestContext, review_id, payload: ReviewUpdate) -> ReviewModel:
        review = self._own(ctx, review_id, "update")
        for field, value in payload.model_dump(exclude_unset=True).items():
            setattr(review, field, value)
        #po edycji znowu do moderacji
        review.status = "pending"
        self.db.commit()
        self.db.refresh(review)
        return review

    def delete_review(self, ctx: RequestContext, review_id):
        review = self._own(ctx, review_id, "delete")
        self.repo.delete(review)
        self.db.commit()
        logger.info(f"Review {review_id} deleted")

    def stats(self, product_id) -> dict:
        counts = self.repo.rating_counts(product_id)
        distribution = {rating: counts.get(rating, 0) for rating in (5, 4, 3, 2, 1)}
        total = sum(distribution.values())
        if total == 0:
            return {
                "product_id": product_id,
                "total_reviews": 0,
                "average_rating": 0.0,
                "rating_distribution": distribution,
                "verified_purchase_percentage": 0,
            }

        average = Decimal(sum(r * c for r, c in distribution.items())) / total
        verified = Decimal(self.repo.verified_count(product_id) * 100) / total
        return {
            "product_id": product_id,
            "total_reviews": total,
            "average_rating": float(average.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)),
            "rating_distribution": distribution,
            "verified_purchase_percentage": int(verified.quantize(Decimal("1"), rounding=ROUND_HALF_UP)),
        }

    def mark_helpful(self, ctx: RequestContext, review_id, is_helpful: bool = True) -> ReviewModel:
        """Jeden glos na uzytkownika, ponowny glos nadpisuje poprzedni."""
        user_id = ctx.require_user()
        review = self.get_review(review_id)

        try:
            vote = self.repo.get_vote(review.id, user_id)
            if vote:
                vote.is_helpful = is_helpful
            else:
                self.repo.add_vote(ReviewHelpfulnessModel(review_id=review.id, user_id=user_id, is_helpful=is_helpful))
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

        self.db.refresh(review)
        return review

    def pending(self) -> list[ReviewModel]:
        return self.repo.list_by_status("pending")

    def moderate(self, review_id, status: str) -> ReviewModel:
        if status not in MODERATION_STATUSES:
            raise ValidationError(f"Unknown moderation status {status}")
        review = self.get_review(review_id)
        review.status = status
        self.db.commit()
        self.db.refresh(review)
        logger.info(f"Review {review_id} {status}")
        return review
