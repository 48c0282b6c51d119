# storefront/repos/review_repo.py
from sqlalchemy import select, func
from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel, OrderItemModel
from storefront.data.models.review import ReviewModel, ReviewHelpfulnessModel


class ReviewRepo:
    def __init__(self, db: Session):
        self.db = db

    def create(self, review: ReviewModel) -> ReviewModel:
        self.db.add(review)
        self.db.flush()
        return review

    def get(self, review_id) -> ReviewModel | None:
        return self.db.get(ReviewModel, review_id)

    def delete(self, review: ReviewModel):
        self.db.delete(review)
        self.db.flush()

    def list_by_product(self, product_id, status: str | None = "approved", rating: int | None = None) -> list[ReviewModel]:
        stmt = select(ReviewModel).where(ReviewModel.product_id == product_id)
        if status is not None:
            stmt = stmt.where(ReviewModel.status == status)
        if rating is not None:
            stmt = stmt.where(ReviewModel.rating == rating)
        stmt = stmt.order_by(ReviewModel.helpful_count.desc(), ReviewModel.created_at.desc())
        return list(self.db.execute(stmt).scalars().all())

    def list_by_user(self, user_id) -> list[ReviewModel]:
        return list(
            self.db.execute(
                select(ReviewModel)
                .where(ReviewModel.user_id == user_id)
                .order_by(ReviewModel.created_at.desc())
            ).scalars().all()
        )

    def list_by_status(self, status: str) -> list[ReviewModel]:
        return list(
            self.db.execute(
                select(ReviewModel).where(ReviewModel.status == status).order_by(ReviewModel.created_at)
            ).scalars().all()
        )

    def rating_counts(self, product_id) -> dict[int, int]:
        rows = self.db.execute(
            select(ReviewModel.rating, func.count())
            .where(ReviewModel.product_id == product_id, ReviewModel.status == "approved")
            .group_by(ReviewModel.rating)
        ).all()
        return {rating: count for rating, count in rows}

    def verified_count(self, product_id) -> int:
        return self.db.execute(
            select(func.count())
            .select_from(ReviewModel)
            .where(
                ReviewModel.product_id == product_id,
                ReviewModel.status == "approved",
                ReviewModel.verified_purchase.is_(True),
            )
        ).scalar_one()

    def has_delivered_purchase(self, user_id, product_id) -> bool:
        stmt = (
            select(OrderItemModel.id)
            .join(OrderModel, OrderModel.id == OrderItemModel.order_id)
            .where(
                OrderModel.user_id == user_id,
                OrderModel.status == "delivered",
                OrderItemModel.product_id == product_id,
            )
            .limit(1)
        )
        return self.db.execute(stmt).first() is not None

    def get_vote(self, review_id, user_id) -> ReviewHelpfulnessModel | None:
        return self.db.execute(
            select(ReviewHelpfulnessModel).where(
                ReviewHelpfulnessModel.review_id == review_id,
                ReviewHelpfulnessModel.user_id == user_id,
            )
        ).scalar_one_or_none()

    def add_vote(self, vote: ReviewHelpfulnessModel) -> ReviewHelpfulnessModel:
        self.db.add(vote)
        self.db.flush()
        return vote
