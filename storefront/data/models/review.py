import uuid

from sqlalchemy import (
    Column, String, Text, Boolean, Integer, DateTime, ForeignKey, Uuid, CheckConstraint, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from storefront.data.database import Base


class ReviewModel(Base):
    __tablename__ = "reviews"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    product_id = Column(Uuid, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)

    rating = Column(Integer, nullable=False)
    title = Column(String, nullable=True)
    content = Column(Text, nullable=True)

    # uzytkownik ma dostarczone zamowienie z tym produktem
    verified_purchase = Column(Boolean, nullable=False, default=False)
    # liczy listener na review_helpfulness
    helpful_count = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default="pending")

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    votes = relationship("ReviewHelpfulnessModel", back_populates="review", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint("product_id", "user_id", name="uq_review_product_user"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_review_rating"),
        CheckConstraint("status IN ('pending', 'approved', 'rejected')", name="ck_review_status"),
    )


class ReviewHelpfulnessModel(Base):
    __tablename__ = "review_helpfulness"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    review_id = Column(Uuid, ForeignKey("reviews.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    is_helpful = Column(Boolean, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    review = relationship("ReviewModel", back_populates="votes")

    __table_args__ = (UniqueConstraint("review_id", "user_id", name="uq_review_vote_user"),)
