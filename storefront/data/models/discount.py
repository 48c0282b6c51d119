import uuid

from sqlalchemy import (
    Column, String, Text, Boolean, Integer, Numeric, DateTime, ForeignKey, JSON, Uuid, CheckConstraint,
)
from sqlalchemy.sql import func

from storefront.data.database import Base


class DiscountModel(Base):
    __tablename__ = "discounts"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    code = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)

    type = Column(String(20), nullable=False)  # percentage / fixed_amount / free_shipping
    value = Column(Numeric(10, 2), nullable=False, default=0)
    minimum_amount = Column(Numeric(10, 2), nullable=True)
    maximum_discount = Column(Numeric(10, 2), nullable=True)

    usage_limit = Column(Integer, nullable=True)
    used_count = Column(Integer, nullable=False, default=0)
    one_time_use = Column(Boolean, nullable=False, default=False)

    valid_from = Column(DateTime(timezone=True), nullable=True)
    valid_until = Column(DateTime(timezone=True), nullable=True)
    status = Column(String(20), nullable=False, default="active")

    applies_to = Column(String(20), nullable=False, default="all")
    categories = Column(JSON, nullable=False, default=list)
    products = Column(JSON, nullable=False, default=list)
    users = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint("type IN ('percentage', 'fixed_amount', 'free_shipping')", name="ck_discount_type"),
        CheckConstraint("status IN ('active', 'inactive', 'expired')", name="ck_discount_status"),
        CheckConstraint(
            "applies_to IN ('all', 'categories', 'products', 'users')",
            name="ck_discount_applies_to",
        ),
    )


class DiscountUsageModel(Base):
    __tablename__ = "discount_usage"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    discount_id = Column(Uuid, ForeignKey("discounts.id", ondelete="CASCADE"), nullable=False, index=True)
    order_id = Column(Uuid, ForeignKey("orders.id", ondelete="CASCADE"), nullable=True)
    user_id = Column(Uuid, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    amount_discounted = Column(Numeric(10, 2), nullable=False)
    used_at = Column(DateTime(timezone=True), server_default=func.now())
