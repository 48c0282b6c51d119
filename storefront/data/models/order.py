import uuid

from sqlalchemy import (
    Column, String, Text, Integer, Numeric, DateTime, ForeignKey, JSON, Uuid, CheckConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from storefront.data.database import Base


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    # OR000001, nadawany w before_insert
    order_number = Column(String(20), unique=True, nullable=False)
    user_id = Column(Uuid, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True, index=True)

    status = Column(String(20), nullable=False, default="pending")
    payment_status = Column(String(20), nullable=False, default="pending")
    payment_method = Column(String, nullable=True)

    subtotal = Column(Numeric(10, 2), nullable=False)
    tax_amount = Column(Numeric(10, 2), nullable=False, default=0)
    shipping_amount = Column(Numeric(10, 2), nullable=False, default=0)
    discount_amount = Column(Numeric(10, 2), nullable=False, default=0)
    total_amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")

    shipping_address = Column(JSON, nullable=True)
    billing_address = Column(JSON, nullable=True)
    notes = Column(Text, nullable=True)
    tracking_number = Column(String, nullable=True)

    shipped_at = Column(DateTime(timezone=True), nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'processing', 'shipped', 'delivered', 'cancelled', 'refunded')",
            name="ck_order_status",
        ),
        CheckConstraint(
            "payment_status IN ('pending', 'paid', 'failed', 'refunded', 'partially_refunded')",
            name="ck_order_payment_status",
        ),
    )


class OrderItemModel(Base):
    __tablename__ = "order_items"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    order_id = Column(Uuid, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Uuid, ForeignKey("products.id", ondelete="SET NULL"), nullable=True)

    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)

    # snapshot produktu z chwili zamowienia
    product_name = Column(String, nullable=False)
    product_sku = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    order = relationship("OrderModel", back_populates="items")

    __table_args__ = (CheckConstraint("quantity >= 1", name="ck_order_item_qty"),)
