# storefront/data/models/inventory.py
import uuid

from sqlalchemy import Column, String, Text, Integer, DateTime, ForeignKey, Uuid, CheckConstraint
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from storefront.data.database import Base


class InventoryModel(Base):
    __tablename__ = "inventory"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    product_id = Column(Uuid, ForeignKey("products.id", ondelete="CASCADE"), unique=True, nullable=False)
    sku = Column(String, nullable=False)

    quantity = Column(Integer, nullable=False, default=0)
    reserved = Column(Integer, nullable=False, default=0)

    low_stock_threshold = Column(Integer, nullable=False, default=5)
    reorder_point = Column(Integer, nullable=False, default=10)
    reorder_quantity = Column(Integer, nullable=False, default=50)
    location = Column(String, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    product = relationship("ProductModel", back_populates="inventory")

    __table_args__ = (
        CheckConstraint("reserved >= 0", name="ck_inventory_reserved_positive"),
        CheckConstraint("reserved <= quantity", name="ck_inventory_reserved_le_quantity"),
    )

    # available nigdy nie jest zapisywane, zawsze liczone z quantity - reserved
    @hybrid_property
    def available(self) -> int:
        return (self.quantity or 0) - (self.reserved or 0)

    @available.expression
    def available(cls):
        return cls.quantity - cls.reserved


class InventoryTransactionModel(Base):
    __tablename__ = "inventory_transactions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    product_id = Column(Uuid, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(20), nullable=False)
    quantity = Column(Integer, nullable=False)
    reference_type = Column(String(20), nullable=True)
    reference_id = Column(Uuid, nullable=True)
    notes = Column(Text, nullable=True)
    user_id = Column(Uuid, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint(
            "type IN ('in', 'out', 'adjustment', 'reserved', 'unreserved')",
            name="ck_inventory_tx_type",
        ),
        CheckConstraint(
            "reference_type IS NULL OR reference_type IN ('order', 'adjustment', 'transfer', 'return')",
            name="ck_inventory_tx_reference_type",
        ),
    )
