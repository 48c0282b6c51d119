#storefront/data/models/cart.py
import uuid

from sqlalchemy import Column, String, DateTime, Numeric, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from storefront.data.database import Base


class CartModel(Base):
    __tablename__ = "carts"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    # koszyki w bazie sa zawsze uzytkownika, koszyk goscia siedzi w redisie
    user_id = Column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), unique=True, nullable=False)

    status = Column(String(20), nullable=False, default="active")
    currency = Column(String(3), nullable=False, default="USD")

    subtotal = Column(Numeric(10, 2), nullable=False, default=0)
    tax_amount = Column(Numeric(10, 2), nullable=False, default=0)
    shipping_amount = Column(Numeric(10, 2), nullable=False, default=0)
    discount_amount = Column(Numeric(10, 2), nullable=False, default=0)
    total_amount = Column(Numeric(10, 2), nullable=False, default=0)
    discount_code = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    items = relationship(
        "CartItemModel",
        back_populates="cart",
        cascade="all, delete-orphan",
        order_by="CartItemModel.created_at",
    )
