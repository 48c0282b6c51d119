import uuid

from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Uuid, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from storefront.data.database import Base


class WishlistModel(Base):
    __tablename__ = "wishlists"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False, default="My Wishlist")
    is_public = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    items = relationship(
        "WishlistItemModel",
        back_populates="wishlist",
        cascade="all, delete-orphan",
        order_by="WishlistItemModel.created_at",
    )


class WishlistItemModel(Base):
    __tablename__ = "wishlist_items"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    wishlist_id = Column(Uuid, ForeignKey("wishlists.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Uuid, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    wishlist = relationship("WishlistModel", back_populates="items")
    product = relationship("ProductModel")

    __table_args__ = (UniqueConstraint("wishlist_id", "product_id", name="uq_wishlist_product"),)
