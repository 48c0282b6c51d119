# storefront/repos/wishlist_repo.py
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from storefront.data.models.wishlist import WishlistModel, WishlistItemModel


class WishlistRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_by_user(self, user_id) -> WishlistModel | None:
        return self.db.execute(
            select(WishlistModel)
            .options(selectinload(WishlistModel.items))
            .where(WishlistModel.user_id == user_id)
            .order_by(WishlistModel.created_at)
            .limit(1)
        ).scalar_one_or_none()

    def get(self, wishlist_id) -> WishlistModel | None:
        return self.db.execute(
            select(WishlistModel)
            .options(selectinload(WishlistModel.items))
            .where(WishlistModel.id == wishlist_id)
        ).scalar_one_or_none()

    def create(self, wishlist: WishlistModel) -> WishlistModel:
        self.db.add(wishlist)
        self.db.flush()
        return wishlist

    def get_item(self, wishlist_id, product_id) -> WishlistItemModel | None:
        return self.db.execute(
            select(WishlistItemModel).where(
                WishlistItemModel.wishlist_id == wishlist_id,
                WishlistItemModel.product_id == product_id,
            )
        ).scalar_one_or_none()

    def add_item(self, item: WishlistItemModel) -> WishlistItemModel:
        self.db.add(item)
        self.db.flush()
        return item

    def delete_item(self, item: WishlistItemModel):
        self.db.delete(item)
        self.db.flush()
