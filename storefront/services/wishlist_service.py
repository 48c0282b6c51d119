# storefront/services/wishlist_service.py
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.data.models.wishlist import WishlistModel, WishlistItemModel
from storefront.domain.context import RequestContext
from storefront.domain.errors import StorefrontError, NotFoundError, ValidationError
from storefront.domain.schemas import WishlistUpdate
from storefront.repos.product_repo import ProductRepo
from storefront.repos.wishlist_repo import WishlistRepo
from storefront.services.cart_service import CartStore
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class WishlistService:
    """Lista zyczen uzytkownika, jedna na konto, zakladana przy pierwszym uzyciu."""

    def __init__(self, db: Session):
        self.db = db
        self.repo = WishlistRepo(db)
        self.products = ProductRepo(db)

    def _get_or_create(self, user_id) -> WishlistModel:
        wishlist = self.repo.get_by_user(user_id)
        if wishlist:
            return wishlist
        wishlist = self.repo.create(WishlistModel(user_id=user_id))
        logger.info(f"Utworzono liste zyczen {wishlist.id} dla uzytkownika {user_id}")
        return wishlist

    def get_wishlist(self, ctx: RequestContext) -> WishlistModel:
        wishlist = self._get_or_create(ctx.require_user())
        self.db.commit()
        self.db.refresh(wishlist)
        return wishlist

    def get_public(self, wishlist_id) -> WishlistModel:
        wishlist = self.repo.get(wishlist_id)
        if not wishlist or not wishlist.is_public:
            raise NotFoundError("Wishlist not found")
        return wishlist

    def update(self, ctx: RequestContext, payload: WishlistUpdate) -> WishlistModel:
        wishlist = self._get_or_create(ctx.require_user())
        for field, value in payload.model_dump(exclude_unset=True).items():
            setattr(wishlist, field, value)
        self.db.commit()
        self.db.refresh(wishlist)
        return wishlist

    def add_item(self, ctx: RequestContext, product_id) -> WishlistModel:
        user_id = ctx.require_user()
        if not self.products.get_product(product_id):
            raise NotFoundError("Product not found")

        wishlist = self._get_or_create(user_id)
        try:
            self.repo.add_item(WishlistItemModel(wishlist_id=wishlist.id, product_id=product_id))
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ValidationError("Product is already in your wishlist")

        self.db.refresh(wishlist)
        logger.info(f"Wishlist {wishlist.id}: added product {product_id}")
        return wishlist

    def _item(self, wishlist: WishlistModel, product_id) -> WishlistItemModel:
        item = self.repo.get_item(wishlist.id, product_id)
        if not item:
            raise NotFoundError("Product is not in your wishlist")
        return item

    def remove_item(self, ctx: RequestContext, product_id) -> WishlistModel:
        wishlist = self._get_or_create(ctx.require_user())
        self.repo.delete_item(self._item(wishlist, product_id))
        self.db.commit()
        self.db.refresh(wishlist)
        return wishlist

    def move_to_cart(self, ctx: RequestContext, product_id, quantity: int = 1):
        """
        Pozycja znika z listy i trafia do koszyka w jednej transakcji.
        Brak towaru albo nieaktywny produkt zostawia liste bez zmian.
        """
        user_id = ctx.require_user()
        wishlist = self._get_or_create(user_id)
        item = self._item(wishlist, product_id)

        try:
            self.repo.delete_item(item)
            #commit robi CartStore.add_item, razem z usunieciem z listy
            cart = CartStore(self.db).add_item(user_id, product_id, quantity)
        except (SQLAlchemyError, StorefrontError):
            self.db.rollback()
            raise

        logger.info(f"Wishlist {wishlist.id}: moved product {product_id} to cart {cart.id}")
        return cart
