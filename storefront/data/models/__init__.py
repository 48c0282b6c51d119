#import wszystkich modeli zeby SQLAlchemy je zarejestrowal w base metadata

from storefront.data.models.user import UserModel
from storefront.data.models.product import CategoryModel, ProductModel
from storefront.data.models.inventory import InventoryModel, InventoryTransactionModel
from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel
from storefront.data.models.order import OrderModel, OrderItemModel
from storefront.data.models.discount import DiscountModel, DiscountUsageModel
from storefront.data.models.review import ReviewModel, ReviewHelpfulnessModel
from storefront.data.models.wishlist import WishlistModel, WishlistItemModel

#listenery (dawne triggery) musza byc zarejestrowane razem z modelami
from storefront.data import listeners  # noqa: E402,F401

__all__ = [
    "UserModel",
    "CategoryModel",
    "ProductModel",
    "InventoryModel",
    "InventoryTransactionModel",
    "CartModel",
    "CartItemModel",
    "OrderModel",
    "OrderItemModel",
    "DiscountModel",
    "DiscountUsageModel",
    "ReviewModel",
    "ReviewHelpfulnessModel",
    "WishlistModel",
    "WishlistItemModel",
]
