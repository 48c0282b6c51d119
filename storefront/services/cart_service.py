# storefront/services/cart_service.py
import uuid
from decimal import Decimal
from typing import Any, Dict

from sqlalchemy.orm import Session

from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel
from storefront.data.models.product import ProductModel
from storefront.domain.context import CartHandle, AuthenticatedCart
from storefront.domain.errors import NotFoundError, ValidationError, InsufficientInventoryError
from storefront.repos.cart_repo import CartRepo
from storefront.repos.inventory_repo import InventoryRepo
from storefront.repos.product_repo import ProductRepo
from storefront.repos.user_repo import UserRepo
from storefront.services.discount_service import DiscountService
from storefront.services.guest_cart import GuestCartStore
from storefront.services.pricing import money
from storefront.utils.logging import get_logger
from storefront.utils.settings import DEFAULT_CURRENCY

logger = get_logger(__name__)


def cart_to_dict(cart: CartModel) -> Dict[str, Any]:
    items = [
        {
            "id": str(i.id),
            "product_id": i.product_id,
            "quantity": i.quantity,
            "unit_price": i.unit_price,
            "total_price": i.total_price,
        }
        for i in cart.items
    ]
    return {
        "owner": "user",
        "cart_id": cart.id,
        "user_id": cart.user_id,
        "session_id": None,
        "items": items,
        "item_count": sum(i["quantity"] for i in items),
        "subtotal": cart.subtotal,
        "tax_amount": cart.tax_amount,
        "shipping_amount": cart.shipping_amount,
        "discount_amount": cart.discount_amount,
        "total_amount": cart.total_amount,
        "currency": cart.currency,
        "discount_code": cart.discount_code,
    }


def guest_to_dict(session_id: str, items: list[dict]) -> Dict[str, Any]:
    lines = []
    for i in items:
        unit_price = money(i["unit_price"])
        lines.append(
            {
                "id": i["id"],
                "product_id": i["product_id"],
                "quantity": i["quantity"],
                "unit_price": unit_price,
                "total_price": money(unit_price * i["quantity"]),
            }
        )
    subtotal = sum((line["total_price"] for line in lines), Decimal("0.00"))
    return {
        "owner": "guest",
        "cart_id": None,
        "user_id": None,
        "session_id": session_id,
        "items": lines,
        "item_count": sum(line["quantity"] for line in lines),
        "subtotal": subtotal,
        "total_amount": subtotal,
        "currency": DEFAULT_CURRENCY,
    }


class CartStore:
    """
    Koszyk zalogowanego uzytkownika w bazie (jeden na usera).
    Sumy (subtotal, total_amount) liczy listener na cart_items w tym samym flushu,
    tutaj tylko odswiezamy instancje po zapisie.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = CartRepo(db)
        self.products = ProductRepo(db)
        self.inventory = InventoryRepo(db)
        self.discounts = DiscountService(db)

    #query
    def get_or_create_cart(self, user_id) -> CartModel:
        cart = self.repo.get_cart_by_user(user_id)
        if cart:
            return cart

        if not UserRepo(self.db).get_user(user_id):
            raise NotFoundError("User not found")

        cart = self.repo.create_cart(CartModel(user_id=user_id, currency=DEFAULT_CURRENCY))
        logger.info(f"Utworzono nowy koszyk {cart.id} dla uzytkownika {user_id}")
        return cart

    def get_cart(self, user_id) -> CartModel:
        cart = self.get_or_create_cart(user_id)
        self.db.commit()
        return cart

    #walidacje
    def active_product(self, product_id) -> ProductModel:
        product = self.products.get_product(product_id)
        if not product:
            raise NotFoundError("Product not found")
        if product.status != "active":
            raise ValidationError(f"Product {product.name} is not available")
        return product

    def check_stock(self, product: ProductModel, quantity: int):
        inv = self.inventory.get_by_product(product.id)
        if inv is not None:
            self.db.refresh(inv)
        available = inv.available if inv is not None else 0
        if quantity > available:
            raise InsufficientInventoryError(product.name, quantity, available)

    def _item(self, cart: CartModel, item_id) -> CartItemModel:
        try:
            item_uuid = item_id if isinstance(item_id, uuid.UUID) else uuid.UUID(str(item_id))
        except ValueError:
            raise NotFoundError("Cart item not found")
        item = self.repo.get_item(cart.id, item_uuid)
        if not item:
            raise NotFoundError("Cart item not found")
        return item

    #commands
    def add_item(self, user_id, product_id, quantity: int) -> CartModel:
        if quantity <= 0:
            raise ValidationError("Ilosc musi byc wieksza niz 0")

        product = self.active_product(product_id)
        cart = self.get_or_create_cart(user_id)
        line = self.repo.get_item_by_product(cart.id, product.id)

        self.check_stock(product, quantity + (line.quantity if line else 0))

        if line:
            line.quantity += quantity
        else:
            self.repo.add_item(
                CartItemModel(
                    cart_id=cart.id,
                    product_id=product.id,
                    quantity=quantity,
                    unit_price=product.price,
                )
            )
        logger.info(f"Cart {cart.id}: added {quantity} x {product.sku}")
        return self._commit(cart)

    def update_quantity(self, user_id, item_id, quantity: int) -> CartModel:
        cart = self.get_or_create_cart(user_id)
        item = self._item(cart, item_id)

        if quantity <= 0:
            self.repo.delete_item(item)
            logger.info(f"Cart {cart.id}: removed item {item.id} (quantity {quantity})")
            return self._commit(cart)

        product = self.products.get_product(item.product_id)
        if product:
            self.check_stock(product, quantity)
        item.quantity = quantity
        logger.info(f"Cart {cart.id}: item {item.id} quantity -> {quantity}")
        return self._commit(cart)

    def remove_item(self, user_id, item_id) -> CartModel:
        cart = self.get_or_create_cart(user_id)
        item = self._item(cart, item_id)
        self.repo.delete_item(item)
        logger.info(f"Cart {cart.id}: removed item {item.id}")
        return self._commit(cart)

    def clear(self, user_id, commit: bool = True) -> CartModel:
        cart = self.get_or_create_cart(user_id)
        for item in self.repo.get_cart_items(cart.id):
            self.db.delete(item)
        cart.discount_code = None
        cart.discount_amount = 0
        cart.tax_amount = 0
        cart.shipping_amount = 0
        logger.info(f"Cart {cart.id} cleared")
        if commit:
            return self._commit(cart)
        return self.refresh(cart)

    def apply_discount(self, user_id, code: str) -> CartModel:
        cart = self.refresh(self.get_or_create_cart(user_id))
        quote = self.discounts.quote(code, user_id, cart.items, cart.subtotal)
        cart.discount_code = quote["code"]
        cart.discount_amount = quote["discount_amount"]
        logger.info(f"Cart {cart.id}: discount {cart.discount_code} applied ({cart.discount_amount})")
        return self._commit(cart, recheck_discount=False)

    def remove_discount(self, user_id) -> CartModel:
        cart = self.get_or_create_cart(user_id)
        cart.discount_code = None
        cart.discount_amount = 0
        return self._commit(cart, recheck_discount=False)

    def update_charges(self, cart: CartModel, tax=None, shipping=None) -> CartModel:
        if tax is not None:
            cart.tax_amount = money(tax)
        if shipping is not None:
            cart.shipping_amount = money(shipping)
        return self.refresh(cart)

    #pomocnicze
    def refresh(self, cart: CartModel) -> CartModel:
        return self.repo.refresh(cart)

    def recheck_discount(self, cart: CartModel):
        """Po zmianie pozycji rabat liczony od nowa, niewazny kod jest zdejmowany."""
        if not cart.discount_code:
            return
        try:
            quote = self.discounts.quote(cart.discount_code, cart.user_id, cart.items, cart.subtotal)
        except ValidationError as e:
            logger.warning(f"Discount {cart.discount_code} removed from cart {cart.id}: {e.message}")
            cart.discount_code = None
            cart.discount_amount = 0
            return
        cart.discount_amount = quote["discount_amount"]

    def _commit(self, cart: CartModel, recheck_discount: bool = True) -> CartModel:
        self.refresh(cart)
        if recheck_discount:
            self.recheck_discount(cart)
        self.db.commit()
        self.db.refresh(cart)
        return cart


class CartFacade:
    """
    Jedno wejscie dla koszyka goscia (redis) i uzytkownika (baza).
    O tym ktory koszyk obslugujemy decyduje CartHandle.
    """

    def __init__(self, db: Session, guest: GuestCartStore):
        self.db = db
        self.store = CartStore(db)
        self.guest = guest

    def view(self, handle: CartHandle) -> Dict[str, Any]:
        if isinstance(handle, AuthenticatedCart):
            return cart_to_dict(self.store.get_cart(handle.user_id))
        return guest_to_dict(handle.session_id, self.guest.load(handle.session_id))

    def add_item(self, handle: CartHandle, product_id, quantity: int) -> Dict[str, Any]:
        if isinstance(handle, AuthenticatedCart):
            return cart_to_dict(self.store.add_item(handle.user_id, product_id, quantity))

        if quantity <= 0:
            raise ValidationError("Ilosc musi byc wieksza niz 0")
        product = self.store.active_product(product_id)
        self.store.check_stock(product, quantity + self.guest.quantity_of(handle.session_id, product.id))
        items = self.guest.add_item(handle.session_id, product.id, quantity, product.price)
        return guest_to_dict(handle.session_id, items)

    def update_item(self, handle: CartHandle, item_id: str, quantity: int) -> Dict[str, Any]:
        if isinstance(handle, AuthenticatedCart):
            return cart_to_dict(self.store.update_quantity(handle.user_id, item_id, quantity))

        if quantity > 0:
            line = next((i for i in self.guest.load(handle.session_id) if i["id"] == item_id), None)
            if line is None:
                raise NotFoundError("Cart item not found")
            product = self.store.products.get_product(uuid.UUID(line["product_id"]))
            if product:
                self.store.check_stock(product, quantity)
        return guest_to_dict(handle.session_id, self.guest.update_item(handle.session_id, item_id, quantity))

    def remove_item(self, handle: CartHandle, item_id: str) -> Dict[str, Any]:
        if isinstance(handle, AuthenticatedCart):
            return cart_to_dict(self.store.remove_item(handle.user_id, item_id))
        return guest_to_dict(handle.session_id, self.guest.remove_item(handle.session_id, item_id))

    def clear(self, handle: CartHandle) -> Dict[str, Any]:
        if isinstance(handle, AuthenticatedCart):
            return cart_to_dict(self.store.clear(handle.user_id))
        self.guest.clear(handle.session_id)
        return guest_to_dict(handle.session_id, [])
