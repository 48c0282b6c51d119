# storefront/services/cart_merge.py
import uuid
from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel
from storefront.domain.context import RequestContext
from storefront.domain.errors import ValidationError
from storefront.services.cart_service import CartStore
from storefront.services.guest_cart import GuestCartStore
from storefront.utils.logging import get_logger
from storefront.utils.time import now_utc

logger = get_logger(__name__)


@dataclass
class MergeResult:
    cart: CartModel
    merged: int = 0
    added: int = 0
    skipped_product_ids: list[str] = field(default_factory=list)

    @property
    def skipped(self) -> int:
        return len(self.skipped_product_ids)


class CartMergeEngine:
    """
    Przenosi koszyk goscia do koszyka uzytkownika przy logowaniu.

    1. ta sama pozycja -> ilosci sie sumuja (baza to ilosc usera, gosc zawsze dochodzi)
    2. nowa pozycja -> cena z koszyka goscia
    3. produkt usuniety albo nieaktywny -> pomijany i raportowany
    Wszystko w jednej transakcji. Koszyk goscia kasujemy dopiero po commicie
    i tylko jesli nikt go w miedzyczasie nie zmienil.
    """

    def __init__(self, db: Session, guest: GuestCartStore):
        self.db = db
        self.guest = guest
        self.store = CartStore(db)

    def merge(self, ctx: RequestContext) -> MergeResult:
        user_id = ctx.require_user()
        if not ctx.session_id:
            raise ValidationError("Missing guest session")
        session_id = ctx.session_id

        snapshot = self.guest.snapshot(session_id)
        guest_items = self.guest.load(session_id)

        try:
            cart = self.store.get_or_create_cart(user_id)
            result = MergeResult(cart=cart)

            for guest_item in guest_items:
                self._merge_line(cart, guest_item, result)

            self.store.refresh(cart)
            self.store.recheck_discount(cart)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Merge of guest cart {session_id} into user {user_id} failed: {e}")
            raise

        self.db.refresh(cart)

        if guest_items:
            if self.guest.clear_if_unchanged(session_id, snapshot):
                logger.info(f"Guest cart {session_id} cleared after merge")
            else:
                logger.warning(f"Guest cart {session_id} changed during merge, kept")

        logger.info(
            f"Merged guest cart {session_id} into cart {cart.id}: "
            f"{result.merged} merged, {result.added} added, {result.skipped} skipped"
        )
        return result

    def _merge_line(self, cart: CartModel, guest_item: dict, result: MergeResult):
        raw_id = str(guest_item.get("product_id"))
        try:
            product_id = uuid.UUID(raw_id)
        except ValueError:
            result.skipped_product_ids.append(raw_id)
            return

        product = self.store.products.get_product(product_id)
        if not product or product.status != "active":
            logger.warning(f"Skipping guest line for unavailable product {product_id}")
            result.skipped_product_ids.append(raw_id)
            return

        quantity = int(guest_item["quantity"])
        line = self.store.repo.get_item_by_product(cart.id, product_id)
        if line:
            line.quantity = line.quantity + quantity
            line.updated_at = now_utc()
            self.db.flush()
            result.merged += 1
        else:
            self.store.repo.add_item(
                CartItemModel(
                    cart_id=cart.id,
                    product_id=product_id,
                    quantity=quantity,
                    unit_price=Decimal(str(guest_item["unit_price"])),
                )
            )
            result.added += 1
