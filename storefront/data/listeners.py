# storefront/data/listeners.py
"""
Logika wykonywana w tym samym flushu/transakcji co zapis wiersza:

- slug dla produktow i kategorii
- total_price pozycji koszyka i sumy koszyka
- numer zamowienia
- rezerwacje magazynowe przy zmianach pozycji zamowienia
- licznik uzyc kodu rabatowego
- licznik glosow "pomocna" recenzji

Listenery dzialaja na `connection` (Core), wiec obiekty ORM w sesji
moga byc nieaktualne po flushu. Serwisy robia refresh tam gdzie czytaja.
"""
from decimal import Decimal

from sqlalchemy import event, select, update, insert, func, cast, Integer, inspect

from storefront.data.models.product import CategoryModel, ProductModel
from storefront.data.models.inventory import InventoryModel, InventoryTransactionModel
from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel
from storefront.data.models.order import OrderModel, OrderItemModel
from storefront.data.models.discount import DiscountModel, DiscountUsageModel
from storefront.data.models.review import ReviewModel, ReviewHelpfulnessModel
from storefront.domain.errors import InsufficientInventoryError, ValidationError
from storefront.utils.logging import get_logger
from storefront.utils.slug import slugify

logger = get_logger(__name__)

ORDER_PREFIX = "OR"

inventory = InventoryModel.__table__
inventory_tx = InventoryTransactionModel.__table__
carts = CartModel.__table__
cart_items = CartItemModel.__table__
orders = OrderModel.__table__
discounts = DiscountModel.__table__
reviews = ReviewModel.__table__
review_votes = ReviewHelpfulnessModel.__table__


# ---------- slug ----------

def unique_slug(connection, table, name: str, row_id=None) -> str:
    base = slugify(name)
    candidate = base
    counter = 0
    while True:
        stmt = select(table.c.id).where(table.c.slug == candidate)
        if row_id is not None:
            stmt = stmt.where(table.c.id != row_id)
        if connection.execute(stmt.limit(1)).first() is None:
            return candidate
        counter += 1
        candidate = f"{base}-{counter}"


def _name_changed(target) -> bool:
    return inspect(target).attrs.name.history.has_changes()


@event.listens_for(ProductModel, "before_insert")
@event.listens_for(CategoryModel, "before_insert")
def assign_slug(mapper, connection, target):
    if target.slug:
        return
    target.slug = unique_slug(connection, mapper.local_table, target.name)


@event.listens_for(ProductModel, "before_update")
@event.listens_for(CategoryModel, "before_update")
def refresh_slug(mapper, connection, target):
    #nowa nazwa -> nowy slug, chyba ze ktos ustawil slug recznie
    if _name_changed(target) and not inspect(target).attrs.slug.history.has_changes():
        target.slug = unique_slug(connection, mapper.local_table, target.name, target.id)


# ---------- koszyk ----------

@event.listens_for(CartItemModel, "before_insert")
@event.listens_for(CartItemModel, "before_update")
def compute_line_total(mapper, connection, target):
    target.total_price = Decimal(str(target.unit_price)) * target.quantity


def recalculate_cart(connection, cart_id):
    subtotal = (
        select(func.coalesce(func.sum(cart_items.c.total_price), 0))
        .where(cart_items.c.cart_id == cart_id)
        .scalar_subquery()
    )
    connection.execute(
        update(carts)
        .where(carts.c.id == cart_id)
        .values(
            subtotal=subtotal,
            total_amount=subtotal + carts.c.tax_amount + carts.c.shipping_amount - carts.c.discount_amount,
            updated_at=func.now(),
        )
    )


@event.listens_for(CartItemModel, "after_insert")
@event.listens_for(CartItemModel, "after_update")
@event.listens_for(CartItemModel, "after_delete")
def cart_items_changed(mapper, connection, target):
    recalculate_cart(connection, target.cart_id)


@event.listens_for(CartModel, "before_update")
def cart_charges_changed(mapper, connection, target):
    state = inspect(target)
    if not any(state.attrs[name].history.has_changes() for name in ("tax_amount", "shipping_amount", "discount_amount")):
        return
    #subtotal bierzemy z bazy, w pamieci moze byc nieaktualny
    target.total_amount = (
        carts.c.subtotal
        + Decimal(str(target.tax_amount or 0))
        + Decimal(str(target.shipping_amount or 0))
        - Decimal(str(target.discount_amount or 0))
    )


# ---------- zamowienia ----------

def next_order_number(connection) -> str:
    current = connection.scalar(
        select(func.max(cast(func.substr(orders.c.order_number, len(ORDER_PREFIX) + 1), Integer)))
        .where(orders.c.order_number.like(f"{ORDER_PREFIX}%"))
    )
    return f"{ORDER_PREFIX}{(current or 0) + 1:06d}"


@event.listens_for(OrderModel, "before_insert")
def assign_order_number(mapper, connection, target):
    if target.order_number:
        return
    target.order_number = next_order_number(connection)


def write_ledger(connection, product_id, tx_type: str, quantity: int, reference_type=None, reference_id=None, notes=None):
    connection.execute(
        insert(inventory_tx).values(
            product_id=product_id,
            type=tx_type,
            quantity=quantity,
            reference_type=reference_type,
            reference_id=reference_id,
            notes=notes,
        )
    )


def _available(connection, product_id) -> int | None:
    row = connection.execute(
        select(inventory.c.quantity, inventory.c.reserved).where(inventory.c.product_id == product_id)
    ).first()
    return None if row is None else row.quantity - row.reserved


def reserve_stock(connection, product_id, quantity: int, reference_type=None, reference_id=None, tx_type="reserved", notes=None):
    """reserved += quantity tylko gdy starcza dostepnych sztuk (warunek w WHERE)."""
    result = connection.execute(
        update(inventory)
        .where(
            inventory.c.product_id == product_id,
            inventory.c.quantity - inventory.c.reserved >= quantity,
        )
        .values(reserved=inventory.c.reserved + quantity, updated_at=func.now())
    )
    if result.rowcount == 0:
        available = _available(connection, product_id)
        logger.warning(f"Reservation of {quantity} for product {product_id} rejected, available {available}")
        raise InsufficientInventoryError(str(product_id), quantity, available or 0)
    write_ledger(connection, product_id, tx_type, quantity, reference_type, reference_id, notes)


def release_stock(connection, product_id, quantity: int, reference_type=None, reference_id=None, tx_type="unreserved", notes=None):
    """reserved -= quantity tylko gdy tyle jest zarezerwowane (warunek w WHERE)."""
    result = connection.execute(
        update(inventory)
        .where(
            inventory.c.product_id == product_id,
            inventory.c.reserved >= quantity,
        )
        .values(reserved=inventory.c.reserved - quantity, updated_at=func.now())
    )
    if result.rowcount == 0:
        reserved = connection.scalar(select(inventory.c.reserved).where(inventory.c.product_id == product_id))
        logger.warning(f"Release of {quantity} for product {product_id} rejected, reserved {reserved}")
        raise ValidationError(f"Cannot release {quantity} units of product {product_id}: only {reserved or 0} reserved")
    signed = -quantity if tx_type == "adjustment" else quantity
    write_ledger(connection, product_id, tx_type, signed, reference_type, reference_id, notes)


@event.listens_for(OrderItemModel, "after_insert")
def reserve_for_order_line(mapper, connection, target):
    if target.product_id is None:
        return
    reserve_stock(
        connection, target.product_id, target.quantity,
        reference_type="order", reference_id=target.order_id,
        notes=f"Reserved for order line {target.id}",
    )


@event.listens_for(OrderItemModel, "after_update")
def adjust_order_line_reservation(mapper, connection, target):
    if target.product_id is None:
        return
    history = inspect(target).attrs.quantity.history
    if not history.deleted:
        return
    delta = target.quantity - history.deleted[0]
    if delta > 0:
        reserve_stock(
            connection, target.product_id, delta,
            reference_type="order", reference_id=target.order_id,
            tx_type="adjustment", notes="Order line quantity increased",
        )
    elif delta < 0:
        release_stock(
            connection, target.product_id, -delta,
            reference_type="order", reference_id=target.order_id,
            tx_type="adjustment", notes="Order line quantity decreased",
        )


@event.listens_for(OrderItemModel, "after_delete")
def release_for_order_line(mapper, connection, target):
    if target.product_id is None:
        return
    release_stock(
        connection, target.product_id, target.quantity,
        reference_type="order", reference_id=target.order_id,
        notes=f"Released order line {target.id}",
    )


# ---------- rabaty ----------

@event.listens_for(DiscountUsageModel, "after_insert")
def count_discount_usage(mapper, connection, target):
    connection.execute(
        update(discounts)
        .where(discounts.c.id == target.discount_id)
        .values(used_count=discounts.c.used_count + 1)
    )


@event.listens_for(DiscountUsageModel, "after_delete")
def uncount_discount_usage(mapper, connection, target):
    connection.execute(
        update(discounts)
        .where(discounts.c.id == target.discount_id, discounts.c.used_count > 0)
        .values(used_count=discounts.c.used_count - 1)
    )


# ---------- recenzje ----------

@event.listens_for(ReviewHelpfulnessModel, "after_insert")
@event.listens_for(ReviewHelpfulnessModel, "after_update")
@event.listens_for(ReviewHelpfulnessModel, "after_delete")
def recount_helpful(mapper, connection, target):
    helpful = (
        select(func.count())
        .select_from(review_votes)
        .where(review_votes.c.review_id == target.review_id, review_votes.c.is_helpful.is_(True))
        .scalar_subquery()
    )
    connection.execute(update(reviews).where(reviews.c.id == target.review_id).values(helpful_count=helpful))
