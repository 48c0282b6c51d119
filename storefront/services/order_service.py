# storefront/services/order_service.py
from decimal import Decimal

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel, OrderItemModel
from storefront.domain.context import RequestContext
from storefront.domain.errors import (
    StorefrontError,
    NotFoundError,
    ValidationError,
    ForbiddenError,
    EmptyCartError,
    OrderNumberConflictError,
)
from storefront.domain.schemas import OrderCreate
from storefront.repos.order_repo import OrderRepo
from storefront.services.cart_service import CartStore
from storefront.services.discount_service import DiscountService
from storefront.services.inventory_service import InventoryLedger
from storefront.services.notification_service import NotificationService
from storefront.services.pricing import money, shipping_for, tax_for
from storefront.utils.logging import get_logger
from storefront.utils.time import now_utc

logger = get_logger(__name__)

STATUS_TRANSITIONS = {
    "pending": {"processing", "cancelled"},
    "processing": {"shipped", "cancelled"},
    "shipped": {"delivered"},
    "delivered": {"refunded"},
    "cancelled": set(),
    "refunded": set(),
}

EDITABLE_STATUSES = ("pending", "processing")


class OrderMaterializer:
    """
    Serwis odpowiedzialny za domene zamowien.
    Zamowienie to zamrozona kopia koszyka: ceny, nazwy i SKU produktow
    sa kopiowane do pozycji. Rezerwacje robia listenery na order_items.
    """

    def __init__(self, db: Session, notifications: NotificationService | None = None):
        self.db = db
        self.repo = OrderRepo(db)
        self.carts = CartStore(db)
        self.ledger = InventoryLedger(db)
        self.discounts = DiscountService(db)
        self.notifications = notifications or NotificationService()

    def materialize(self, ctx: RequestContext, payload: OrderCreate) -> OrderModel:
        """
        Use Case: zamowienie z koszyka uzytkownika.

        1. pusty koszyk -> EmptyCartError, bez zadnych skutkow
        2. rabat jest walidowany ponownie i zapisywany w discount_usage
        3. zamowienie, pozycje, rezerwacje, uzycie rabatu i czyszczenie koszyka
           ida w jednej transakcji
        4. powiadomienia dopiero po commicie
        """
        user_id = ctx.require_user()
        cart = self.carts.refresh(self.carts.get_or_create_cart(user_id))
        lines = list(cart.items)
        if not lines:
            raise EmptyCartError()

        discount = None
        discount_amount = Decimal("0.00")
        free_shipping = False
        if cart.discount_code:
            quote = self.discounts.quote(cart.discount_code, user_id, lines, cart.subtotal)
            discount = quote["discount"]
            discount_amount = quote["discount_amount"]
            free_shipping = quote["free_shipping"]

        subtotal = money(cart.subtotal)
        shipping = shipping_for(subtotal, free_shipping)
        tax = tax_for(subtotal - discount_amount)

        order = OrderModel(
            user_id=user_id,
            status="pending",
            payment_status="pending",
            payment_method=payload.payment_method,
            subtotal=subtotal,
            tax_amount=tax,
            shipping_amount=shipping,
            discount_amount=discount_amount,
            total_amount=money(subtotal + tax + shipping - discount_amount),
            currency=cart.currency,
            shipping_address=payload.shipping_address,
            billing_address=payload.billing_address,
            notes=payload.notes,
        )
        for line in lines:
            product = line.product
            if product is None or product.status != "active":
                raise ValidationError(f"Product {line.product_id} is no longer available")
            order.items.append(
                OrderItemModel(
                    product_id=product.id,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    total_price=line.total_price,
                    product_name=product.name,
                    product_sku=product.sku,
                )
            )

        try:
            self.repo.create_order(order)
            if discount is not None:
                self.discounts.record_usage(discount, order.id, user_id, discount_amount)
            self.carts.clear(user_id, commit=False)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if "order_number" in str(e.orig):
                logger.warning(f"Order number collision for user {user_id}")
                raise OrderNumberConflictError()
            logger.error(f"Order for user {user_id} failed: {e}")
            raise
        except (SQLAlchemyError, StorefrontError) as e:
            self.db.rollback()
            logger.error(f"Order for user {user_id} failed: {e}")
            raise

        self.db.refresh(order)
        logger.info(f"Order {order.order_number} created from cart {cart.id}, total {order.total_amount}")

        self.notifications.send_order_notification(user_id, order.id, order.order_number)
        self._low_stock_alerts(order)
        return order

    def _low_stock_alerts(self, order: OrderModel):
        for line in order.items:
            if line.product_id is None:
                continue
            inv = self.ledger.get(line.product_id)
            if inv.available <= inv.low_stock_threshold:
                self.notifications.send_low_stock_alert(inv.product_id, inv.sku, inv.available, inv.low_stock_threshold)

    # =====================================================
    # QUERY
    # =====================================================
    def get_order(self, ctx: RequestContext, order_id) -> OrderModel:
        user_id = ctx.require_user()
        order = self._get(order_id)
        if order.user_id != user_id:
            raise ForbiddenError("Brak dostepu do zamowienia")
        return order

    def list_orders(self, ctx: RequestContext) -> list[OrderModel]:
        return self.repo.list_by_user(ctx.require_user())

    def summary(self) -> dict:
        by_status = self.repo.count_by_status()
        return {
            "total_orders": sum(by_status.values()),
            "by_status": by_status,
            "revenue": money(self.repo.revenue()),
        }

    def _get(self, order_id) -> OrderModel:
        order = self.repo.get_order(order_id)
        if not order:
            raise NotFoundError("Zamowienie nie istnieje")
        return order

    # =====================================================
    # COMMANDS
    # =====================================================
    def update_status(self, order_id, status: str, tracking_number: str | None = None) -> OrderModel:
        order = self._get(order_id)
        current = order.status
        if status == current:
            return order
        if status not in STATUS_TRANSITIONS.get(current, set()):
            raise ValidationError(f"Cannot change order status from {current} to {status}")

        try:
            if status == "cancelled":
                #rezerwacje wracaja, pozycje zostaja jako historia
                for line in order.items:
                    if line.product_id is not None:
                        self.ledger.release(line.product_id, line.quantity, reference_id=order.id)
                self.discounts.release_usage(order.id)
            elif status == "shipped":
                self.ledger.fulfill(order)
                order.shipped_at = now_utc()
                if tracking_number:
                    order.tracking_number = tracking_number
            elif status == "delivered":
                order.delivered_at = now_utc()
            elif status == "refunded":
                order.payment_status = "refunded"

            order.status = status
            self.db.commit()
        except (SQLAlchemyError, StorefrontError):
            self.db.rollback()
            raise

        self.db.refresh(order)
        logger.info(f"Order {order.order_number}: {current} -> {status}")
        return order

    def update_item_quantity(self, order_id, item_id, quantity: int) -> OrderModel:
        """Zmiana ilosci na pozycji, rezerwacje koryguje listener o roznice."""
        if quantity <= 0:
            raise ValidationError("Ilosc musi byc wieksza niz 0")
        order = self._get(order_id)
        if order.status not in EDITABLE_STATUSES:
            raise ValidationError(f"Order in status {order.status} cannot be changed")

        item = self.repo.get_item(order.id, item_id)
        if not item:
            raise NotFoundError("Order item not found")

        try:
            item.quantity = quantity
            item.total_price = money(Decimal(str(item.unit_price)) * quantity)
            self.db.flush()
            self._reprice(order)
            self.db.commit()
        except (SQLAlchemyError, StorefrontError):
            self.db.rollback()
            raise

        self.db.refresh(order)
        logger.info(f"Order {order.order_number}: item {item_id} quantity -> {quantity}")
        return order

    def _reprice(self, order: OrderModel):
        """Po zmianie pozycji rabat, podatek i wysylka liczone od nowa jak przy zamowieniu."""
        subtotal = money(sum(Decimal(str(i.total_price)) for i in order.items))
        discount, usage = self.discounts.order_usage(order.id)
        free_shipping = False
        if discount is not None:
            discount_amount = self.discounts.calculate_amount(
                discount, self.discounts.eligible_total(discount, order.items)
            )
            free_shipping = discount.type == "free_shipping"
            usage.amount_discounted = discount_amount
        else:
            discount_amount = min(money(order.discount_amount), subtotal)

        order.subtotal = subtotal
        order.discount_amount = discount_amount
        order.shipping_amount = shipping_for(subtotal, free_shipping)
        order.tax_amount = tax_for(subtotal - discount_amount)
        order.total_amount = money(subtotal + order.tax_amount + order.shipping_amount - discount_amount)
