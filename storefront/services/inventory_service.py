# storefront/services/inventory_service.py
from dataclasses import dataclass

from sqlalchemy import update, func
from sqlalchemy.orm import Session

from storefront.data import listeners
from storefront.data.models.inventory import InventoryModel, InventoryTransactionModel
from storefront.domain.errors import NotFoundError, ValidationError, InsufficientInventoryError
from storefront.repos.inventory_repo import InventoryRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ReconcileReport:
    product_id: object
    expected_quantity: int
    expected_reserved: int
    actual_quantity: int
    actual_reserved: int

    @property
    def consistent(self) -> bool:
        return (self.expected_quantity, self.expected_reserved) == (self.actual_quantity, self.actual_reserved)


def replay(transactions) -> tuple[int, int]:
    """
    Odtwarza (quantity, reserved) z historii ruchow.
    adjustment z reference_type 'order' rusza rezerwacje, kazdy inny rusza stan.
    """
    quantity, reserved = 0, 0
    for tx in transactions:
        if tx.type == "in":
            quantity += tx.quantity
        elif tx.type == "out":
            quantity -= tx.quantity
        elif tx.type == "reserved":
            reserved += tx.quantity
        elif tx.type == "unreserved":
            reserved -= tx.quantity
        elif tx.type == "adjustment":
            if tx.reference_type == "order":
                reserved += tx.quantity
            else:
                quantity += tx.quantity
    return quantity, reserved


def stock_level(inv: InventoryModel) -> str:
    if inv.available <= 0:
        return "out_of_stock"
    if inv.available <= inv.low_stock_threshold:
        return "low_stock"
    return "in_stock"


class InventoryLedger:
    """
    Stan magazynu: quantity (na stanie) i reserved (zarezerwowane przez zamowienia).
    Kazda zmiana idzie w parze z wpisem w inventory_transactions, w tej samej transakcji.
    Metody nie commituja, robi to wolajacy.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = InventoryRepo(db)

    def _get(self, product_id) -> InventoryModel:
        inv = self.repo.get_by_product(product_id)
        if not inv:
            raise NotFoundError(f"Inventory for product {product_id} not found")
        return inv

    def _conn(self):
        #flush zeby ORM i Core widzialy to samo
        self.db.flush()
        return self.db.connection()

    def _reload(self, product_id) -> InventoryModel:
        self.db.flush()
        inv = self._get(product_id)
        self.db.refresh(inv)
        return inv

    # ---------- rezerwacje ----------
    def reserve(self, product_id, quantity: int, reference_id=None, reference_type: str = "order") -> InventoryModel:
        if quantity <= 0:
            raise ValidationError("Quantity must be greater than 0")
        self._get(product_id)
        listeners.reserve_stock(
            self._conn(), product_id, quantity,
            reference_type=reference_type, reference_id=reference_id,
            notes="Manual reservation",
        )
        logger.info(f"Reserved {quantity} of product {product_id} (ref {reference_id})")
        return self._reload(product_id)

    def release(self, product_id, quantity: int, reference_id=None, reference_type: str = "order") -> InventoryModel:
        if quantity <= 0:
            raise ValidationError("Quantity must be greater than 0")
        self._get(product_id)
        listeners.release_stock(
            self._conn(), product_id, quantity,
            reference_type=reference_type, reference_id=reference_id,
            notes="Reservation released",
        )
        logger.info(f"Released {quantity} of product {product_id} (ref {reference_id})")
        return self._reload(product_id)

    # ---------- stan ----------
    def adjust(self, product_id, delta: int, reason: str | None = None, tx_type: str = "adjustment", user_id=None) -> InventoryModel:
        """
        quantity += delta. Dla 'in' i 'out' delta jest podawana jako dodatnia ilosc,
        w ledgerze zapisujemy ja bez znaku. Stan nie moze spasc ponizej reserved.
        """
        if tx_type not in ("in", "out", "adjustment"):
            raise ValidationError(f"Unsupported adjustment type {tx_type}")
        if tx_type in ("in", "out") and delta <= 0:
            raise ValidationError("Quantity must be greater than 0")
        if delta == 0:
            raise ValidationError("Adjustment must not be zero")

        change = -delta if tx_type == "out" else delta
        inv = self._get(product_id)
        inventory = InventoryModel.__table__
        result = self._conn().execute(
            update(inventory)
            .where(
                inventory.c.product_id == product_id,
                inventory.c.quantity + change >= inventory.c.reserved,
            )
            .values(quantity=inventory.c.quantity + change, updated_at=func.now())
        )
        if result.rowcount == 0:
            logger.warning(f"Adjustment {change} for product {product_id} would drop stock below reserved")
            raise InsufficientInventoryError(inv.sku, abs(change), inv.available)

        self.db.add(
            InventoryTransactionModel(
                product_id=product_id,
                type=tx_type,
                quantity=delta,
                reference_type="adjustment" if tx_type == "adjustment" else None,
                notes=reason,
                user_id=user_id,
            )
        )
        logger.info(f"Inventory {tx_type} {delta} for product {product_id}: {reason or '-'}")
        return self._reload(product_id)

    def stock_in(self, product_id, quantity: int, reason: str | None = None, user_id=None) -> InventoryModel:
        return self.adjust(product_id, quantity, reason, tx_type="in", user_id=user_id)

    def stock_out(self, product_id, quantity: int, reason: str | None = None, user_id=None) -> InventoryModel:
        return self.adjust(product_id, quantity, reason, tx_type="out", user_id=user_id)

    def fulfill(self, order) -> None:
        """Wysylka: rezerwacja schodzi, towar schodzi ze stanu."""
        conn = self._conn()
        inventory = InventoryModel.__table__
        for line in order.items:
            if line.product_id is None:
                continue
            listeners.release_stock(
                conn, line.product_id, line.quantity,
                reference_type="order", reference_id=order.id,
                notes=f"Shipped with order {order.order_number}",
            )
            conn.execute(
                update(inventory)
                .where(inventory.c.product_id == line.product_id)
                .values(quantity=inventory.c.quantity - line.quantity, updated_at=func.now())
            )
            listeners.write_ledger(
                conn, line.product_id, "out", line.quantity,
                reference_type="order", reference_id=order.id,
                notes=f"Shipped with order {order.order_number}",
            )
        logger.info(f"Fulfilled order {order.order_number}")

    # ---------- odczyt ----------
    def get(self, product_id) -> InventoryModel:
        return self._reload(product_id)

    def availability(self, product_id) -> dict:
        inv = self._reload(product_id)
        level = stock_level(inv)
        return {
            "product_id": product_id,
            "available": inv.available,
            "in_stock": inv.available > 0,
            "low_stock": level == "low_stock",
            "stock_level": level,
        }

    def low_stock(self) -> list[InventoryModel]:
        return self.repo.low_stock()

    def transactions(self, product_id=None, limit: int = 50) -> list[InventoryTransactionModel]:
        return self.repo.transactions(product_id, limit)

    def set_reorder_point(self, product_id, reorder_point: int, reorder_quantity: int) -> InventoryModel:
        if reorder_point < 0 or reorder_quantity < 1:
            raise ValidationError("Invalid reorder settings")
        inv = self._get(product_id)
        inv.reorder_point = reorder_point
        inv.reorder_quantity = reorder_quantity
        self.db.flush()
        return inv

    # ---------- audyt ----------
    def reconcile(self, product_id) -> ReconcileReport:
        inv = self._get(product_id)
        self.db.flush()
        self.db.refresh(inv)
        expected_quantity, expected_reserved = replay(self.repo.ledger(product_id))
        report = ReconcileReport(
            product_id=product_id,
            expected_quantity=expected_quantity,
            expected_reserved=expected_reserved,
            actual_quantity=inv.quantity,
            actual_reserved=inv.reserved,
        )
        if not report.consistent:
            logger.warning(
                f"Inventory mismatch for product {product_id}: ledger "
                f"({expected_quantity}, {expected_reserved}) vs stored ({inv.quantity}, {inv.reserved})"
            )
        return report

    def reconcile_all(self) -> list[ReconcileReport]:
        mismatches = []
        for inv in self.repo.all():
            report = self.reconcile(inv.product_id)
            if not report.consistent:
                mismatches.append(report)
        return mismatches
