# storefront/tasks/inventory_audit.py
from storefront.celery_worker import celery_app
from storefront.data.database import SessionLocal
from storefront.services.inventory_service import InventoryLedger
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@celery_app.task(name="storefront.tasks.inventory_audit.audit_inventory_task")
def audit_inventory_task():
    """Porownuje stan magazynu z historia ruchow, niezgodnosci tylko raportuje."""
    logger.info("Inventory audit task started")

    db = SessionLocal()
    try:
        mismatches = InventoryLedger(db).reconcile_all()
        for report in mismatches:
            logger.error(
                f"Inventory audit mismatch for {report.product_id}: "
                f"expected ({report.expected_quantity}, {report.expected_reserved}), "
                f"stored ({report.actual_quantity}, {report.actual_reserved})"
            )
        logger.info(f"Inventory audit finished, {len(mismatches)} mismatches")
        return [str(report.product_id) for report in mismatches]
    finally:
        db.close()
