# storefront/tasks/expire.py
from storefront.celery_worker import celery_app
from storefront.data.database import SessionLocal
from storefront.services.discount_service import DiscountService
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@celery_app.task(name="storefront.tasks.expire.expire_discounts_task")
def expire_discounts_task():
    logger.info("Expire discounts task started")

    db = SessionLocal()
    try:
        count = DiscountService(db).expire_old()
        logger.info(f"Expired {count} discounts")
        return count
    finally:
        db.close()
