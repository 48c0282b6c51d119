# storefront/services/notification_service.py
from kombu.exceptions import OperationalError

from storefront.celery_worker import celery_app
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Powiadomienia wysylane przez Celery, zawsze juz po commicie.
    Niedzialajacy broker nie cofa zamowienia, tylko logujemy.
    """

    @staticmethod
    def send_order_notification(user_id, order_id, order_number: str):
        try:
            send_order_notification_task.delay(str(user_id), str(order_id), order_number)
        except OperationalError as e:
            logger.warning(f"Order notification for {order_number} not queued: {e}")

    @staticmethod
    def send_low_stock_alert(product_id, sku: str, available: int, threshold: int):
        try:
            send_low_stock_alert_task.delay(str(product_id), sku, available, threshold)
        except OperationalError as e:
            logger.warning(f"Low stock alert for {sku} not queued: {e}")


@celery_app.task(name="storefront.services.notification_service.send_order_notification_task")
def send_order_notification_task(user_id: str, order_id: str, order_number: str):
    """
    W prawdziwym systemie email/SMS/push, teraz tylko log.
    """
    logger.info(f"[NOTIFICATION] User {user_id}: order {order_number} ({order_id}) placed")
    return {"user_id": user_id, "order_id": order_id, "order_number": order_number, "status": "sent"}


@celery_app.task(name="storefront.services.notification_service.send_low_stock_alert_task")
def send_low_stock_alert_task(product_id: str, sku: str, available: int, threshold: int):
    logger.warning(f"[LOW STOCK] {sku} ({product_id}): {available} available, threshold {threshold}")
    return {"product_id": product_id, "sku": sku, "available": available, "status": "sent"}
