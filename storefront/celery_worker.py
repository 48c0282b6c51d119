# storefront/celery_worker.py
from celery import Celery

from storefront.utils.settings import CELERY_BROKER_URL, CELERY_RESULT_BACKEND, CELERY_TASK_ALWAYS_EAGER

celery_app = Celery(
    "storefront",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

#taski trzeba zaimportowac jawnie, inaczej worker ich nie zarejestruje
celery_app.conf.imports = (
    "storefront.tasks.expire",
    "storefront.tasks.inventory_audit",
    "storefront.services.notification_service",
)

celery_app.conf.beat_schedule = {
    "expire-discounts-hourly": {
        "task": "storefront.tasks.expire.expire_discounts_task",
        "schedule": 3600.0,
    },
    "audit-inventory-nightly": {
        "task": "storefront.tasks.inventory_audit.audit_inventory_task",
        "schedule": 24 * 3600.0,
    },
}

celery_app.conf.timezone = "UTC"
#w testach taski wykonuja sie od razu, bez brokera
celery_app.conf.task_always_eager = CELERY_TASK_ALWAYS_EAGER
