from datetime import timedelta

from sqlalchemy import update

from storefront.data.models import InventoryModel
from storefront.domain.schemas import DiscountCreate
from storefront.services.discount_service import DiscountService
from storefront.tasks import expire, inventory_audit
from storefront.utils.time import now_utc


class TestTasks:
    def test_expire_discounts_task(self, db, session_factory, monkeypatch):
        monkeypatch.setattr(expire, "SessionLocal", session_factory)
        DiscountService(db).create_discount(
            DiscountCreate(code="OLD", name="Old", type="fixed_amount", value=5, valid_until=now_utc() - timedelta(days=1))
        )

        assert expire.expire_discounts_task.delay().get() == 1

    def test_audit_reports_drift(self, db, session_factory, monkeypatch, make_product):
        monkeypatch.setattr(inventory_audit, "SessionLocal", session_factory)
        ok = make_product(stock=5)
        drifted = make_product(stock=5)
        #zmiana stanu z pominieciem ledgera
        db.execute(update(InventoryModel).where(InventoryModel.product_id == drifted.id).values(quantity=99))
        db.commit()

        result = inventory_audit.audit_inventory_task.delay().get()

        assert result == [str(drifted.id)]
        assert str(ok.id) not in result
