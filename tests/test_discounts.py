import uuid
from datetime import timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest

from storefront.domain.errors import ConflictError, ValidationError
from storefront.domain.schemas import DiscountCreate
from storefront.services.discount_service import DiscountService
from storefront.utils.time import now_utc


def _line(total, product_id=None):
    return SimpleNamespace(product_id=product_id or uuid.uuid4(), total_price=Decimal(total))


def _create(db, **kw):
    data = {"code": "CODE", "name": "Promo", "type": "percentage", "value": Decimal("10")}
    data.update(kw)
    return DiscountService(db).create_discount(DiscountCreate(**data))


class TestCreate:
    def test_code_is_normalized(self, db):
        assert _create(db, code=" spring ").code == "SPRING"

    def test_duplicate_code_any_case(self, db):
        _create(db, code="SPRING")
        with pytest.raises(ConflictError):
            _create(db, code="spring")

    def test_percentage_over_100(self, db):
        with pytest.raises(ValidationError):
            _create(db, value=Decimal("150"))


class TestValidate:
    def test_unknown_code(self, db):
        with pytest.raises(ValidationError, match="not found"):
            DiscountService(db).validate("NOPE", lines=[_line("10")])

    def test_not_yet_active_and_expired(self, db):
        now = now_utc()
        _create(db, code="SOON", valid_from=now + timedelta(days=1))
        _create(db, code="GONE", valid_until=now - timedelta(days=1))
        svc = DiscountService(db)

        with pytest.raises(ValidationError, match="not active yet"):
            svc.validate("SOON", lines=[_line("10")])
        with pytest.raises(ValidationError, match="expired"):
            svc.validate("GONE", lines=[_line("10")])

    def test_minimum_amount(self, db):
        _create(db, minimum_amount=Decimal("50"))
        svc = DiscountService(db)

        with pytest.raises(ValidationError, match="Minimum order amount"):
            svc.validate("CODE", lines=[_line("49.99")])
        assert svc.validate("CODE", lines=[_line("50.00")]).code == "CODE"

    def test_usage_limit(self, db, make_user):
        discount = _create(db, usage_limit=1)
        svc = DiscountService(db)
        svc.record_usage(discount, None, make_user().id, Decimal("1"))
        db.commit()

        with pytest.raises(ValidationError, match="usage limit"):
            svc.validate("CODE", lines=[_line("10")])

    def test_one_time_use_per_user(self, db, make_user):
        discount = _create(db, one_time_use=True)
        svc = DiscountService(db)
        used, fresh = make_user(), make_user()
        svc.record_usage(discount, None, used.id, Decimal("1"))
        db.commit()

        with pytest.raises(ValidationError, match="already been used"):
            svc.validate("CODE", used.id, [_line("10")])
        assert svc.validate("CODE", fresh.id, [_line("10")]) is not None

    def test_user_restricted(self, db, make_user):
        allowed = make_user()
        _create(db, applies_to="users", users=[allowed.id])
        svc = DiscountService(db)

        assert svc.validate("CODE", allowed.id, [_line("10")]) is not None
        with pytest.raises(ValidationError):
            svc.validate("CODE", make_user().id, [_line("10")])

    def test_product_restricted(self, db):
        target = uuid.uuid4()
        _create(db, applies_to="products", products=[target])
        svc = DiscountService(db)

        with pytest.raises(ValidationError, match="does not apply"):
            svc.validate("CODE", lines=[_line("10")])

        quote = svc.quote("CODE", lines=[_line("10"), _line("30", target)])
        assert quote["discount_amount"] == Decimal("3.00")


class TestAmounts:
    @pytest.mark.parametrize(
        "kind,value,maximum,eligible,expected",
        [
            ("percentage", "10", None, "80.00", "8.00"),
            ("percentage", "50", "15", "80.00", "15.00"),
            ("fixed_amount", "20", None, "80.00", "20.00"),
            ("fixed_amount", "20", None, "12.50", "12.50"),
            ("free_shipping", "0", None, "80.00", "0.00"),
        ],
    )
    def test_calculate_amount(self, kind, value, maximum, eligible, expected):
        discount = SimpleNamespace(
            type=kind,
            value=Decimal(value),
            maximum_discount=Decimal(maximum) if maximum else None,
        )
        assert DiscountService.calculate_amount(discount, Decimal(eligible)) == Decimal(expected)


class TestExpire:
    def test_expire_old(self, db):
        gone = _create(db, code="GONE", valid_until=now_utc() - timedelta(hours=1))
        live = _create(db, code="LIVE", valid_until=now_utc() + timedelta(days=1))

        assert DiscountService(db).expire_old() == 1

        db.refresh(gone)
        db.refresh(live)
        assert (gone.status, live.status) == ("expired", "active")
