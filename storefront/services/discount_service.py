# storefront/services/discount_service.py
from decimal import Decimal

from sqlalchemy.orm import Session

from storefront.data.models.discount import DiscountModel, DiscountUsageModel
from storefront.domain.errors import NotFoundError, ValidationError, ConflictError
from storefront.domain.schemas import DiscountCreate
from storefront.repos.discount_repo import DiscountRepo
from storefront.repos.product_repo import ProductRepo
from storefront.services.pricing import money
from storefront.utils.logging import get_logger
from storefront.utils.time import now_utc, as_utc

logger = get_logger(__name__)


class DiscountService:
    """
    Kody rabatowe: walidacja, wyliczenie kwoty, rejestr uzyc.
    used_count pilnuje listener na discount_usage, tu go nie ruszamy.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = DiscountRepo(db)
        self.products = ProductRepo(db)

    def create_discount(self, payload: DiscountCreate) -> DiscountModel:
        if self.repo.get_by_code(payload.code):
            raise ConflictError(f"Discount code {payload.code} already exists")
        if payload.type == "percentage" and payload.value > 100:
            raise ValidationError("Percentage discount cannot exceed 100")
        if payload.valid_from and payload.valid_until and payload.valid_until <= payload.valid_from:
            raise ValidationError("valid_until must be after valid_from")

        data = payload.model_dump()
        for key in ("categories", "products", "users"):
            data[key] = [str(v) for v in data[key]]
        data["code"] = payload.code.strip().upper()

        discount = self.repo.create(DiscountModel(**data))
        self.db.commit()
        self.db.refresh(discount)
        logger.info(f"Created discount {discount.code} ({discount.type} {discount.value})")
        return discount

    def get_by_code(self, code: str) -> DiscountModel:
        discount = self.repo.get_by_code(code)
        if not discount:
            raise NotFoundError(f"Discount code {code} not found")
        return discount

    def eligible_total(self, discount: DiscountModel, lines) -> Decimal:
        """Suma pozycji, ktorych dotyczy rabat."""
        total = Decimal("0")
        for line in lines:
            if discount.applies_to == "products":
                if str(line.product_id) not in (discount.products or []):
                    continue
            elif discount.applies_to == "categories":
                product = self.products.get_product(line.product_id)
                if not product or str(product.category_id) not in (discount.categories or []):
                    continue
            total += Decimal(str(line.total_price))
        return money(total)

    @staticmethod
    def calculate_amount(discount: DiscountModel, eligible_total) -> Decimal:
        eligible_total = money(eligible_total)
        if discount.type == "percentage":
            amount = eligible_total * Decimal(str(discount.value)) / Decimal("100")
        elif discount.type == "fixed_amount":
            amount = Decimal(str(discount.value))
        else:
            #free_shipping zeruje wysylke, kwota rabatu 0
            amount = Decimal("0")

        if discount.maximum_discount is not None and amount > discount.maximum_discount:
            amount = Decimal(str(discount.maximum_discount))
        if amount > eligible_total:
            amount = eligible_total
        return money(amount)

    def validate(self, code: str, user_id=None, lines=(), subtotal=None) -> DiscountModel:
        discount = self.repo.get_by_code(code)
        if not discount or discount.status != "active":
            raise ValidationError("Discount code not found")

        now = now_utc()
        if discount.valid_from and as_utc(discount.valid_from) > now:
            raise ValidationError("Discount code is not active yet")
        if discount.valid_until and as_utc(discount.valid_until) < now:
            raise ValidationError("Discount code has expired")

        if discount.usage_limit and discount.used_count >= discount.usage_limit:
            raise ValidationError("Discount code has reached usage limit")

        if subtotal is None:
            subtotal = sum((Decimal(str(line.total_price)) for line in lines), Decimal("0"))
        if discount.minimum_amount and money(subtotal) < discount.minimum_amount:
            raise ValidationError(f"Minimum order amount is {money(discount.minimum_amount)}")

        if discount.applies_to == "users" and (user_id is None or str(user_id) not in (discount.users or [])):
            raise ValidationError("Discount code is not available for this user")

        if discount.one_time_use and user_id is not None:
            if self.repo.usage_count(discount.id, user_id) > 0:
                raise ValidationError("Discount code has already been used")

        if discount.applies_to in ("products", "categories") and self.eligible_total(discount, lines) == 0:
            raise ValidationError("Discount code does not apply to items in cart")

        return discount

    def quote(self, code: str, user_id=None, lines=(), subtotal=None) -> dict:
        lines = list(lines)
        discount = self.validate(code, user_id, lines, subtotal)
        amount = self.calculate_amount(discount, self.eligible_total(discount, lines))
        return {
            "discount": discount,
            "code": discount.code,
            "discount_amount": amount,
            "free_shipping": discount.type == "free_shipping",
        }

    def record_usage(self, discount: DiscountModel, order_id, user_id, amount) -> DiscountUsageModel:
        usage = self.repo.add_usage(
            DiscountUsageModel(
                discount_id=discount.id,
                order_id=order_id,
                user_id=user_id,
                amount_discounted=money(amount),
            )
        )
        logger.info(f"Discount {discount.code} used on order {order_id}")
        return usage

    def order_usage(self, order_id) -> tuple[DiscountModel | None, DiscountUsageModel | None]:
        usages = self.repo.usages_for_order(order_id)
        if not usages:
            return None, None
        return self.repo.get(usages[0].discount_id), usages[0]

    def release_usage(self, order_id) -> int:
        """Anulowane zamowienie oddaje uzycie kodu, used_count zmniejsza listener."""
        usages = self.repo.usages_for_order(order_id)
        for usage in usages:
            self.repo.delete_usage(usage)
        if usages:
            logger.info(f"Released {len(usages)} discount usage(s) of order {order_id}")
        return len(usages)

    def expire_old(self) -> int:
        count = self.repo.expire_before(now_utc())
        self.db.commit()
        if count:
            logger.info(f"Expired {count} discounts")
        return count
