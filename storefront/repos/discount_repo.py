from sqlalchemy import select, func, update
from sqlalchemy.orm import Session

from storefront.data.models.discount import DiscountModel, DiscountUsageModel


class DiscountRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_by_code(self, code: str) -> DiscountModel | None:
        return self.db.execute(
            select(DiscountModel).where(func.upper(DiscountModel.code) == code.strip().upper())
        ).scalar_one_or_none()

    def create(self, discount: DiscountModel) -> DiscountModel:
        self.db.add(discount)
        self.db.flush()
        return discount

    def add_usage(self, usage: DiscountUsageModel) -> DiscountUsageModel:
        self.db.add(usage)
        self.db.flush()
        return usage

    def usage_count(self, discount_id, user_id=None) -> int:
        stmt = select(func.count()).select_from(DiscountUsageModel).where(
            DiscountUsageModel.discount_id == discount_id
        )
        if user_id is not None:
            stmt = stmt.where(DiscountUsageModel.user_id == user_id)
        return self.db.execute(stmt).scalar_one()

    def expire_before(self, moment) -> int:
        result = self.db.execute(
            update(DiscountModel)
            .where(
                DiscountModel.status == "active",
                DiscountModel.valid_until.is_not(None),
                DiscountModel.valid_until < moment,
            )
            .values(status="expired")
        )
        return result.rowcount

    def get(self, discount_id) -> DiscountModel | None:
        return self.db.get(DiscountModel, discount_id)

    def usages_for_order(self, order_id) -> list[DiscountUsageModel]:
        return list(
            self.db.execute(
                select(DiscountUsageModel).where(DiscountUsageModel.order_id == order_id)
            ).scalars().all()
        )

    def delete_usage(self, usage: DiscountUsageModel):
        self.db.delete(usage)
        self.db.flush()
