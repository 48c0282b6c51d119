from sqlalchemy import select
from sqlalchemy.orm import Session

from storefront.data.models.inventory import InventoryModel, InventoryTransactionModel


class InventoryRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_by_product(self, product_id) -> InventoryModel | None:
        return self.db.execute(
            select(InventoryModel).where(InventoryModel.product_id == product_id)
        ).scalar_one_or_none()

    def all(self) -> list[InventoryModel]:
        return list(self.db.execute(select(InventoryModel)).scalars().all())

    def low_stock(self) -> list[InventoryModel]:
        return list(
            self.db.execute(
                select(InventoryModel)
                .where(InventoryModel.available <= InventoryModel.low_stock_threshold)
                .order_by(InventoryModel.available)
            ).scalars().all()
        )

    def transactions(self, product_id=None, limit: int = 50) -> list[InventoryTransactionModel]:
        stmt = select(InventoryTransactionModel)
        if product_id is not None:
            stmt = stmt.where(InventoryTransactionModel.product_id == product_id)
        stmt = stmt.order_by(InventoryTransactionModel.created_at.desc()).limit(limit)
        return list(self.db.execute(stmt).scalars().all())

    def ledger(self, product_id) -> list[InventoryTransactionModel]:
        return list(
            self.db.execute(
                select(InventoryTransactionModel).where(InventoryTransactionModel.product_id == product_id)
            ).scalars().all()
        )
