# storefront/repos/order_repo.py
from sqlalchemy import select, func
from sqlalchemy.orm import Session, selectinload

from storefront.data.models.order import OrderModel, OrderItemModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def create_order(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.flush()
        return order

    def get_order(self, order_id) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel)
            .options(selectinload(OrderModel.items))
            .where(OrderModel.id == order_id)
        ).scalar_one_or_none()

    def get_item(self, order_id, item_id) -> OrderItemModel | None:
        return self.db.execute(
            select(OrderItemModel).where(
                OrderItemModel.order_id == order_id,
                OrderItemModel.id == item_id,
            )
        ).scalar_one_or_none()

    def list_by_user(self, user_id) -> list[OrderModel]:
        return list(
            self.db.execute(
                select(OrderModel)
                .options(selectinload(OrderModel.items))
                .where(OrderModel.user_id == user_id)
                .order_by(OrderModel.created_at.desc(), OrderModel.order_number.desc())
            ).scalars().all()
        )

    def count_by_status(self) -> dict[str, int]:
        rows = self.db.execute(
            select(OrderModel.status, func.count()).group_by(OrderModel.status)
        ).all()
        return {status: count for status, count in rows}

    def revenue(self):
        #anulowane i zwrocone nie licza sie do przychodu
        return self.db.execute(
            select(func.coalesce(func.sum(OrderModel.total_amount), 0))
            .where(OrderModel.status.not_in(("cancelled", "refunded")))
        ).scalar_one()
