# storefront/api/routers/orders.py
import uuid
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import user_context
from storefront.data.database import get_db
from storefront.domain.context import RequestContext
from storefront.domain.schemas import (
    OrderCreate,
    OrderItemQuantityUpdate,
    OrderOut,
    OrderStatusUpdate,
    OrderSummaryOut,
)
from storefront.services.order_service import OrderMaterializer

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(db: Session):
    return OrderMaterializer(db)


@router.post("", response_model=OrderOut, status_code=201)
def create_order(
    payload: OrderCreate,
    ctx: RequestContext = Depends(user_context),
    db: Session = Depends(get_db),
):
    """
    Tworzy zamowienie z koszyka uzytkownika i rezerwuje towar.
    Powiadomienie idzie asynchronicznie.
    """
    return get_service(db).materialize(ctx, payload)


@router.get("", response_model=List[OrderOut])
def list_orders(ctx: RequestContext = Depends(user_context), db: Session = Depends(get_db)):
    return get_service(db).list_orders(ctx)


@router.get("/summary", response_model=OrderSummaryOut)
def orders_summary(db: Session = Depends(get_db)):
    return get_service(db).summary()


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: uuid.UUID,
    ctx: RequestContext = Depends(user_context),
    db: Session = Depends(get_db),
):
    return get_service(db).get_order(ctx, order_id)


@router.patch("/{order_id}/status", response_model=OrderOut)
def update_order_status(order_id: uuid.UUID, payload: OrderStatusUpdate, db: Session = Depends(get_db)):
    return get_service(db).update_status(order_id, payload.status, payload.tracking_number)


@router.patch("/{order_id}/items/{item_id}", response_model=OrderOut)
def update_order_item(
    order_id: uuid.UUID,
    item_id: uuid.UUID,
    payload: OrderItemQuantityUpdate,
    db: Session = Depends(get_db),
):
    return get_service(db).update_item_quantity(order_id, item_id, payload.quantity)
