# storefront/api/routers/inventory.py
import uuid
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.domain.schemas import (
    InventoryAdjustIn,
    InventoryOut,
    InventoryTransactionOut,
    ReconcileOut,
    ReorderIn,
)
from storefront.services.inventory_service import InventoryLedger

router = APIRouter(prefix="/inventory", tags=["inventory"])


def get_service(db: Session):
    return InventoryLedger(db)


#sciezki stale przed /{product_id}
@router.get("/transactions", response_model=List[InventoryTransactionOut])
def list_transactions(
    product_id: uuid.UUID | None = Query(None),
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
):
    return get_service(db).transactions(product_id, limit)


@router.get("/low-stock", response_model=List[InventoryOut])
def low_stock(db: Session = Depends(get_db)):
    return get_service(db).low_stock()


@router.get("/{product_id}", response_model=InventoryOut)
def get_inventory(product_id: uuid.UUID, db: Session = Depends(get_db)):
    return get_service(db).get(product_id)


@router.post("/{product_id}/adjust", response_model=InventoryOut)
def adjust_inventory(product_id: uuid.UUID, payload: InventoryAdjustIn, db: Session = Depends(get_db)):
    svc = get_service(db)
    svc.adjust(product_id, payload.quantity, payload.notes, tx_type=payload.type)
    db.commit()
    return svc.get(product_id)


@router.get("/{product_id}/reconcile", response_model=ReconcileOut)
def reconcile_inventory(product_id: uuid.UUID, db: Session = Depends(get_db)):
    report = get_service(db).reconcile(product_id)
    return {
        "product_id": report.product_id,
        "expected_quantity": report.expected_quantity,
        "expected_reserved": report.expected_reserved,
        "actual_quantity": report.actual_quantity,
        "actual_reserved": report.actual_reserved,
        "consistent": report.consistent,
    }


@router.put("/{product_id}/reorder", response_model=InventoryOut)
def set_reorder(product_id: uuid.UUID, payload: ReorderIn, db: Session = Depends(get_db)):
    svc = get_service(db)
    svc.set_reorder_point(product_id, payload.reorder_point, payload.reorder_quantity)
    db.commit()
    return svc.get(product_id)
