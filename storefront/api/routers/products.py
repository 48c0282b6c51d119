# storefront/api/routers/products.py
import uuid
from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.domain.filters import ProductFilter
from storefront.domain.schemas import (
    AvailabilityOut,
    CategoryCreate,
    CategoryOut,
    ProductCreate,
    ProductOut,
    ProductPage,
    ProductUpdate,
)
from storefront.services.catalog_service import CatalogService
from storefront.services.inventory_service import InventoryLedger

router = APIRouter(tags=["catalog"])


def get_service(db: Session):
    return CatalogService(db)


@router.post("/categories", response_model=CategoryOut, status_code=201)
def create_category(payload: CategoryCreate, db: Session = Depends(get_db)):
    return get_service(db).create_category(payload)


@router.post("/products", response_model=ProductOut, status_code=201)
def create_product(payload: ProductCreate, db: Session = Depends(get_db)):
    """
    Tworzy produkt razem z rekordem magazynowym.
    """
    return get_service(db).create_product(payload)


@router.get("/products", response_model=ProductPage)
def search_products(
    q: str | None = Query(None),
    category_id: uuid.UUID | None = Query(None),
    brand: str | None = Query(None),
    min_price: Decimal | None = Query(None, ge=0),
    max_price: Decimal | None = Query(None, ge=0),
    featured: bool | None = Query(None),
    in_stock: bool | None = Query(None),
    status: str | None = Query("active"),
    sort_by: str = Query("newest", pattern="^(newest|price_low|price_high)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    f = ProductFilter(
        query=q,
        category_id=category_id,
        brand=brand,
        min_price=min_price,
        max_price=max_price,
        featured=featured,
        in_stock=in_stock,
        status=status,
        sort_by=sort_by,
        page=page,
        limit=limit,
    )
    return get_service(db).search(f)


@router.get("/products/{product_id}", response_model=ProductOut)
def get_product(product_id: uuid.UUID, db: Session = Depends(get_db)):
    return get_service(db).get_product(product_id)


@router.patch("/products/{product_id}", response_model=ProductOut)
def update_product(product_id: uuid.UUID, payload: ProductUpdate, db: Session = Depends(get_db)):
    return get_service(db).update_product(product_id, payload)


@router.get("/products/{product_id}/availability", response_model=AvailabilityOut)
def product_availability(product_id: uuid.UUID, db: Session = Depends(get_db)):
    get_service(db).get_product(product_id)
    return InventoryLedger(db).availability(product_id)
