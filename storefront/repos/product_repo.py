# storefront/repos/product_repo.py
from sqlalchemy import select, func, or_
from sqlalchemy.orm import Session, selectinload

from storefront.data.models.product import CategoryModel, ProductModel
from storefront.data.models.inventory import InventoryModel
from storefront.domain.filters import ProductFilter


def build_product_query(f: ProductFilter):
    """Jedno miejsce gdzie ProductFilter zamienia sie w select."""
    stmt = select(ProductModel).options(selectinload(ProductModel.inventory))

    if f.status:
        stmt = stmt.where(ProductModel.status == f.status)
    if f.query:
        pattern = f"%{f.query}%"
        stmt = stmt.where(or_(ProductModel.name.ilike(pattern), ProductModel.description.ilike(pattern)))
    if f.category_id:
        stmt = stmt.where(ProductModel.category_id == f.category_id)
    if f.brand:
        stmt = stmt.where(ProductModel.brand == f.brand)
    if f.min_price is not None:
        stmt = stmt.where(ProductModel.price >= f.min_price)
    if f.max_price is not None:
        stmt = stmt.where(ProductModel.price <= f.max_price)
    if f.featured is not None:
        stmt = stmt.where(ProductModel.featured == f.featured)
    if f.in_stock is not None:
        stmt = stmt.join(InventoryModel, InventoryModel.product_id == ProductModel.id)
        if f.in_stock:
            stmt = stmt.where(InventoryModel.available > 0)
        else:
            stmt = stmt.where(InventoryModel.available <= 0)

    if f.sort_by == "price_low":
        stmt = stmt.order_by(ProductModel.price.asc(), ProductModel.id)
    elif f.sort_by == "price_high":
        stmt = stmt.order_by(ProductModel.price.desc(), ProductModel.id)
    else:
        stmt = stmt.order_by(ProductModel.created_at.desc(), ProductModel.id)

    return stmt


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id) -> ProductModel | None:
        return self.db.get(ProductModel, product_id)

    def get_by_sku(self, sku: str) -> ProductModel | None:
        return self.db.execute(
            select(ProductModel).where(ProductModel.sku == sku)
        ).scalar_one_or_none()

    def add(self, obj):
        self.db.add(obj)
        self.db.flush()
        return obj

    def get_category(self, category_id) -> CategoryModel | None:
        return self.db.get(CategoryModel, category_id)

    def search(self, f: ProductFilter) -> tuple[list[ProductModel], int]:
        stmt = build_product_query(f)
        total = self.db.execute(
            select(func.count()).select_from(stmt.order_by(None).subquery())
        ).scalar_one()
        rows = self.db.execute(stmt.offset(f.offset).limit(f.limit)).scalars().all()
        return list(rows), total
