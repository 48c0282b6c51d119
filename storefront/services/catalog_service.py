# storefront/services/catalog_service.py
from sqlalchemy.orm import Session

from storefront.data.models.inventory import InventoryModel
from storefront.data.models.product import CategoryModel, ProductModel
from storefront.domain.errors import NotFoundError, ConflictError
from storefront.domain.filters import ProductFilter
from storefront.domain.schemas import CategoryCreate, ProductCreate, ProductUpdate
from storefront.repos.product_repo import ProductRepo
from storefront.services.inventory_service import InventoryLedger
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CatalogService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = ProductRepo(db)
        self.ledger = InventoryLedger(db)

    def create_category(self, payload: CategoryCreate) -> CategoryModel:
        if payload.parent_id and not self.repo.get_category(payload.parent_id):
            raise NotFoundError("Parent category not found")
        category = self.repo.add(CategoryModel(**payload.model_dump()))
        self.db.commit()
        self.db.refresh(category)
        logger.info(f"Created category {category.slug}")
        return category

    def create_product(self, payload: ProductCreate) -> ProductModel:
        """
        Produkt + rekord magazynowy 1:1. Poczatkowy stan idzie przez ledger
        jako ruch 'in', zeby audyt zgadzal sie od pierwszego dnia.
        """
        if self.repo.get_by_sku(payload.sku):
            raise ConflictError(f"Product with SKU {payload.sku} already exists")
        if payload.category_id and not self.repo.get_category(payload.category_id):
            raise NotFoundError("Category not found")

        data = payload.model_dump(exclude={"initial_stock", "low_stock_threshold"})
        product = ProductModel(**data)
        product.inventory = InventoryModel(
            sku=payload.sku,
            quantity=0,
            reserved=0,
            low_stock_threshold=payload.low_stock_threshold,
        )
        self.repo.add(product)

        if payload.initial_stock:
            self.ledger.stock_in(product.id, payload.initial_stock, reason="Initial stock")

        self.db.commit()
        self.db.refresh(product)
        logger.info(f"Created product {product.sku} ({product.slug}) with stock {payload.initial_stock}")
        return product

    def update_product(self, product_id, payload: ProductUpdate) -> ProductModel:
        product = self.get_product(product_id)
        changes = payload.model_dump(exclude_unset=True)
        if "category_id" in changes and changes["category_id"] and not self.repo.get_category(changes["category_id"]):
            raise NotFoundError("Category not found")

        for key, value in changes.items():
            setattr(product, key, value)

        self.db.commit()
        self.db.refresh(product)
        logger.info(f"Updated product {product.id}: {sorted(changes)}")
        return product

    def get_product(self, product_id) -> ProductModel:
        product = self.repo.get_product(product_id)
        if not product:
            raise NotFoundError("Product not found")
        return product

    def search(self, f: ProductFilter) -> dict:
        items, total = self.repo.search(f)
        return {"items": items, "total": total, "page": f.page, "limit": f.limit}
