import uuid
from decimal import Decimal

import pytest

from storefront.domain.errors import ConflictError, NotFoundError
from storefront.domain.filters import ProductFilter
from storefront.domain.schemas import CategoryCreate, ProductCreate, ProductUpdate
from storefront.services.catalog_service import CatalogService
from storefront.services.inventory_service import InventoryLedger


class TestSlugs:
    def test_duplicate_names_get_suffix(self, make_product):
        first = make_product(name="Red Shoes, 42!")
        second = make_product(name="Red shoes 42")

        assert first.slug == "red-shoes-42"
        assert second.slug == "red-shoes-42-1"

    def test_rename_regenerates_slug(self, db, make_product):
        product = make_product(name="Old Name")

        product = CatalogService(db).update_product(product.id, ProductUpdate(name="New Name"))

        assert product.slug == "new-name"

    def test_category_slug(self, db):
        svc = CatalogService(db)
        parent = svc.create_category(CategoryCreate(name="Home & Garden"))
        child = svc.create_category(CategoryCreate(name="Home Garden", parent_id=parent.id))

        assert (parent.slug, child.slug) == ("home-garden", "home-garden-1")


class TestProducts:
    def test_product_starts_with_stock_in_ledger(self, db, make_product):
        product = make_product(stock=12)
        ledger = InventoryLedger(db)

        [tx] = ledger.transactions(product.id)

        assert (tx.type, tx.quantity, tx.notes) == ("in", 12, "Initial stock")
        assert ledger.get(product.id).quantity == 12

    def test_duplicate_sku(self, make_product):
        make_product(sku="SKU-1")
        with pytest.raises(ConflictError):
            make_product(sku="SKU-1")

    def test_unknown_category(self, db):
        payload = ProductCreate(name="X", sku="X-1", price=Decimal("1"), category_id=uuid.uuid4())
        with pytest.raises(NotFoundError):
            CatalogService(db).create_product(payload)

    def test_unknown_product(self, db):
        with pytest.raises(NotFoundError):
            CatalogService(db).get_product(uuid.uuid4())


class TestSearch:
    @pytest.fixture()
    def catalog(self, make_product):
        return {
            "cheap": make_product(name="Cheap pen", price="1.00", stock=5, brand="Bic"),
            "mid": make_product(name="Desk lamp", price="25.00", stock=0, featured=True),
            "pricey": make_product(name="Fountain pen", price="80.00", stock=2, brand="Parker"),
            "draft": make_product(name="Draft pen", price="5.00", status="draft"),
        }

    def _names(self, db, **kw):
        result = CatalogService(db).search(ProductFilter(**kw))
        return [p.name for p in result["items"]]

    def test_only_active_by_default(self, db, catalog):
        assert "Draft pen" not in self._names(db)

    def test_text_query(self, db, catalog):
        assert sorted(self._names(db, query="pen")) == ["Cheap pen", "Fountain pen"]

    def test_price_range_and_sort(self, db, catalog):
        assert self._names(db, min_price=Decimal("1.00"), max_price=Decimal("30"), sort_by="price_high") == [
            "Desk lamp",
            "Cheap pen",
        ]
        assert self._names(db, sort_by="price_low") == ["Cheap pen", "Desk lamp", "Fountain pen"]

    def test_in_stock_filter(self, db, catalog):
        assert sorted(self._names(db, in_stock=True)) == ["Cheap pen", "Fountain pen"]
        assert self._names(db, in_stock=False) == ["Desk lamp"]

    def test_brand_and_featured(self, db, catalog):
        assert self._names(db, brand="Parker") == ["Fountain pen"]
        assert self._names(db, featured=True) == ["Desk lamp"]

    def test_pagination(self, db, catalog):
        result = CatalogService(db).search(ProductFilter(sort_by="price_low", page=2, limit=2))

        assert result["total"] == 3
        assert (result["page"], result["limit"]) == (2, 2)
        assert [p.name for p in result["items"]] == ["Fountain pen"]
