import uuid
from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class ProductFilter:
    query: str | None = None
    category_id: uuid.UUID | None = None
    brand: str | None = None
    min_price: Decimal | None = None
    max_price: Decimal | None = None
    featured: bool | None = None
    in_stock: bool | None = None
    status: str | None = "active"
    sort_by: str = "newest"
    page: int = 1
    limit: int = 20

    @property
    def offset(self) -> int:
        return (max(self.page, 1) - 1) * self.limit
