# storefront/domain/schemas.py
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Literal

from pydantic import BaseModel, Field, ConfigDict


# ---------- users ----------

class UserCreate(BaseModel):
    """Schema dla tworzenia uzytkownika."""

    email: str = Field(..., min_length=3, max_length=255)
    name: str | None = Field(None, max_length=100)


class UserRead(BaseModel):
    id: uuid.UUID
    email: str
    name: str | None = None

    model_config = ConfigDict(from_attributes=True)


# ---------- catalog ----------

class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = None
    parent_id: uuid.UUID | None = None
    sort_order: int = 0


class CategoryOut(BaseModel):
    id: uuid.UUID
    name: str
    slug: str
    description: str | None = None
    parent_id: uuid.UUID | None = None
    status: str

    model_config = ConfigDict(from_attributes=True)


class ProductCreate(BaseModel):
    """Schema dla tworzenia produktu, razem z poczatkowym stanem magazynu."""

    name: str = Field(..., min_length=1, max_length=200)
    sku: str = Field(..., min_length=1, max_length=64)
    price: Decimal = Field(..., ge=0)
    description: str | None = None
    compare_at_price: Decimal | None = Field(None, ge=0)
    cost_price: Decimal | None = Field(None, ge=0)
    category_id: uuid.UUID | None = None
    brand: str | None = None
    tags: List[str] = Field(default_factory=list)
    status: Literal["active", "inactive", "draft"] = "draft"
    featured: bool = False
    initial_stock: int = Field(0, ge=0)
    low_stock_threshold: int = Field(5, ge=0)


class ProductUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = None
    price: Decimal | None = Field(None, ge=0)
    compare_at_price: Decimal | None = Field(None, ge=0)
    cost_price: Decimal | None = Field(None, ge=0)
    category_id: uuid.UUID | None = None
    brand: str | None = None
    tags: List[str] | None = None
    status: Literal["active", "inactive", "draft"] | None = None
    featured: bool | None = None


class InventoryOut(BaseModel):
    product_id: uuid.UUID
    sku: str
    quantity: int
    reserved: int
    available: int
    low_stock_threshold: int
    reorder_point: int
    reorder_quantity: int
    location: str | None = None

    model_config = ConfigDict(from_attributes=True)


class ProductOut(BaseModel):
    id: uuid.UUID
    name: str
    slug: str
    sku: str
    price: Decimal
    compare_at_price: Decimal | None = None
    description: str | None = None
    category_id: uuid.UUID | None = None
    brand: str | None = None
    tags: List[str] = []
    status: str
    featured: bool
    inventory: InventoryOut | None = None

    model_config = ConfigDict(from_attributes=True)


class ProductPage(BaseModel):
    items: List[ProductOut]
    total: int
    page: int
    limit: int


class AvailabilityOut(BaseModel):
    product_id: uuid.UUID
    available: int
    in_stock: bool
    low_stock: bool
    stock_level: Literal["in_stock", "low_stock", "out_of_stock"]


# ---------- inventory ----------

class InventoryAdjustIn(BaseModel):
    quantity: int = Field(..., description="Dodatnie dodaje, ujemne odejmuje (dla 'adjustment')")
    type: Literal["in", "out", "adjustment"] = "adjustment"
    notes: str | None = None


class ReorderIn(BaseModel):
    reorder_point: int = Field(..., ge=0)
    reorder_quantity: int = Field(..., ge=1)


class InventoryTransactionOut(BaseModel):
    id: uuid.UUID
    product_id: uuid.UUID
    type: str
    quantity: int
    reference_type: str | None = None
    reference_id: uuid.UUID | None = None
    notes: str | None = None
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class ReconcileOut(BaseModel):
    product_id: uuid.UUID
    expected_quantity: int
    expected_reserved: int
    actual_quantity: int
    actual_reserved: int
    consistent: bool


# ---------- cart ----------

class CartItemIn(BaseModel):
    """Schema dla dodawania produktu do koszyka."""

    product_id: uuid.UUID
    quantity: int = Field(1, gt=0, description="Ilosc produktu (musi byc > 0)")


class CartItemUpdate(BaseModel):
    #0 albo mniej usuwa pozycje
    quantity: int


class CartItemOut(BaseModel):
    id: str
    product_id: uuid.UUID
    quantity: int
    unit_price: Decimal
    total_price: Decimal


class CartOut(BaseModel):
    owner: Literal["user", "guest"]
    cart_id: uuid.UUID | None = None
    user_id: uuid.UUID | None = None
    session_id: str | None = None
    items: List[CartItemOut]
    item_count: int
    subtotal: Decimal
    tax_amount: Decimal = Decimal("0.00")
    shipping_amount: Decimal = Decimal("0.00")
    discount_amount: Decimal = Decimal("0.00")
    total_amount: Decimal
    currency: str
    discount_code: str | None = None


class DiscountApplyIn(BaseModel):
    code: str = Field(..., min_length=1)


class MergeOut(BaseModel):
    merged: int
    added: int
    skipped: int
    skipped_product_ids: List[str]
    cart: CartOut


# ---------- orders ----------

class OrderCreate(BaseModel):
    """Schema dla tworzenia zamowienia z koszyka uzytkownika."""

    shipping_address: Dict[str, Any] | None = None
    billing_address: Dict[str, Any] | None = None
    payment_method: str | None = None
    notes: str | None = None


class OrderItemOut(BaseModel):
    id: uuid.UUID
    product_id: uuid.UUID | None = None
    product_name: str
    product_sku: str | None = None
    quantity: int
    unit_price: Decimal
    total_price: Decimal

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    id: uuid.UUID
    order_number: str
    user_id: uuid.UUID | None = None
    status: str
    payment_status: str
    payment_method: str | None = None
    subtotal: Decimal
    tax_amount: Decimal
    shipping_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    currency: str
    shipping_address: Dict[str, Any] | None = None
    billing_address: Dict[str, Any] | None = None
    notes: str | None = None
    tracking_number: str | None = None
    shipped_at: datetime | None = None
    delivered_at: datetime | None = None
    created_at: datetime | None = None
    items: List[OrderItemOut] = []

    model_config = ConfigDict(from_attributes=True)


class OrderStatusUpdate(BaseModel):
    status: Literal["pending", "processing", "shipped", "delivered", "cancelled", "refunded"]
    tracking_number: str | None = None


class OrderItemQuantityUpdate(BaseModel):
    quantity: int = Field(..., gt=0)


class OrderSummaryOut(BaseModel):
    total_orders: int
    by_status: Dict[str, int]
    revenue: Decimal


# ---------- discounts ----------

class DiscountCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1)
    description: str | None = None
    type: Literal["percentage", "fixed_amount", "free_shipping"]
    value: Decimal = Field(Decimal("0"), ge=0)
    minimum_amount: Decimal | None = Field(None, ge=0)
    maximum_discount: Decimal | None = Field(None, ge=0)
    usage_limit: int | None = Field(None, ge=1)
    one_time_use: bool = False
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    applies_to: Literal["all", "categories", "products", "users"] = "all"
    categories: List[uuid.UUID] = Field(default_factory=list)
    products: List[uuid.UUID] = Field(default_factory=list)
    users: List[uuid.UUID] = Field(default_factory=list)


class DiscountOut(BaseModel):
    id: uuid.UUID
    code: str
    name: str
    type: str
    value: Decimal
    minimum_amount: Decimal | None = None
    maximum_discount: Decimal | None = None
    usage_limit: int | None = None
    used_count: int
    one_time_use: bool
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    status: str
    applies_to: str

    model_config = ConfigDict(from_attributes=True)


class DiscountValidateOut(BaseModel):
    code: str
    discount_amount: Decimal
    free_shipping: bool


# ---------- reviews ----------

class ReviewCreate(BaseModel):
    product_id: uuid.UUID
    rating: int = Field(..., ge=1, le=5)
    title: str | None = Field(None, max_length=200)
    content: str | None = None


class ReviewUpdate(BaseModel):
    rating: int | None = Field(None, ge=1, le=5)
    title: str | None = Field(None, max_length=200)
    content: str | None = None


class ReviewOut(BaseModel):
    id: uuid.UUID
    product_id: uuid.UUID
    user_id: uuid.UUID
    rating: int
    title: str | None = None
    content: str | None = None
    verified_purchase: bool
    helpful_count: int
    status: str
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class ReviewVoteIn(BaseModel):
    is_helpful: bool = True


class ReviewModerationIn(BaseModel):
    status: Literal["approved", "rejected"]


class ReviewStatsOut(BaseModel):
    product_id: uuid.UUID
    total_reviews: int
    average_rating: float
    # klucze 5..1
    rating_distribution: Dict[int, int]
    verified_purchase_percentage: int


# ---------- wishlists ----------

class WishlistItemIn(BaseModel):
    product_id: uuid.UUID


class WishlistUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    is_public: bool | None = None


class WishlistItemOut(BaseModel):
    id: uuid.UUID
    product_id: uuid.UUID
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class WishlistOut(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    name: str
    is_public: bool
    items: List[WishlistItemOut] = []

    model_config = ConfigDict(from_attributes=True)
