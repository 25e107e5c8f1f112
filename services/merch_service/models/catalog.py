"""Catalog models: products and their variants."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.datetime_utils import utc_now
from pydantic import BaseModel, Field
from services.merch_service.models.enums import (
    PODProvider,
    ProductCategory,
    ProductSortKey,
    StockStatus,
)


def new_id() -> str:
    return uuid.uuid4().hex


class Variant(BaseModel):
    """A purchasable option of a product (size/colour)."""

    id: str = Field(default_factory=new_id)
    title: str = ""
    size: Optional[str] = None
    color: Optional[str] = None
    additional_price: Decimal = Decimal("0.00")
    stock_status: StockStatus = StockStatus.IN_STOCK
    is_available: bool = True
    provider_variant_id: Optional[str] = None

    @property
    def available(self) -> bool:
        return self.is_available and self.stock_status != StockStatus.OUT_OF_STOCK


class Product(BaseModel):
    id: str = Field(default_factory=new_id)
    streamer_id: str
    streamer_name: str = ""
    title: str
    description: str = ""
    category: ProductCategory = ProductCategory.OTHER

    # Pricing: final_price = base_cost + markup + platform_fee
    base_cost: Decimal
    markup: Decimal = Decimal("0.00")
    platform_fee_percent: Decimal = Decimal("0")
    platform_fee: Decimal = Decimal("0.00")
    final_price: Decimal = Decimal("0.00")

    images: list[str] = Field(default_factory=list)
    variants: list[Variant] = Field(default_factory=list)
    is_active: bool = True
    is_featured: bool = False
    tags: list[str] = Field(default_factory=list)

    # Fulfillment
    provider: Optional[PODProvider] = None
    provider_product_id: Optional[str] = None
    provider_override: Optional[PODProvider] = None

    # Sales counters, bumped by every committed order line
    units_sold: int = 0
    revenue: Decimal = Decimal("0.00")

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    last_sync_at: Optional[datetime] = None

    def get_variant(self, variant_id: str) -> Optional[Variant]:
        return next((v for v in self.variants if v.id == variant_id), None)

    def __repr__(self):
        return f"<Product {self.title}>"


class ProductFilter(BaseModel):
    streamer_id: Optional[str] = None
    category: Optional[ProductCategory] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    is_active: Optional[bool] = None
    is_featured: Optional[bool] = None
    search_query: Optional[str] = None
    sort_by: Optional[ProductSortKey] = None


class ProviderProduct(BaseModel):
    """Provider-neutral product shape returned by a sync adapter."""

    provider: PODProvider
    provider_product_id: str
    title: str
    description: str = ""
    category: ProductCategory = ProductCategory.APPAREL
    base_cost: Decimal
    images: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    variants: list[Variant] = Field(default_factory=list)
