"""Provider connection, routing, access and markup records."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.datetime_utils import utc_now
from pydantic import BaseModel, Field
from services.merch_service.models.catalog import new_id
from services.merch_service.models.enums import (
    MarkupType,
    PODProvider,
    ProductCategory,
)


class ProviderConnection(BaseModel):
    streamer_id: str
    provider: PODProvider
    api_token: str
    store_id: Optional[str] = None
    store_name: Optional[str] = None
    is_connected: bool = True
    last_sync_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utc_now)


class PriceRange(BaseModel):
    min: Optional[Decimal] = None
    max: Optional[Decimal] = None


class RoutingConditions(BaseModel):
    """Every present condition must match; an empty set matches everything."""

    categories: list[ProductCategory] = Field(default_factory=list)
    product_ids: list[str] = Field(default_factory=list)
    streamer_ids: list[str] = Field(default_factory=list)
    price_range: Optional[PriceRange] = None
    tags: list[str] = Field(default_factory=list)


class ProviderRoutingRule(BaseModel):
    id: str = Field(default_factory=new_id)
    name: str
    description: str = ""
    priority: int  # lower number wins
    is_active: bool = True
    conditions: RoutingConditions = Field(default_factory=RoutingConditions)
    provider: PODProvider
    fallback_provider: Optional[PODProvider] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class ProviderAccess(BaseModel):
    """Allow-list of providers a streamer may connect."""

    streamer_id: str
    streamer_name: str = ""
    allowed_providers: list[PODProvider] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class MarkupRule(BaseModel):
    id: str = Field(default_factory=new_id)
    name: str
    description: str = ""
    is_global: bool = False
    product_ids: list[str] = Field(default_factory=list)
    categories: list[ProductCategory] = Field(default_factory=list)
    streamer_ids: list[str] = Field(default_factory=list)
    markup_type: MarkupType = MarkupType.PERCENTAGE
    markup_value: Decimal
    platform_fee_override: Optional[Decimal] = None
    priority: int = 100
    is_active: bool = True
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class PriceQuote(BaseModel):
    markup: Decimal
    platform_fee_percent: Decimal
    platform_fee: Decimal
    final_price: Decimal


class SyncResult(BaseModel):
    success: bool
    synced_count: int = 0
    error: Optional[str] = None
    message: Optional[str] = None
