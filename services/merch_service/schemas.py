"""Pydantic request/response schemas for the merch HTTP API.

Domain models are returned directly where their shape is already the
response; the classes here cover request bodies and composite responses.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field
from services.merch_service.models import (
    CartItem,
    FeeStructure,
    MarkupType,
    OrderStatus,
    PODProvider,
    ProductCategory,
    PromotionDuration,
    PromotionStatus,
    PromotionType,
    RoutingConditions,
    ShippingAddress,
    ShippingMethod,
    StreamerFeeStatus,
    TargetAudience,
    Variant,
)

# ============================================================================
# PRODUCT SCHEMAS
# ============================================================================


class ProductCreate(BaseModel):
    title: str = Field(..., max_length=255)
    description: str = ""
    category: ProductCategory = ProductCategory.OTHER
    base_cost: Decimal = Field(..., ge=0)
    markup: Optional[Decimal] = Field(None, ge=0)
    images: list[str] = []
    variants: list[Variant] = []
    tags: list[str] = []
    is_active: bool = True
    is_featured: bool = False
    provider: Optional[PODProvider] = None
    provider_product_id: Optional[str] = None
    provider_override: Optional[PODProvider] = None
    # Admins may create on behalf of a streamer
    streamer_id: Optional[str] = None
    streamer_name: Optional[str] = None


class ProductUpdate(BaseModel):
    title: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    category: Optional[ProductCategory] = None
    base_cost: Optional[Decimal] = Field(None, ge=0)
    markup: Optional[Decimal] = Field(None, ge=0)
    final_price: Optional[Decimal] = Field(None, ge=0)
    images: Optional[list[str]] = None
    variants: Optional[list[Variant]] = None
    tags: Optional[list[str]] = None
    is_active: Optional[bool] = None
    is_featured: Optional[bool] = None
    provider_override: Optional[PODProvider] = None


class BulkProductUpdate(BaseModel):
    product_ids: list[str]
    is_active: Optional[bool] = None
    is_featured: Optional[bool] = None
    category: Optional[ProductCategory] = None
    provider_override: Optional[PODProvider] = None


class BulkUpdateResponse(BaseModel):
    updated: int


# ============================================================================
# CART SCHEMAS
# ============================================================================


class CartItemCreate(BaseModel):
    product_id: str
    variant_id: str
    quantity: int = Field(1, ge=1)


class CartItemUpdate(BaseModel):
    quantity: int


class CartResponse(BaseModel):
    id: str
    items: list[CartItem]
    subtotal: Decimal
    item_count: int
    updated_at: datetime


# ============================================================================
# CHECKOUT / ORDER SCHEMAS
# ============================================================================


class CheckoutRequest(BaseModel):
    shipping_address: ShippingAddress
    shipping_method: ShippingMethod = ShippingMethod.STANDARD
    promotion_code: Optional[str] = None


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    tracking_number: Optional[str] = None
    tracking_url: Optional[str] = None


# ============================================================================
# PROMOTION SCHEMAS
# ============================================================================


class PromotionValidateRequest(BaseModel):
    code: str
    subtotal: Optional[Decimal] = Field(
        None, ge=0, description="Defaults to the caller's cart subtotal"
    )


class PromotionCreate(BaseModel):
    name: str = Field(..., max_length=255)
    description: str = ""
    type: PromotionType
    value: Decimal = Field(..., ge=0)
    code: Optional[str] = None
    min_purchase: Optional[Decimal] = Field(None, ge=0)
    max_discount: Optional[Decimal] = Field(None, ge=0)
    start_date: datetime
    end_date: datetime
    duration: Optional[PromotionDuration] = None
    target_audience: TargetAudience = TargetAudience.ALL
    status: PromotionStatus = PromotionStatus.SCHEDULED
    is_visible: bool = True
    usage_limit: Optional[int] = Field(None, ge=1)


class PromotionUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    value: Optional[Decimal] = Field(None, ge=0)
    code: Optional[str] = None
    min_purchase: Optional[Decimal] = Field(None, ge=0)
    max_discount: Optional[Decimal] = Field(None, ge=0)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    target_audience: Optional[TargetAudience] = None
    status: Optional[PromotionStatus] = None
    is_visible: Optional[bool] = None
    usage_limit: Optional[int] = Field(None, ge=1)


class QuickPromotionCreate(BaseModel):
    name: str = Field(..., max_length=255)
    type: PromotionType
    value: Decimal = Field(..., ge=0)
    duration: PromotionDuration
    target_audience: TargetAudience = TargetAudience.ALL


# ============================================================================
# FEE SCHEMAS
# ============================================================================


class FeeStructureCreate(BaseModel):
    name: str
    description: str = ""
    base_platform_fee: Decimal = Field(..., ge=0, le=100)
    streamer_trial_days: int = Field(..., ge=0)
    superfan_trial_days: int = Field(..., ge=0)
    is_active: bool = True


class FeeStructureUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    base_platform_fee: Optional[Decimal] = Field(None, ge=0, le=100)
    streamer_trial_days: Optional[int] = Field(None, ge=0)
    superfan_trial_days: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


class CustomRateRequest(BaseModel):
    fee_percent: Optional[Decimal] = Field(None, ge=0, le=100)


class SavingsRequest(BaseModel):
    amount: Decimal = Field(..., gt=0)


class StreamerFeeResponse(BaseModel):
    streamer_id: str
    in_trial: bool
    current_fee_percent: Decimal
    status: Optional[StreamerFeeStatus] = None
    fee_structure: Optional[FeeStructure] = None


class SuperfanFeeResponse(BaseModel):
    user_id: str
    streamer_id: str
    fee_waived: bool
    current_fee_percent: Decimal


# ============================================================================
# PROVIDER SCHEMAS
# ============================================================================


class RoutingRuleCreate(BaseModel):
    name: str
    description: str = ""
    priority: int = Field(..., ge=0)
    is_active: bool = True
    conditions: RoutingConditions = RoutingConditions()
    provider: PODProvider
    fallback_provider: Optional[PODProvider] = None


class RoutingRuleUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None
    conditions: Optional[RoutingConditions] = None
    provider: Optional[PODProvider] = None
    fallback_provider: Optional[PODProvider] = None


class ProviderAccessUpdate(BaseModel):
    allowed_providers: list[PODProvider]
    streamer_name: str = ""


class ProviderAccessCheck(BaseModel):
    streamer_id: str
    provider: PODProvider
    allowed: bool


class MarkupRuleCreate(BaseModel):
    name: str
    description: str = ""
    is_global: bool = False
    product_ids: list[str] = []
    categories: list[ProductCategory] = []
    streamer_ids: list[str] = []
    markup_type: MarkupType = MarkupType.PERCENTAGE
    markup_value: Decimal = Field(..., ge=0)
    platform_fee_override: Optional[Decimal] = Field(None, ge=0, le=100)
    priority: int = 100
    is_active: bool = True


class MarkupRuleUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    is_global: Optional[bool] = None
    product_ids: Optional[list[str]] = None
    categories: Optional[list[ProductCategory]] = None
    streamer_ids: Optional[list[str]] = None
    markup_type: Optional[MarkupType] = None
    markup_value: Optional[Decimal] = Field(None, ge=0)
    platform_fee_override: Optional[Decimal] = Field(None, ge=0, le=100)
    priority: Optional[int] = None
    is_active: Optional[bool] = None


class PriceQuoteRequest(BaseModel):
    category: ProductCategory
    base_cost: Decimal = Field(..., ge=0)
    markup: Optional[Decimal] = Field(None, ge=0)


class ProviderConnectRequest(BaseModel):
    provider: PODProvider
    api_token: str
    store_id: Optional[str] = None
    store_name: Optional[str] = None
    validate_credentials: bool = True


class ProviderConnectionResponse(BaseModel):
    """Connection without the credential."""

    streamer_id: str
    provider: PODProvider
    store_id: Optional[str] = None
    store_name: Optional[str] = None
    is_connected: bool
    last_sync_at: Optional[datetime] = None
    created_at: datetime
