"""Merch service models package."""

from services.merch_service.models.catalog import (
    Product,
    ProductFilter,
    ProviderProduct,
    Variant,
    new_id,
)
from services.merch_service.models.commerce import (
    Buyer,
    Cart,
    CartItem,
    CartTotals,
    Order,
    OrderFilter,
    OrderItem,
    ShippingAddress,
)
from services.merch_service.models.enums import (
    BuyerTier,
    MarkupType,
    OrderStatus,
    PODProvider,
    ProductCategory,
    ProductSortKey,
    PromotionDuration,
    PromotionStatus,
    PromotionType,
    ShippingMethod,
    StockStatus,
    TargetAudience,
)
from services.merch_service.models.fees import (
    FeeStructure,
    StreamerFeeStatus,
    SuperfanFeeStatus,
)
from services.merch_service.models.promotions import (
    Promotion,
    PromotionFilter,
    PromotionValidation,
)
from services.merch_service.models.providers import (
    MarkupRule,
    PriceQuote,
    PriceRange,
    ProviderAccess,
    ProviderConnection,
    ProviderRoutingRule,
    RoutingConditions,
    SyncResult,
)

__all__ = [
    "Buyer",
    "BuyerTier",
    "Cart",
    "CartItem",
    "CartTotals",
    "FeeStructure",
    "MarkupRule",
    "MarkupType",
    "Order",
    "OrderFilter",
    "OrderItem",
    "OrderStatus",
    "PODProvider",
    "PriceQuote",
    "PriceRange",
    "Product",
    "ProductCategory",
    "ProductFilter",
    "ProductSortKey",
    "Promotion",
    "PromotionDuration",
    "PromotionFilter",
    "PromotionStatus",
    "PromotionType",
    "PromotionValidation",
    "ProviderAccess",
    "ProviderConnection",
    "ProviderProduct",
    "ProviderRoutingRule",
    "RoutingConditions",
    "ShippingAddress",
    "ShippingMethod",
    "StockStatus",
    "SyncResult",
    "StreamerFeeStatus",
    "SuperfanFeeStatus",
    "TargetAudience",
    "Variant",
    "new_id",
]
