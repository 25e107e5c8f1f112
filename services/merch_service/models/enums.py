"""Enum definitions for merch service models."""

import enum


class ProductCategory(str, enum.Enum):
    APPAREL = "apparel"
    HATS = "hats"
    MUGS = "mugs"
    PHONE_CASES = "phone_cases"
    ACCESSORIES = "accessories"
    STICKERS = "stickers"
    POSTERS = "posters"
    BAGS = "bags"
    HOME_DECOR = "home_decor"
    OTHER = "other"


class StockStatus(str, enum.Enum):
    IN_STOCK = "in_stock"
    LOW_STOCK = "low_stock"
    OUT_OF_STOCK = "out_of_stock"


class ProductSortKey(str, enum.Enum):
    NEWEST = "newest"
    PRICE_LOW = "price_low"
    PRICE_HIGH = "price_high"
    BEST_SELLING = "best_selling"
    FEATURED = "featured"


class PODProvider(str, enum.Enum):
    PRINTIFY = "printify"
    PRINTFUL = "printful"
    GELATO = "gelato"


class PromotionType(str, enum.Enum):
    PERCENTAGE_OFF = "percentage_off"
    FIXED_AMOUNT_OFF = "fixed_amount_off"
    FREE_SHIPPING = "free_shipping"
    BUNDLE_DEAL = "bundle_deal"


class PromotionStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    ACTIVE = "active"
    ENDED = "ended"


class TargetAudience(str, enum.Enum):
    ALL = "all"
    STREAMERS_ONLY = "streamers_only"
    SUPERFANS_ONLY = "superfans_only"
    NEW_USERS = "new_users"


class PromotionDuration(str, enum.Enum):
    THIRTY_MINUTES = "30_minutes"
    ONE_HOUR = "1_hour"
    TWO_HOURS = "2_hours"
    SIX_HOURS = "6_hours"
    TWELVE_HOURS = "12_hours"
    ONE_DAY = "24_hours"
    THREE_DAYS = "3_days"
    SEVEN_DAYS = "7_days"
    FOURTEEN_DAYS = "14_days"
    THIRTY_DAYS = "30_days"


class BuyerTier(str, enum.Enum):
    USER = "user"
    SUPERFAN = "superfan"
    STREAMER = "streamer"


class ShippingMethod(str, enum.Enum):
    STANDARD = "standard"
    EXPRESS = "express"


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    PAYMENT_CONFIRMED = "payment_confirmed"
    SENT_TO_PROVIDER = "sent_to_provider"
    IN_PRODUCTION = "in_production"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class MarkupType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"
