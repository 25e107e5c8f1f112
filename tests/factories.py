"""
Model factories for creating valid merch test data.

Every factory returns a valid domain model. Override any field via kwargs.

Usage:
    product = ProductFactory.create(final_price=Decimal("20.00"))
    await merch_engine.product_repo.put(product)
"""

import uuid
from datetime import datetime, timedelta
from decimal import Decimal

from services.merch_service.models import (
    Buyer,
    BuyerTier,
    Product,
    ProductCategory,
    Promotion,
    PromotionStatus,
    PromotionType,
    ShippingAddress,
    StockStatus,
    TargetAudience,
    Variant,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _short_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


class VariantFactory:
    @staticmethod
    def create(**overrides) -> Variant:
        defaults = {
            "id": _short_id("var"),
            "title": "Medium - Black",
            "size": "M",
            "color": "Black",
            "additional_price": Decimal("0.00"),
            "stock_status": StockStatus.IN_STOCK,
            "is_available": True,
        }
        defaults.update(overrides)
        return Variant(**defaults)


class ProductFactory:
    @staticmethod
    def create(**overrides) -> Product:
        """Product priced at $20 with one in-stock variant unless overridden."""
        defaults = {
            "id": _short_id("prod"),
            "streamer_id": "streamer-1",
            "streamer_name": "ProGamer",
            "title": "Logo Hoodie",
            "description": "Cotton blend hoodie",
            "category": ProductCategory.APPAREL,
            "base_cost": Decimal("12.00"),
            "markup": Decimal("6.00"),
            "platform_fee_percent": Decimal("12"),
            "platform_fee": Decimal("2.00"),
            "final_price": Decimal("20.00"),
            "variants": [VariantFactory.create()],
            "tags": ["hoodie"],
        }
        defaults.update(overrides)
        return Product(**defaults)


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------


class ShippingAddressFactory:
    @staticmethod
    def create(**overrides) -> ShippingAddress:
        defaults = {
            "first_name": "Ada",
            "last_name": "Lovelace",
            "address1": "1 Analytical Way",
            "city": "Austin",
            "state": "TX",
            "country": "US",
            "zip_code": "73301",
            "phone": "555-0100",
        }
        defaults.update(overrides)
        return ShippingAddress(**defaults)


class BuyerFactory:
    @staticmethod
    def create(**overrides) -> Buyer:
        defaults = {
            "user_id": "buyer-1",
            "name": "Ada Lovelace",
            "email": "ada@example.com",
            "tier": BuyerTier.USER,
        }
        defaults.update(overrides)
        return Buyer(**defaults)


# ---------------------------------------------------------------------------
# Promotions
# ---------------------------------------------------------------------------


class PromotionFactory:
    @staticmethod
    def create(now: datetime, **overrides) -> Promotion:
        """Active 10%-off promotion running a day either side of ``now``."""
        defaults = {
            "name": "Test Promo",
            "type": PromotionType.PERCENTAGE_OFF,
            "value": Decimal("10"),
            "code": _short_id("PROMO").upper(),
            "start_date": now - timedelta(days=1),
            "end_date": now + timedelta(days=1),
            "target_audience": TargetAudience.ALL,
            "status": PromotionStatus.ACTIVE,
        }
        defaults.update(overrides)
        return Promotion(**defaults)
