"""Seed script for merch sample data.

Loads a small catalog for three streamers, the launch promotions and the
default fee/routing/markup rules so the checkout flow can be exercised
end-to-end.

Usage:
    python -m services.merch_service.seed_merch_data
"""

import asyncio
from datetime import timedelta
from decimal import Decimal

from libs.common.config import get_settings
from libs.db.config import get_engine, get_session_factory
from libs.db.kv_store import SqlKeyValueStore, create_kv_schema
from services.merch_service.engine import MerchEngine
from services.merch_service.models import (
    PODProvider,
    ProductCategory,
    Promotion,
    PromotionDuration,
    PromotionStatus,
    PromotionType,
    StockStatus,
    TargetAudience,
    Variant,
)


def _variant(title: str, provider_variant_id: int, **kwargs) -> Variant:
    return Variant(title=title, provider_variant_id=str(provider_variant_id), **kwargs)


SAMPLE_PRODUCTS = [
    {
        "streamer_id": "streamer-1",
        "streamer_name": "ProGamer",
        "provider_product_id": "print-001",
        "title": "ProGamer Logo Hoodie",
        "description": "Premium cotton blend hoodie featuring the iconic ProGamer logo",
        "category": ProductCategory.APPAREL,
        "base_cost": Decimal("25.00"),
        "markup": Decimal("15.00"),
        "images": [
            "https://images.unsplash.com/photo-1556821840-3a63f95609a7?w=400",
            "https://images.unsplash.com/photo-1578662996442-48f60103fc96?w=400",
        ],
        "variants": [
            _variant("Small - Black", 1, size="S", color="Black"),
            _variant("Medium - Black", 2, size="M", color="Black"),
            _variant("Large - Black", 3, size="L", color="Black"),
            _variant(
                "XL - Black",
                4,
                size="XL",
                color="Black",
                additional_price=Decimal("2.00"),
                stock_status=StockStatus.LOW_STOCK,
            ),
        ],
        "is_featured": True,
        "tags": ["hoodie", "apparel", "gaming"],
    },
    {
        "streamer_id": "streamer-1",
        "streamer_name": "ProGamer",
        "provider_product_id": "print-002",
        "title": "ProGamer Cap",
        "description": "Adjustable snapback cap with embroidered logo",
        "category": ProductCategory.HATS,
        "base_cost": Decimal("12.00"),
        "markup": Decimal("8.00"),
        "images": ["https://images.unsplash.com/photo-1588850561407-ed78c282e89b?w=400"],
        "variants": [
            _variant("One Size - Black", 5, color="Black"),
            _variant("One Size - White", 6, color="White"),
        ],
        "tags": ["cap", "hat", "accessories"],
    },
    {
        "streamer_id": "streamer-2",
        "streamer_name": "StreamQueen",
        "provider_product_id": "print-003",
        "title": "StreamQueen Tee",
        "description": "Soft cotton t-shirt with vibrant StreamQueen design",
        "category": ProductCategory.APPAREL,
        "base_cost": Decimal("15.00"),
        "markup": Decimal("10.00"),
        "images": ["https://images.unsplash.com/photo-1521572163474-6864f9cf17ab?w=400"],
        "variants": [
            _variant("Small - Pink", 7, size="S", color="Pink"),
            _variant("Medium - Pink", 8, size="M", color="Pink"),
            _variant("Large - Pink", 9, size="L", color="Pink"),
        ],
        "is_featured": True,
        "tags": ["tshirt", "apparel"],
    },
    {
        "streamer_id": "streamer-2",
        "streamer_name": "StreamQueen",
        "provider_product_id": "print-004",
        "title": "StreamQueen Mug",
        "description": "Ceramic mug perfect for your morning coffee or gaming sessions",
        "category": ProductCategory.MUGS,
        "base_cost": Decimal("8.00"),
        "markup": Decimal("7.00"),
        "images": ["https://images.unsplash.com/photo-1514228742587-6b1558fcca3d?w=400"],
        "variants": [
            _variant("11oz", 10),
            _variant("15oz", 11, additional_price=Decimal("3.00")),
        ],
        "tags": ["mug", "drinkware"],
    },
    {
        "streamer_id": "streamer-3",
        "streamer_name": "GameMaster",
        "provider_product_id": "print-005",
        "title": "GameMaster Phone Case",
        "description": "Durable phone case with GameMaster branding",
        "category": ProductCategory.PHONE_CASES,
        "base_cost": Decimal("10.00"),
        "markup": Decimal("8.00"),
        "images": ["https://images.unsplash.com/photo-1601593346740-925612772716?w=400"],
        "variants": [
            _variant("iPhone 14", 12),
            _variant("iPhone 15", 13),
            _variant("Samsung S23", 14),
        ],
        "is_featured": True,
        "tags": ["phone case", "accessories"],
    },
]


def sample_promotions(now) -> list[Promotion]:
    month = now + timedelta(days=30)
    return [
        Promotion(
            name="New Streamer Launch Special",
            description="20% off for streamers during their first month",
            type=PromotionType.PERCENTAGE_OFF,
            value=Decimal("20"),
            code="NEWSTREAM20",
            start_date=now,
            end_date=month,
            duration=PromotionDuration.THIRTY_DAYS,
            target_audience=TargetAudience.STREAMERS_ONLY,
            status=PromotionStatus.ACTIVE,
        ),
        Promotion(
            name="Super Fan Exclusive",
            description="15% off for Super Fans",
            type=PromotionType.PERCENTAGE_OFF,
            value=Decimal("15"),
            code="SUPERFAN15",
            start_date=now,
            end_date=month,
            duration=PromotionDuration.THIRTY_DAYS,
            target_audience=TargetAudience.SUPERFANS_ONLY,
            status=PromotionStatus.ACTIVE,
        ),
        Promotion(
            name="Free Shipping Weekend",
            description="Free shipping on all orders",
            type=PromotionType.FREE_SHIPPING,
            value=Decimal("0"),
            code="FREESHIP",
            min_purchase=Decimal("25"),
            start_date=now,
            end_date=now + timedelta(days=7),
            duration=PromotionDuration.SEVEN_DAYS,
            target_audience=TargetAudience.ALL,
            status=PromotionStatus.ACTIVE,
        ),
    ]


async def seed_merch_data(engine: MerchEngine) -> bool:
    """Load sample data into an empty catalog. Returns False if data already exists."""
    await engine.bootstrap()
    if len(engine.product_repo):
        return False

    for product in SAMPLE_PRODUCTS:
        await engine.catalog.add_product(provider=PODProvider.PRINTIFY, **product)
    for promotion in sample_promotions(engine.clock()):
        await engine.promotions.add_promotion(promotion)
    return True


async def main():
    settings = get_settings()
    if settings.DATABASE_URL.startswith("sqlite"):
        await create_kv_schema(get_engine())
    store = SqlKeyValueStore(get_session_factory(), namespace=settings.KV_NAMESPACE)
    engine = await MerchEngine.open(store, settings=settings)

    print("Seeding merch data...")
    if await seed_merch_data(engine):
        print(
            f"Seeded {len(engine.product_repo)} products and "
            f"{len(engine.promotion_repo)} promotions."
        )
    else:
        print(f"Merch data already exists ({len(engine.product_repo)} products). Skipping seed.")


if __name__ == "__main__":
    asyncio.run(main())
