"""Unit tests for merch sales analytics."""

from decimal import Decimal

import pytest
from services.merch_service.models import OrderStatus, ProductCategory
from tests.factories import (
    BuyerFactory,
    ProductFactory,
    PromotionFactory,
    ShippingAddressFactory,
)


async def _buy(engine, buyer_id, product, quantity, promotion_code=None):
    await engine.carts.add(buyer_id, product.id, product.variants[0].id, quantity)
    result = await engine.orders.create(
        buyer_id,
        BuyerFactory.create(user_id=buyer_id),
        ShippingAddressFactory.create(),
        promotion_code=promotion_code,
    )
    return result.value


@pytest.mark.asyncio
@pytest.mark.unit
async def test_merch_analytics(merch_engine, clock):
    hoodie = ProductFactory.create(title="Hoodie")
    mug = ProductFactory.create(
        title="Mug",
        streamer_id="streamer-2",
        streamer_name="StreamQueen",
        category=ProductCategory.MUGS,
    )
    await merch_engine.product_repo.put_many([hoodie, mug])

    await _buy(merch_engine, "buyer-old", hoodie, 2)
    clock.advance(days=31)

    promo = PromotionFactory.create(clock(), code="TEN")
    await merch_engine.promotion_repo.put(promo)
    await _buy(merch_engine, "buyer-1", hoodie, 2)
    await _buy(merch_engine, "buyer-2", mug, 3, promotion_code="TEN")
    cancelled = await _buy(merch_engine, "buyer-3", hoodie, 1)
    await merch_engine.orders.advance(cancelled.id, OrderStatus.CANCELLED)

    report = merch_engine.analytics.merch_analytics(days=30)

    assert report.total_orders == 2
    assert report.total_units == 5
    assert report.total_revenue == Decimal("126.31")
    assert report.average_order_value == Decimal("63.16")

    assert [(s.streamer_id, s.revenue, s.orders, s.units) for s in report.revenue_by_streamer] == [
        ("streamer-2", Decimal("60.00"), 1, 3),
        ("streamer-1", Decimal("40.00"), 1, 2),
    ]
    # Category and product figures are lifetime catalog counters
    assert report.revenue_by_category == {
        ProductCategory.APPAREL: Decimal("100.00"),
        ProductCategory.MUGS: Decimal("60.00"),
    }
    assert [(p.title, p.units_sold) for p in report.top_products] == [
        ("Hoodie", 5),
        ("Mug", 3),
    ]

    [promo_stats] = report.promotion_performance
    assert promo_stats.code == "TEN"
    assert promo_stats.usage_count == 1
    assert promo_stats.orders == 1
    assert promo_stats.discount_given == Decimal("6.00")
    assert promo_stats.revenue == Decimal("71.82")

    [day] = report.revenue_by_day
    assert day.date == clock().date().isoformat()
    assert day.orders == 2
    assert day.revenue == Decimal("126.31")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_empty_analytics(merch_engine):
    report = merch_engine.analytics.merch_analytics()

    assert report.total_orders == 0
    assert report.total_revenue == Decimal("0.00")
    assert report.average_order_value == Decimal("0.00")
    assert report.top_products == []
    assert report.revenue_by_day == []
