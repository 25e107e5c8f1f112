"""Sales reporting over committed orders and catalog counters."""

from collections import defaultdict
from datetime import timedelta
from decimal import Decimal
from typing import Optional

from libs.common.currency import ZERO, round_money
from libs.common.datetime_utils import Clock, ensure_utc, utc_now
from pydantic import BaseModel
from services.merch_service.models import OrderStatus, ProductCategory
from services.merch_service.repositories import (
    CatalogRepository,
    OrderRepository,
    PromotionRepository,
)

EXCLUDED_STATUSES = {OrderStatus.CANCELLED, OrderStatus.REFUNDED}


class StreamerRevenue(BaseModel):
    streamer_id: str
    streamer_name: str
    revenue: Decimal
    orders: int
    units: int


class ProductPerformance(BaseModel):
    product_id: str
    title: str
    streamer_name: str
    units_sold: int
    revenue: Decimal


class PromotionPerformance(BaseModel):
    promotion_id: str
    name: str
    code: Optional[str]
    usage_count: int
    orders: int
    discount_given: Decimal
    revenue: Decimal


class DailyRevenue(BaseModel):
    date: str
    revenue: Decimal
    orders: int


class MerchAnalytics(BaseModel):
    period_days: int
    total_revenue: Decimal
    total_orders: int
    total_units: int
    average_order_value: Decimal
    revenue_by_streamer: list[StreamerRevenue]
    revenue_by_category: dict[ProductCategory, Decimal]
    top_products: list[ProductPerformance]
    promotion_performance: list[PromotionPerformance]
    revenue_by_day: list[DailyRevenue]


class AnalyticsService:
    def __init__(
        self,
        orders: OrderRepository,
        products: CatalogRepository,
        promotions: PromotionRepository,
        *,
        clock: Clock = utc_now,
    ):
        self.orders = orders
        self.products = products
        self.promotions = promotions
        self.clock = clock

    def merch_analytics(self, days: int = 30, top_n: int = 10) -> MerchAnalytics:
        """Summarise the last ``days`` days; cancelled and refunded orders are excluded.

        Category revenue and top products come from the lifetime catalog
        counters; everything else is computed from orders in the window.
        """
        since = self.clock() - timedelta(days=days)
        orders = [
            o
            for o in self.orders.all()
            if o.status not in EXCLUDED_STATUSES and ensure_utc(o.created_at) >= since
        ]

        total_revenue = round_money(sum((o.total for o in orders), ZERO))
        total_units = sum(o.item_count for o in orders)
        aov = round_money(total_revenue / len(orders)) if orders else ZERO

        by_streamer: dict[str, StreamerRevenue] = {}
        for order in orders:
            seen = set()
            for item in order.items:
                entry = by_streamer.setdefault(
                    item.streamer_id,
                    StreamerRevenue(
                        streamer_id=item.streamer_id,
                        streamer_name=item.streamer_name,
                        revenue=ZERO,
                        orders=0,
                        units=0,
                    ),
                )
                entry.revenue += item.line_total
                entry.units += item.quantity
                if item.streamer_id not in seen:
                    entry.orders += 1
                    seen.add(item.streamer_id)

        by_category: dict[ProductCategory, Decimal] = defaultdict(lambda: ZERO)
        for product in self.products.all():
            if product.revenue:
                by_category[product.category] += product.revenue

        top_products = [
            ProductPerformance(
                product_id=p.id,
                title=p.title,
                streamer_name=p.streamer_name,
                units_sold=p.units_sold,
                revenue=p.revenue,
            )
            for p in sorted(self.products.all(), key=lambda p: p.units_sold, reverse=True)[
                :top_n
            ]
            if p.units_sold
        ]

        promo_stats: dict[str, PromotionPerformance] = {}
        for promotion in self.promotions.all():
            promo_stats[promotion.id] = PromotionPerformance(
                promotion_id=promotion.id,
                name=promotion.name,
                code=promotion.code,
                usage_count=promotion.usage_count,
                orders=0,
                discount_given=ZERO,
                revenue=ZERO,
            )
        for order in orders:
            stats = promo_stats.get(order.promotion_id) if order.promotion_id else None
            if stats is None:
                continue
            stats.orders += 1
            stats.discount_given += order.promotion_discount + order.shipping_discount
            stats.revenue += order.total

        daily: dict[str, DailyRevenue] = {}
        for order in orders:
            day = ensure_utc(order.created_at).date().isoformat()
            entry = daily.setdefault(day, DailyRevenue(date=day, revenue=ZERO, orders=0))
            entry.revenue += order.total
            entry.orders += 1

        return MerchAnalytics(
            period_days=days,
            total_revenue=total_revenue,
            total_orders=len(orders),
            total_units=total_units,
            average_order_value=aov,
            revenue_by_streamer=sorted(
                by_streamer.values(), key=lambda s: s.revenue, reverse=True
            ),
            revenue_by_category={k: round_money(v) for k, v in by_category.items()},
            top_products=top_products,
            promotion_performance=sorted(
                (s for s in promo_stats.values() if s.usage_count or s.orders),
                key=lambda s: s.revenue,
                reverse=True,
            ),
            revenue_by_day=[daily[d] for d in sorted(daily)],
        )
