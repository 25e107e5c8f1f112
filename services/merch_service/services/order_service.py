"""Order lifecycle: checkout from a cart, then forward-only status changes."""

import secrets
from decimal import Decimal
from typing import Optional

from libs.common.config import Settings, get_settings
from libs.common.currency import ZERO, percent_of, round_money
from libs.common.datetime_utils import Clock, ensure_utc, utc_now
from libs.common.logging import get_logger
from services.merch_service.errors import (
    EmptyCart,
    InvalidTransition,
    NotFound,
    OperationResult,
)
from services.merch_service.models import (
    Buyer,
    Order,
    OrderFilter,
    OrderItem,
    OrderStatus,
    PODProvider,
    PromotionType,
    ShippingAddress,
    ShippingMethod,
)
from services.merch_service.notifications import LoggingNotifier, OrderNotifier
from services.merch_service.repositories import OrderRepository
from services.merch_service.services.cart_service import CartService
from services.merch_service.services.catalog_service import CatalogService
from services.merch_service.services.promotion_service import PromotionService

logger = get_logger(__name__)

# Position along the fulfillment path; exits are handled separately.
STATUS_SEQUENCE = [
    OrderStatus.PENDING,
    OrderStatus.PAYMENT_CONFIRMED,
    OrderStatus.SENT_TO_PROVIDER,
    OrderStatus.IN_PRODUCTION,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
]
EXIT_STATUSES = {OrderStatus.CANCELLED, OrderStatus.REFUNDED}
TERMINAL_STATUSES = EXIT_STATUSES | {OrderStatus.DELIVERED}

STATUS_TIMESTAMPS = {
    OrderStatus.PAYMENT_CONFIRMED: "paid_at",
    OrderStatus.SENT_TO_PROVIDER: "sent_to_provider_at",
    OrderStatus.SHIPPED: "shipped_at",
    OrderStatus.DELIVERED: "delivered_at",
}


def generate_order_number() -> str:
    return f"MERCH-{secrets.token_hex(4).upper()}"


def can_transition(current: OrderStatus, new: OrderStatus) -> bool:
    """Forward moves only; cancel/refund from any non-terminal state."""
    if current in TERMINAL_STATUSES or current == new:
        return False
    if new in EXIT_STATUSES:
        return True
    return STATUS_SEQUENCE.index(new) > STATUS_SEQUENCE.index(current)


class OrderService:
    def __init__(
        self,
        orders: OrderRepository,
        carts: CartService,
        catalog: CatalogService,
        promotions: PromotionService,
        *,
        notifier: Optional[OrderNotifier] = None,
        settings: Optional[Settings] = None,
        clock: Clock = utc_now,
    ):
        self.orders = orders
        self.carts = carts
        self.catalog = catalog
        self.promotions = promotions
        self.notifier = notifier or LoggingNotifier()
        self.settings = settings or get_settings()
        self.clock = clock

    def shipping_cost(self, method: ShippingMethod) -> Decimal:
        if method == ShippingMethod.EXPRESS:
            return round_money(self.settings.EXPRESS_SHIPPING_USD)
        return round_money(self.settings.STANDARD_SHIPPING_USD)

    # ------------------------------------------------------------------
    # Checkout
    # ------------------------------------------------------------------

    async def create(
        self,
        cart_id: str,
        buyer: Buyer,
        shipping_address: ShippingAddress,
        shipping_method: ShippingMethod = ShippingMethod.STANDARD,
        promotion_code: Optional[str] = None,
    ) -> OperationResult[Order]:
        """Convert a cart into a pending order.

        A rejected promotion code does not block checkout; the order is
        priced without a discount and the rejection message is kept on it.
        Platform fee and tax are charged on the discounted subtotal.
        """
        cart = self.carts.get_cart(cart_id)
        if not cart.items:
            return OperationResult.fail(EmptyCart("Cart is empty"))

        subtotal = self.carts.totals(cart_id).subtotal
        shipping_cost = self.shipping_cost(shipping_method)
        discount = ZERO
        shipping_discount = ZERO
        promotion_id = None
        promotion_message = None

        if promotion_code:
            validation = self.promotions.validate(
                promotion_code, subtotal, buyer.user_id, buyer.tier
            )
            promotion_message = validation.message
            if validation.valid:
                promotion_id = validation.promotion_id
                if validation.promotion_type == PromotionType.FREE_SHIPPING:
                    shipping_discount = min(validation.discount, shipping_cost)
                else:
                    discount = min(validation.discount, subtotal)
            else:
                logger.warning(
                    "Promotion %s rejected at checkout for %s: %s",
                    promotion_code,
                    buyer.user_id,
                    validation.message,
                )

        discounted = subtotal - discount
        platform_fee = percent_of(discounted, self.settings.CHECKOUT_PLATFORM_FEE_PERCENT)
        tax = percent_of(discounted, self.settings.TAX_RATE_PERCENT)
        total = round_money(
            discounted + platform_fee + shipping_cost - shipping_discount + tax
        )

        now = self.clock()
        order = Order(
            order_number=generate_order_number(),
            user_id=buyer.user_id,
            user_name=buyer.name,
            user_email=buyer.email,
            buyer_tier=buyer.tier,
            items=[
                OrderItem(
                    product_id=line.product_id,
                    product_title=line.product_title,
                    product_image=line.product_image,
                    variant_id=line.variant_id,
                    variant_title=line.variant_title,
                    size=line.size,
                    color=line.color,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    line_total=round_money(line.line_total),
                    streamer_id=line.streamer_id,
                    streamer_name=line.streamer_name,
                )
                for line in cart.items
            ],
            subtotal=subtotal,
            promotion_discount=discount,
            promotion_id=promotion_id,
            promotion_code=promotion_code.strip().upper() if promotion_id else None,
            promotion_message=promotion_message,
            platform_fee=platform_fee,
            shipping_cost=shipping_cost,
            shipping_discount=shipping_discount,
            tax=tax,
            total=total,
            shipping_address=shipping_address,
            shipping_method=shipping_method,
            created_at=now,
            updated_at=now,
        )

        await self.orders.put(order)
        if promotion_id:
            await self.promotions.redeem(promotion_id)
        await self.carts.clear(cart_id)
        await self.catalog.record_sales(order.items)

        logger.info(
            "Created order %s for %s: %d items, total %s",
            order.order_number,
            buyer.user_id,
            order.item_count,
            order.total,
        )
        return OperationResult.ok(order)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def advance(
        self,
        order_id: str,
        new_status: OrderStatus,
        tracking_number: Optional[str] = None,
        tracking_url: Optional[str] = None,
    ) -> OperationResult[Order]:
        order = self.orders.get(order_id)
        if order is None:
            return OperationResult.fail(NotFound(f"Order {order_id} not found"))

        previous = order.status
        if not can_transition(previous, new_status):
            return OperationResult.fail(
                InvalidTransition(
                    f"Cannot move order {order.order_number} "
                    f"from {previous.value} to {new_status.value}"
                )
            )

        now = self.clock()
        order.status = new_status
        order.updated_at = now
        if tracking_number:
            order.tracking_number = tracking_number
        if tracking_url:
            order.tracking_url = tracking_url
        stamp = STATUS_TIMESTAMPS.get(new_status)
        if stamp:
            setattr(order, stamp, now)
        if new_status == OrderStatus.SHIPPED and not order.tracking_number:
            logger.warning("Order %s shipped without tracking", order.order_number)

        await self.orders.persist()
        logger.info(
            "Order %s advanced %s -> %s",
            order.order_number,
            previous.value,
            new_status.value,
        )

        try:
            self.notifier.notify_order_status_change(order, previous, new_status)
        except Exception:
            logger.exception("Notifier failed for order %s", order.order_number)

        return OperationResult.ok(order)

    async def attach_provider(
        self,
        order_id: str,
        provider: PODProvider,
        provider_order_id: str,
    ) -> Optional[Order]:
        """Record the vendor-side order id; status is left to ``advance``."""
        order = self.orders.get(order_id)
        if order is None:
            return None
        order.provider = provider
        order.provider_order_id = provider_order_id
        order.updated_at = self.clock()
        await self.orders.persist()
        return order

    async def update_tracking(
        self,
        order_id: str,
        tracking_number: Optional[str],
        tracking_url: Optional[str] = None,
    ) -> Optional[Order]:
        order = self.orders.get(order_id)
        if order is None:
            return None
        if tracking_number:
            order.tracking_number = tracking_number
        if tracking_url:
            order.tracking_url = tracking_url
        order.updated_at = self.clock()
        await self.orders.persist()
        return order

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, order_id: str) -> Optional[Order]:
        return self.orders.get(order_id)

    def get_by_number(self, order_number: str) -> Optional[Order]:
        return next(
            (o for o in self.orders.all() if o.order_number == order_number), None
        )

    def list_orders(self, filters: Optional[OrderFilter] = None) -> list[Order]:
        """Orders newest first, optionally filtered."""
        result = self.orders.all()
        if filters:
            if filters.user_id:
                result = [o for o in result if o.user_id == filters.user_id]
            if filters.streamer_id:
                result = [o for o in result if filters.streamer_id in o.streamer_ids]
            if filters.status:
                result = [o for o in result if o.status == filters.status]
            if filters.date_from:
                start = ensure_utc(filters.date_from)
                result = [o for o in result if ensure_utc(o.created_at) >= start]
            if filters.date_to:
                end = ensure_utc(filters.date_to)
                result = [o for o in result if ensure_utc(o.created_at) <= end]
        return sorted(result, key=lambda o: o.created_at, reverse=True)

    def user_orders(self, user_id: str) -> list[Order]:
        return self.list_orders(OrderFilter(user_id=user_id))
