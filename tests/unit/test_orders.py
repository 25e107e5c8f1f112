"""Unit tests for checkout pricing, order snapshots and the status machine."""

import itertools
from datetime import timedelta
from decimal import Decimal

import pytest
from services.merch_service.engine import MerchEngine
from services.merch_service.models import (
    OrderFilter,
    OrderStatus,
    PromotionType,
    ShippingMethod,
)
from services.merch_service.services.order_service import (
    STATUS_SEQUENCE,
    TERMINAL_STATUSES,
    can_transition,
)
from tests.factories import (
    BuyerFactory,
    ProductFactory,
    PromotionFactory,
    ShippingAddressFactory,
)


async def _fill_cart(engine, cart_id="buyer-1", quantity=2, **product_overrides):
    product = ProductFactory.create(**product_overrides)
    await engine.product_repo.put(product)
    result = await engine.carts.add(cart_id, product.id, product.variants[0].id, quantity)
    assert result.success
    return product


async def _checkout(engine, cart_id="buyer-1", **kwargs):
    return await engine.orders.create(
        cart_id,
        BuyerFactory.create(user_id=cart_id),
        ShippingAddressFactory.create(),
        **kwargs,
    )


async def _place_order(engine, cart_id="buyer-1"):
    await _fill_cart(engine, cart_id)
    result = await _checkout(engine, cart_id)
    return result.value


# ---------------------------------------------------------------------------
# Checkout pricing
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_checkout_happy_path(merch_engine):
    product = await _fill_cart(merch_engine)

    result = await _checkout(merch_engine)

    assert result.success
    order = result.value
    assert order.status == OrderStatus.PENDING
    assert order.order_number.startswith("MERCH-")
    assert order.subtotal == Decimal("40.00")
    assert order.platform_fee == Decimal("6.00")
    assert order.tax == Decimal("3.50")
    assert order.shipping_cost == Decimal("4.99")
    assert order.total == Decimal("54.49")

    stored = merch_engine.catalog.get_product(product.id)
    assert stored.units_sold == 2
    assert stored.revenue == Decimal("40.00")
    assert merch_engine.carts.get_cart("buyer-1").items == []
    assert merch_engine.orders.get(order.id) is order


@pytest.mark.asyncio
@pytest.mark.unit
async def test_total_is_sum_of_rounded_components(merch_engine, clock):
    await merch_engine.promotion_repo.put(
        PromotionFactory.create(
            clock(), code="TENOFF", type=PromotionType.FIXED_AMOUNT_OFF, value=Decimal("10")
        )
    )
    await _fill_cart(merch_engine)

    order = (await _checkout(merch_engine, promotion_code="tenoff")).value

    assert order.promotion_discount == Decimal("10.00")
    assert order.platform_fee == Decimal("4.50")
    # 8.75% of 30.00 = 2.625, rounded half up
    assert order.tax == Decimal("2.63")
    assert order.total == Decimal("42.12")
    assert order.promotion_code == "TENOFF"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_empty_cart_is_rejected(merch_engine):
    result = await _checkout(merch_engine, cart_id="nobody")

    assert not result.success
    assert result.error == "empty_cart"
    assert len(merch_engine.order_repo) == 0


@pytest.mark.asyncio
@pytest.mark.unit
async def test_invalid_promotion_does_not_block_checkout(merch_engine):
    await _fill_cart(merch_engine)

    result = await _checkout(merch_engine, promotion_code="BOGUS")

    assert result.success
    order = result.value
    assert order.promotion_discount == Decimal("0.00")
    assert order.promotion_id is None
    assert order.promotion_code is None
    assert order.promotion_message == "Invalid promotion code"
    assert order.total == Decimal("54.49")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_promotion_is_redeemed_on_commit(merch_engine, clock):
    promo = PromotionFactory.create(clock(), code="ONE", usage_limit=1)
    await merch_engine.promotion_repo.put(promo)
    await _fill_cart(merch_engine, "buyer-1")
    await _fill_cart(merch_engine, "buyer-2")

    first = (await _checkout(merch_engine, "buyer-1", promotion_code="ONE")).value
    second = (await _checkout(merch_engine, "buyer-2", promotion_code="ONE")).value

    assert first.promotion_id == promo.id
    assert first.promotion_discount == Decimal("4.00")
    assert second.promotion_id is None
    assert second.promotion_message == "This promotion has reached its usage limit"
    assert merch_engine.promotions.get_promotion(promo.id).usage_count == 1


@pytest.mark.asyncio
@pytest.mark.unit
async def test_fixed_discount_is_clamped_to_subtotal(merch_engine, clock):
    await merch_engine.promotion_repo.put(
        PromotionFactory.create(
            clock(), code="HUGE", type=PromotionType.FIXED_AMOUNT_OFF, value=Decimal("100")
        )
    )
    await _fill_cart(merch_engine)

    order = (await _checkout(merch_engine, promotion_code="HUGE")).value

    assert order.promotion_discount == Decimal("40.00")
    assert order.platform_fee == Decimal("0.00")
    assert order.tax == Decimal("0.00")
    assert order.total == Decimal("4.99")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_free_shipping_credits_shipping(merch_engine, clock):
    await merch_engine.promotion_repo.put(
        PromotionFactory.create(
            clock(), code="SHIP", type=PromotionType.FREE_SHIPPING, value=Decimal("0")
        )
    )
    await _fill_cart(merch_engine)

    order = (await _checkout(merch_engine, promotion_code="SHIP")).value

    assert order.promotion_discount == Decimal("0.00")
    assert order.shipping_cost == Decimal("4.99")
    assert order.shipping_discount == Decimal("4.99")
    assert order.total == Decimal("49.50")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_express_shipping(merch_engine, clock):
    await merch_engine.promotion_repo.put(
        PromotionFactory.create(
            clock(), code="SHIP", type=PromotionType.FREE_SHIPPING, value=Decimal("0")
        )
    )
    await _fill_cart(merch_engine, "buyer-1")
    await _fill_cart(merch_engine, "buyer-2")

    plain = (
        await _checkout(merch_engine, "buyer-1", shipping_method=ShippingMethod.EXPRESS)
    ).value
    credited = (
        await _checkout(
            merch_engine,
            "buyer-2",
            shipping_method=ShippingMethod.EXPRESS,
            promotion_code="SHIP",
        )
    ).value

    assert plain.shipping_cost == Decimal("9.99")
    assert plain.total == Decimal("59.49")
    # Credit is the standard rate, not the full express cost
    assert credited.shipping_discount == Decimal("4.99")
    assert credited.total == Decimal("54.49")


# ---------------------------------------------------------------------------
# Snapshots
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_order_lines_survive_product_changes(merch_engine):
    product = await _fill_cart(merch_engine, title="Launch Tee")
    order = (await _checkout(merch_engine)).value

    await merch_engine.catalog.update_product(product.id, title="Renamed", markup=Decimal("50"))
    await merch_engine.catalog.delete_product(product.id)

    stored = merch_engine.orders.get(order.id)
    assert stored.items[0].product_title == "Launch Tee"
    assert stored.items[0].unit_price == Decimal("20.00")
    assert stored.items[0].line_total == Decimal("40.00")
    assert stored.total == Decimal("54.49")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_order_keeps_cart_snapshot_price(merch_engine):
    product = await _fill_cart(merch_engine)
    await merch_engine.catalog.update_product(product.id, final_price=Decimal("99.00"))

    order = (await _checkout(merch_engine)).value

    assert order.subtotal == Decimal("40.00")


# ---------------------------------------------------------------------------
# Status machine
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_advance_stamps_timestamps(merch_engine, clock):
    order = await _place_order(merch_engine)

    clock.advance(hours=1)
    paid = (await merch_engine.orders.advance(order.id, OrderStatus.PAYMENT_CONFIRMED)).value
    assert paid.paid_at == clock()

    clock.advance(days=2)
    shipped = (
        await merch_engine.orders.advance(
            order.id,
            OrderStatus.SHIPPED,
            tracking_number="1Z999",
            tracking_url="https://track.example/1Z999",
        )
    ).value
    assert shipped.shipped_at == clock()
    assert shipped.tracking_number == "1Z999"
    assert shipped.tracking_url == "https://track.example/1Z999"

    delivered = (await merch_engine.orders.advance(order.id, OrderStatus.DELIVERED)).value
    assert delivered.delivered_at == clock()
    assert delivered.updated_at == clock()


@pytest.mark.asyncio
@pytest.mark.unit
async def test_forward_skips_are_allowed(merch_engine):
    order = await _place_order(merch_engine)

    result = await merch_engine.orders.advance(order.id, OrderStatus.IN_PRODUCTION)

    assert result.success
    assert result.value.status == OrderStatus.IN_PRODUCTION


@pytest.mark.asyncio
@pytest.mark.unit
async def test_backward_and_repeated_moves_are_rejected(merch_engine):
    order = await _place_order(merch_engine)
    await merch_engine.orders.advance(order.id, OrderStatus.SHIPPED)

    backward = await merch_engine.orders.advance(order.id, OrderStatus.PAYMENT_CONFIRMED)
    repeated = await merch_engine.orders.advance(order.id, OrderStatus.SHIPPED)

    assert backward.error == "invalid_transition"
    assert repeated.error == "invalid_transition"
    assert merch_engine.orders.get(order.id).status == OrderStatus.SHIPPED


@pytest.mark.asyncio
@pytest.mark.unit
async def test_terminal_states_are_final(merch_engine):
    order = await _place_order(merch_engine)
    await merch_engine.orders.advance(order.id, OrderStatus.CANCELLED)

    for status in OrderStatus:
        result = await merch_engine.orders.advance(order.id, status)
        assert result.error == "invalid_transition"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_advance_unknown_order(merch_engine):
    result = await merch_engine.orders.advance("missing", OrderStatus.SHIPPED)

    assert result.error == "not_found"


@pytest.mark.unit
def test_transitions_never_move_backwards():
    for current, new in itertools.product(OrderStatus, repeat=2):
        allowed = can_transition(current, new)
        if current in TERMINAL_STATUSES or current == new:
            assert not allowed
        elif new in (OrderStatus.CANCELLED, OrderStatus.REFUNDED):
            assert allowed
        else:
            assert allowed == (STATUS_SEQUENCE.index(new) > STATUS_SEQUENCE.index(current))


# ---------------------------------------------------------------------------
# Notifier
# ---------------------------------------------------------------------------


class RecordingNotifier:
    def __init__(self, fail: bool = False):
        self.calls = []
        self.fail = fail

    def notify_order_status_change(self, order, previous, new):
        self.calls.append((order.order_number, previous, new))
        if self.fail:
            raise RuntimeError("mailer down")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_notifier_receives_transitions(kv_store, settings, clock):
    notifier = RecordingNotifier()
    engine = await MerchEngine.open(kv_store, settings=settings, clock=clock, notifier=notifier)
    order = await _place_order(engine)

    await engine.orders.advance(order.id, OrderStatus.PAYMENT_CONFIRMED)
    await engine.orders.advance(order.id, OrderStatus.PAYMENT_CONFIRMED)

    assert notifier.calls == [
        (order.order_number, OrderStatus.PENDING, OrderStatus.PAYMENT_CONFIRMED)
    ]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_notifier_failure_does_not_undo_transition(kv_store, settings, clock):
    engine = await MerchEngine.open(
        kv_store, settings=settings, clock=clock, notifier=RecordingNotifier(fail=True)
    )
    order = await _place_order(engine)

    result = await engine.orders.advance(order.id, OrderStatus.PAYMENT_CONFIRMED)

    assert result.success
    assert engine.orders.get(order.id).status == OrderStatus.PAYMENT_CONFIRMED


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_list_orders_filters_and_ordering(merch_engine, clock):
    first = await _place_order(merch_engine, "buyer-1")
    clock.advance(hours=1)
    second = await _place_order(merch_engine, "buyer-2")
    clock.advance(hours=1)
    await _fill_cart(merch_engine, "buyer-1", streamer_id="streamer-2")
    third = (await _checkout(merch_engine, "buyer-1")).value
    await merch_engine.orders.advance(second.id, OrderStatus.SHIPPED)

    orders = merch_engine.orders

    assert [o.id for o in orders.list_orders()] == [third.id, second.id, first.id]
    assert [o.id for o in orders.user_orders("buyer-1")] == [third.id, first.id]
    assert [o.id for o in orders.list_orders(OrderFilter(streamer_id="streamer-2"))] == [
        third.id
    ]
    assert [o.id for o in orders.list_orders(OrderFilter(status=OrderStatus.SHIPPED))] == [
        second.id
    ]
    window = OrderFilter(
        date_from=clock() - timedelta(hours=1, minutes=30),
        date_to=clock() - timedelta(minutes=30),
    )
    assert [o.id for o in orders.list_orders(window)] == [second.id]
    assert orders.get_by_number(first.order_number).id == first.id
    assert orders.get_by_number("MERCH-NOPE") is None
