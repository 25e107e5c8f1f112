"""Unit tests for order status email notifications."""

import json
from decimal import Decimal

import httpx
import pytest
from services.merch_service.models import Order, OrderItem, OrderStatus, ShippingMethod
from services.merch_service.notifications import (
    EmailOrderNotifier,
    LoggingNotifier,
    build_status_email,
)
from tests.factories import ShippingAddressFactory


def _order(**overrides) -> Order:
    defaults = {
        "order_number": "MERCH-0000BEEF",
        "user_id": "buyer-1",
        "user_name": "Ada",
        "user_email": "ada@example.com",
        "items": [
            OrderItem(
                product_id="prod-1",
                product_title="Hoodie",
                variant_id="var-1",
                quantity=1,
                unit_price=Decimal("20.00"),
                line_total=Decimal("20.00"),
                streamer_id="streamer-1",
            )
        ],
        "subtotal": Decimal("20.00"),
        "platform_fee": Decimal("3.00"),
        "shipping_cost": Decimal("4.99"),
        "tax": Decimal("1.75"),
        "total": Decimal("29.74"),
        "shipping_address": ShippingAddressFactory.create(),
        "shipping_method": ShippingMethod.STANDARD,
    }
    defaults.update(overrides)
    return Order(**defaults)


@pytest.mark.unit
def test_shipped_email_includes_tracking():
    order = _order(tracking_number="1Z999", tracking_url="https://track.example/1Z999")

    email = build_status_email(order, OrderStatus.SHIPPED)

    assert email["to_email"] == "ada@example.com"
    assert email["subject"] == "Order MERCH-0000BEEF has shipped"
    assert "Tracking number: 1Z999" in email["body"]
    assert "https://track.example/1Z999" in email["body"]


@pytest.mark.unit
def test_no_email_without_address():
    assert build_status_email(_order(user_email=""), OrderStatus.SHIPPED) is None
    assert build_status_email(_order(), OrderStatus.PENDING) is None


@pytest.mark.unit
def test_logging_notifier_logs(caplog):
    caplog.set_level("INFO")

    LoggingNotifier().notify_order_status_change(
        _order(), OrderStatus.PENDING, OrderStatus.PAYMENT_CONFIRMED
    )

    assert "MERCH-0000BEEF: pending -> payment_confirmed" in caplog.text


@pytest.mark.asyncio
@pytest.mark.unit
async def test_email_notifier_posts_to_communications(settings):
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(202, json={"queued": True})

    notifier = EmailOrderNotifier(settings, transport=httpx.MockTransport(handler))

    notifier.notify_order_status_change(
        _order(), OrderStatus.PENDING, OrderStatus.PAYMENT_CONFIRMED
    )
    await notifier.drain()

    [request] = requests
    assert request.url.path == "/internal/email/send"
    assert request.headers["X-Caller-Service"] == settings.SERVICE_NAME
    assert request.headers["Authorization"].startswith("Bearer ")
    body = json.loads(request.content)
    assert body["subject"] == "Payment received for order MERCH-0000BEEF"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_email_failures_are_logged_not_raised(settings, caplog):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503)

    notifier = EmailOrderNotifier(settings, transport=httpx.MockTransport(handler))

    notifier.notify_order_status_change(_order(), OrderStatus.PENDING, OrderStatus.SHIPPED)
    await notifier.drain()

    assert "Failed to send order email" in caplog.text


@pytest.mark.asyncio
@pytest.mark.unit
async def test_unexpected_send_errors_are_logged_not_raised(settings, caplog):
    def handler(request: httpx.Request) -> httpx.Response:
        raise RuntimeError("communications client exploded")

    notifier = EmailOrderNotifier(settings, transport=httpx.MockTransport(handler))

    notifier.notify_order_status_change(_order(), OrderStatus.PENDING, OrderStatus.SHIPPED)
    await notifier.drain()

    assert "Failed to send order email" in caplog.text
    assert "communications client exploded" in caplog.text


@pytest.mark.unit
def test_email_notifier_without_loop_skips(settings):
    notifier = EmailOrderNotifier(settings)

    notifier.notify_order_status_change(_order(), OrderStatus.PENDING, OrderStatus.SHIPPED)

    assert not notifier._pending
