"""Order status notifications.

The engine calls ``notify_order_status_change`` on every advance and never
waits on delivery; notifier failures are logged here, not raised.
"""

import asyncio
from typing import Optional, Protocol

import httpx
from libs.common.config import Settings, get_settings
from libs.common.logging import get_logger
from libs.common.service_client import internal_post
from services.merch_service.models import Order, OrderStatus

logger = get_logger(__name__)

STATUS_SUBJECTS = {
    OrderStatus.PAYMENT_CONFIRMED: "Payment received for order {number}",
    OrderStatus.SENT_TO_PROVIDER: "Order {number} is being prepared",
    OrderStatus.IN_PRODUCTION: "Order {number} is in production",
    OrderStatus.SHIPPED: "Order {number} has shipped",
    OrderStatus.DELIVERED: "Order {number} was delivered",
    OrderStatus.CANCELLED: "Order {number} was cancelled",
    OrderStatus.REFUNDED: "Order {number} was refunded",
}


class OrderNotifier(Protocol):
    def notify_order_status_change(
        self, order: Order, previous: OrderStatus, new: OrderStatus
    ) -> None: ...


class LoggingNotifier:
    """Default notifier: records the transition in the log only."""

    def notify_order_status_change(
        self, order: Order, previous: OrderStatus, new: OrderStatus
    ) -> None:
        logger.info(
            "Order %s: %s -> %s", order.order_number, previous.value, new.value
        )


def build_status_email(order: Order, new: OrderStatus) -> Optional[dict]:
    if not order.user_email or new not in STATUS_SUBJECTS:
        return None
    lines = [f"Hi {order.user_name or 'there'},", ""]
    lines.append(f"Your order {order.order_number} is now {new.value.replace('_', ' ')}.")
    if new == OrderStatus.SHIPPED and order.tracking_number:
        lines.append(f"Tracking number: {order.tracking_number}")
        if order.tracking_url:
            lines.append(f"Track it here: {order.tracking_url}")
    return {
        "to_email": order.user_email,
        "subject": STATUS_SUBJECTS[new].format(number=order.order_number),
        "body": "\n".join(lines),
    }


class EmailOrderNotifier:
    """Posts status emails to the communications service in the background."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self.transport = transport
        self._pending: set[asyncio.Task] = set()

    async def send(self, payload: dict) -> None:
        try:
            response = await internal_post(
                service_url=self.settings.COMMUNICATIONS_SERVICE_URL,
                path="/internal/email/send",
                calling_service=self.settings.SERVICE_NAME,
                json=payload,
                transport=self.transport,
            )
            response.raise_for_status()
        except Exception:
            logger.exception("Failed to send order email to %s", payload["to_email"])

    def notify_order_status_change(
        self, order: Order, previous: OrderStatus, new: OrderStatus
    ) -> None:
        payload = build_status_email(order, new)
        if payload is None:
            return
        try:
            task = asyncio.get_running_loop().create_task(self.send(payload))
        except RuntimeError:
            logger.warning(
                "No running event loop; skipped email for order %s", order.order_number
            )
            return
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        """Wait for in-flight sends; used on shutdown and in tests."""
        if self._pending:
            await asyncio.gather(*list(self._pending))
