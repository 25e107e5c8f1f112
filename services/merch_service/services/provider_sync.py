"""Provider connections, product sync and order push to POD vendors.

Every adapter call is wrapped here: vendor errors never escape as
exceptions, they come back as failed results and the local state stays as
it was before the call.
"""

from typing import Optional

from libs.common.datetime_utils import Clock, utc_now
from libs.common.logging import get_logger
from services.merch_service.adapters import (
    ProviderSyncAdapter,
    TrackingInfo,
    build_order_payload,
)
from services.merch_service.errors import (
    InvalidTransition,
    MerchError,
    NotFound,
    OperationResult,
    ProviderAccessDenied,
    ProviderUnavailable,
)
from services.merch_service.models import (
    Order,
    OrderStatus,
    PODProvider,
    ProviderConnection,
    SyncResult,
)
from services.merch_service.repositories import (
    ProviderConnectionRepository,
    merge_changes,
)
from services.merch_service.services.catalog_service import CatalogService
from services.merch_service.services.order_service import OrderService, can_transition
from services.merch_service.services.provider_routing import ProviderRegistry

logger = get_logger(__name__)


def _as_merch_error(exc: Exception) -> MerchError:
    if isinstance(exc, MerchError):
        return exc
    return ProviderUnavailable(str(exc) or type(exc).__name__)


class ProviderSyncService:
    def __init__(
        self,
        connections: ProviderConnectionRepository,
        registry: ProviderRegistry,
        catalog: CatalogService,
        orders: OrderService,
        adapters: Optional[dict[PODProvider, ProviderSyncAdapter]] = None,
        *,
        clock: Clock = utc_now,
    ):
        self.connections = connections
        self.registry = registry
        self.catalog = catalog
        self.orders = orders
        self.adapters = dict(adapters or {})
        self.clock = clock

    def register_adapter(self, adapter: ProviderSyncAdapter) -> None:
        self.adapters[adapter.provider] = adapter

    def _adapter(self, provider: PODProvider) -> ProviderSyncAdapter:
        adapter = self.adapters.get(provider)
        if adapter is None:
            raise ProviderUnavailable(f"No {provider.value} adapter configured")
        return adapter

    # ------------------------------------------------------------------
    # Connections
    # ------------------------------------------------------------------

    async def connect_provider(
        self,
        streamer_id: str,
        provider: PODProvider,
        api_token: str,
        store_id: Optional[str] = None,
        store_name: Optional[str] = None,
        validate: bool = True,
    ) -> OperationResult[ProviderConnection]:
        """Link a streamer to a vendor account, probing the credentials first."""
        if not self.registry.check_access(streamer_id, provider):
            return OperationResult.fail(
                ProviderAccessDenied(
                    f"Streamer {streamer_id} may not connect to {provider.value}"
                )
            )

        connection = ProviderConnection(
            streamer_id=streamer_id,
            provider=provider,
            api_token=api_token,
            store_id=store_id,
            store_name=store_name,
            created_at=self.clock(),
        )

        if validate:
            try:
                await self._adapter(provider).list_products(connection)
            except Exception as exc:
                logger.exception(
                    "Credential check failed for %s (%s)", streamer_id, provider.value
                )
                return OperationResult.fail(_as_merch_error(exc))

        await self.connections.put(connection)
        logger.info("Streamer %s connected to %s", streamer_id, provider.value)
        return OperationResult.ok(connection)

    async def update_connection(
        self, streamer_id: str, **changes
    ) -> Optional[ProviderConnection]:
        connection = self.connections.get(streamer_id)
        if connection is None:
            return None
        return await self.connections.put(merge_changes(connection, changes))

    def get_connection(self, streamer_id: str) -> Optional[ProviderConnection]:
        return self.connections.get(streamer_id)

    async def disconnect(self, streamer_id: str) -> bool:
        removed = await self.connections.remove(streamer_id)
        if removed:
            logger.info("Streamer %s disconnected from %s", streamer_id, removed.provider.value)
        return removed is not None

    def _live_connection(self, streamer_id: str) -> ProviderConnection:
        connection = self.connections.get(streamer_id)
        if connection is None or not connection.is_connected:
            raise ProviderUnavailable(f"Streamer {streamer_id} has no connected provider")
        return connection

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    async def sync_products(self, streamer_id: str, streamer_name: str = "") -> SyncResult:
        """Pull the streamer's vendor products into the catalog."""
        try:
            connection = self._live_connection(streamer_id)
            products = await self._adapter(connection.provider).list_products(connection)
        except Exception as exc:
            logger.exception("Product sync failed for streamer %s", streamer_id)
            error = _as_merch_error(exc)
            return SyncResult(success=False, error=error.code, message=error.message)

        for provider_product in products:
            await self.catalog.upsert_from_provider(
                streamer_id, streamer_name, provider_product
            )

        connection.last_sync_at = self.clock()
        await self.connections.persist()
        logger.info(
            "Synced %d products from %s for streamer %s",
            len(products),
            connection.provider.value,
            streamer_id,
        )
        return SyncResult(success=True, synced_count=len(products))

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    def _route_order(self, order: Order) -> tuple[PODProvider, str]:
        """Provider and streamer for an order, decided by its first line."""
        first = order.items[0]
        product = self.catalog.get_product(first.product_id)
        if product is None:
            return order.provider or self.registry.default_provider, first.streamer_id
        return self.registry.route_for_streamer(product), first.streamer_id

    async def push_order(self, order_id: str) -> OperationResult[Order]:
        """Send an order to its vendor and confirm it for production.

        Safe to call again after a failure: an order that already carries a
        provider order id is not re-created, only confirmed if still pending
        confirmation.
        """
        order = self.orders.get(order_id)
        if order is None:
            return OperationResult.fail(NotFound(f"Order {order_id} not found"))

        if order.provider_order_id is None and not can_transition(
            order.status, OrderStatus.SENT_TO_PROVIDER
        ):
            return OperationResult.fail(
                InvalidTransition(
                    f"Order {order.order_number} cannot be sent from {order.status.value}"
                )
            )

        try:
            if order.provider_order_id is None:
                provider, streamer_id = self._route_order(order)
                connection = self._live_connection(streamer_id)
                if connection.provider != provider:
                    raise ProviderUnavailable(
                        f"Streamer {streamer_id} has no {provider.value} connection"
                    )
                products = {
                    p.id: p
                    for p in (self.catalog.get_product(i.product_id) for i in order.items)
                    if p is not None
                }
                payload = build_order_payload(provider, order, products)
                ref = await self._adapter(provider).create_order(connection, payload)
                await self.orders.attach_provider(order.id, provider, ref.provider_order_id)
                await self.orders.advance(order.id, OrderStatus.SENT_TO_PROVIDER)

            if order.status == OrderStatus.SENT_TO_PROVIDER:
                connection = self._live_connection(order.items[0].streamer_id)
                await self._adapter(order.provider).confirm_for_production(
                    connection, order.provider_order_id
                )
                await self.orders.advance(order.id, OrderStatus.IN_PRODUCTION)
        except Exception as exc:
            logger.exception("Failed to push order %s", order.order_number)
            return OperationResult.fail(_as_merch_error(exc))

        logger.info(
            "Order %s pushed to %s as %s",
            order.order_number,
            order.provider.value,
            order.provider_order_id,
        )
        return OperationResult.ok(order)

    async def refresh_tracking(self, order_id: str) -> OperationResult[Order]:
        order = self.orders.get(order_id)
        if order is None:
            return OperationResult.fail(NotFound(f"Order {order_id} not found"))
        if order.provider_order_id is None or order.provider is None:
            return OperationResult.fail(
                ProviderUnavailable(f"Order {order.order_number} was never sent to a provider")
            )

        try:
            connection = self._live_connection(order.items[0].streamer_id)
            info: TrackingInfo = await self._adapter(order.provider).get_tracking(
                connection, order.provider_order_id
            )
        except Exception as exc:
            logger.exception("Tracking lookup failed for order %s", order.order_number)
            return OperationResult.fail(_as_merch_error(exc))

        await self.orders.update_tracking(order.id, info.tracking_number, info.tracking_url)
        if info.status and can_transition(order.status, info.status):
            return await self.orders.advance(order.id, info.status)
        return OperationResult.ok(order)
