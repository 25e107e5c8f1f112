"""Composition root for the merch engine.

``MerchEngine`` builds every repository against one key-value store and
wires the services together; there is no module-level state.
"""

from typing import Optional

from libs.common.config import Settings, get_settings
from libs.common.datetime_utils import Clock, utc_now
from libs.common.logging import get_logger
from libs.db.kv_store import KeyValueStore, ensure_version
from services.merch_service.adapters import ProviderSyncAdapter
from services.merch_service.models import PODProvider
from services.merch_service.notifications import OrderNotifier
from services.merch_service.repositories import (
    CartRepository,
    CatalogRepository,
    FeeStructureRepository,
    MarkupRuleRepository,
    OrderRepository,
    PromotionRepository,
    ProviderAccessRepository,
    ProviderConnectionRepository,
    RoutingRuleRepository,
    SnapshotRepository,
    StreamerFeeRepository,
    SuperfanFeeRepository,
)
from services.merch_service.services.analytics_service import AnalyticsService
from services.merch_service.services.cart_service import CartService
from services.merch_service.services.catalog_service import CatalogService
from services.merch_service.services.fee_ledger import FeeLedger
from services.merch_service.services.order_service import OrderService
from services.merch_service.services.promotion_service import PromotionService
from services.merch_service.services.provider_routing import ProviderRegistry
from services.merch_service.services.provider_sync import ProviderSyncService

logger = get_logger(__name__)


class MerchEngine:
    def __init__(
        self,
        store: KeyValueStore,
        *,
        settings: Optional[Settings] = None,
        clock: Clock = utc_now,
        notifier: Optional[OrderNotifier] = None,
        adapters: Optional[dict[PODProvider, ProviderSyncAdapter]] = None,
    ):
        self.store = store
        self.settings = settings or get_settings()
        self.clock = clock

        self.product_repo = CatalogRepository(store)
        self.cart_repo = CartRepository(store)
        self.order_repo = OrderRepository(store)
        self.promotion_repo = PromotionRepository(store)
        self.fee_structure_repo = FeeStructureRepository(store)
        self.streamer_fee_repo = StreamerFeeRepository(store)
        self.superfan_fee_repo = SuperfanFeeRepository(store)
        self.connection_repo = ProviderConnectionRepository(store)
        self.routing_rule_repo = RoutingRuleRepository(store)
        self.access_repo = ProviderAccessRepository(store)
        self.markup_rule_repo = MarkupRuleRepository(store)

        self.fees = FeeLedger(
            self.fee_structure_repo,
            self.streamer_fee_repo,
            self.superfan_fee_repo,
            settings=self.settings,
            clock=clock,
        )
        self.registry = ProviderRegistry(
            self.routing_rule_repo,
            self.access_repo,
            self.markup_rule_repo,
            settings=self.settings,
            clock=clock,
        )
        self.catalog = CatalogService(
            self.product_repo, self.fees, self.registry, clock=clock
        )
        self.carts = CartService(self.cart_repo, self.catalog, clock=clock)
        self.promotions = PromotionService(
            self.promotion_repo, self.order_repo, settings=self.settings, clock=clock
        )
        self.orders = OrderService(
            self.order_repo,
            self.carts,
            self.catalog,
            self.promotions,
            notifier=notifier,
            settings=self.settings,
            clock=clock,
        )
        self.providers = ProviderSyncService(
            self.connection_repo,
            self.registry,
            self.catalog,
            self.orders,
            adapters,
            clock=clock,
        )
        self.analytics = AnalyticsService(
            self.order_repo, self.product_repo, self.promotion_repo, clock=clock
        )

    @property
    def repositories(self) -> list[SnapshotRepository]:
        return [
            self.product_repo,
            self.cart_repo,
            self.order_repo,
            self.promotion_repo,
            self.fee_structure_repo,
            self.streamer_fee_repo,
            self.superfan_fee_repo,
            self.connection_repo,
            self.routing_rule_repo,
            self.access_repo,
            self.markup_rule_repo,
        ]

    async def load(self) -> bool:
        """Read every collection from the store.

        A store written by an incompatible version is never overwritten: the
        engine starts empty, keeps later changes in memory only and returns
        False.
        """
        if not await ensure_version(self.store):
            for repo in self.repositories:
                repo.read_only = True
            logger.warning("Merch state not loaded; changes will not be persisted")
            return False
        for repo in self.repositories:
            await repo.load()
        logger.info(
            "Loaded merch state: %d products, %d orders, %d promotions",
            len(self.product_repo),
            len(self.order_repo),
            len(self.promotion_repo),
        )
        return True

    async def bootstrap(self) -> None:
        """Install the default fee structure, routing rules and markup rules."""
        await self.fees.initialize_default_fee_structure()
        await self.registry.initialize_default_routing_rules()
        await self.registry.initialize_default_markup_rules()

    @classmethod
    async def open(cls, store: KeyValueStore, **kwargs) -> "MerchEngine":
        engine = cls(store, **kwargs)
        await engine.load()
        await engine.bootstrap()
        return engine
