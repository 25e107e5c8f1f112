"""FastAPI application for the Merch Service."""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from libs.common.config import get_settings
from libs.common.logging import get_logger
from libs.common.middleware import add_observability_middleware
from libs.db.config import get_engine, get_session_factory
from libs.db.kv_store import SqlKeyValueStore, create_kv_schema
from services.merch_service.engine import MerchEngine
from services.merch_service.notifications import EmailOrderNotifier, LoggingNotifier
from services.merch_service.routers import (
    admin_catalog_router,
    admin_fees_router,
    admin_orders_router,
    admin_providers_router,
    cart_router,
    catalog_router,
    fees_router,
    orders_router,
    promotions_router,
)

logger = get_logger(__name__)


async def build_default_engine() -> MerchEngine:
    """Engine over the configured database, with notifier chosen by settings."""
    settings = get_settings()
    if settings.DATABASE_URL.startswith("sqlite"):
        await create_kv_schema(get_engine())
    store = SqlKeyValueStore(get_session_factory(), namespace=settings.KV_NAMESPACE)
    notifier = (
        EmailOrderNotifier(settings)
        if settings.ORDER_NOTIFICATIONS_ENABLED
        else LoggingNotifier()
    )
    return await MerchEngine.open(store, settings=settings, notifier=notifier)


def create_app(engine: Optional[MerchEngine] = None) -> FastAPI:
    """Create and configure the Merch Service FastAPI app.

    Tests pass a ready engine; otherwise one is built at startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.merch_engine = engine or await build_default_engine()
        logger.info("Merch service started")
        yield
        notifier = app.state.merch_engine.orders.notifier
        if isinstance(notifier, EmailOrderNotifier):
            await notifier.drain()

    app = FastAPI(
        title="Merch Service",
        version="0.1.0",
        description="Streamer merch commerce: catalog, cart, promotions, orders and POD fulfillment.",
        lifespan=lifespan,
    )
    if engine is not None:
        app.state.merch_engine = engine

    add_observability_middleware(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "merch"}

    # Public and signed-in routes
    app.include_router(catalog_router, prefix="/merch")
    app.include_router(cart_router, prefix="/merch")
    app.include_router(orders_router, prefix="/merch")
    app.include_router(promotions_router, prefix="/merch")
    app.include_router(fees_router, prefix="/merch")

    # Admin routes
    app.include_router(admin_catalog_router, prefix="/admin/merch")
    app.include_router(admin_orders_router, prefix="/admin/merch")
    app.include_router(admin_fees_router, prefix="/admin/merch")
    app.include_router(admin_providers_router, prefix="/admin/merch")

    return app


app = create_app()
