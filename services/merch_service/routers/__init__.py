"""Merch service routers package."""

from services.merch_service.routers.admin_catalog import router as admin_catalog_router
from services.merch_service.routers.admin_fees import router as admin_fees_router
from services.merch_service.routers.admin_orders import router as admin_orders_router
from services.merch_service.routers.admin_providers import (
    router as admin_providers_router,
)
from services.merch_service.routers.cart import router as cart_router
from services.merch_service.routers.catalog import router as catalog_router
from services.merch_service.routers.fees import router as fees_router
from services.merch_service.routers.orders import router as orders_router
from services.merch_service.routers.promotions import router as promotions_router

__all__ = [
    "admin_catalog_router",
    "admin_fees_router",
    "admin_orders_router",
    "admin_providers_router",
    "cart_router",
    "catalog_router",
    "fees_router",
    "orders_router",
    "promotions_router",
]
