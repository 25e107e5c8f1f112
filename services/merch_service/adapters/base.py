"""Uniform contract for print-on-demand vendor clients.

Vendor wire clients implement this and raise ``ProviderUnavailable`` or
``AuthError``; the provider sync service turns every adapter failure into a
result value.
"""

from abc import ABC, abstractmethod
from typing import Optional

from pydantic import BaseModel
from services.merch_service.adapters.payloads import OrderPayload
from services.merch_service.models import (
    OrderStatus,
    PODProvider,
    ProviderConnection,
    ProviderProduct,
)


class ProviderOrderRef(BaseModel):
    provider_order_id: str


class TrackingInfo(BaseModel):
    provider_status: str
    status: Optional[OrderStatus] = None  # mapped onto our lifecycle when known
    tracking_number: Optional[str] = None
    tracking_url: Optional[str] = None


class ProviderSyncAdapter(ABC):
    provider: PODProvider

    @abstractmethod
    async def list_products(
        self, connection: ProviderConnection
    ) -> list[ProviderProduct]:
        """Products in the connected store."""

    @abstractmethod
    async def create_order(
        self, connection: ProviderConnection, payload: OrderPayload
    ) -> ProviderOrderRef:
        """Create the vendor order; retries with the same external id must not duplicate."""

    @abstractmethod
    async def confirm_for_production(
        self, connection: ProviderConnection, provider_order_id: str
    ) -> None: ...

    @abstractmethod
    async def get_tracking(
        self, connection: ProviderConnection, provider_order_id: str
    ) -> TrackingInfo: ...
