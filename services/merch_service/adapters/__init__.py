from services.merch_service.adapters.base import (
    ProviderOrderRef,
    ProviderSyncAdapter,
    TrackingInfo,
)
from services.merch_service.adapters.payloads import (
    GelatoOrderPayload,
    OrderPayload,
    PrintfulOrderPayload,
    PrintifyOrderPayload,
    build_order_payload,
)

__all__ = [
    "GelatoOrderPayload",
    "OrderPayload",
    "PrintfulOrderPayload",
    "PrintifyOrderPayload",
    "ProviderOrderRef",
    "ProviderSyncAdapter",
    "TrackingInfo",
    "build_order_payload",
]
