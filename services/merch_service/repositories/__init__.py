"""Merch service repositories package."""

from services.merch_service.repositories.base import SnapshotRepository, merge_changes
from services.merch_service.repositories.catalog import CatalogRepository
from services.merch_service.repositories.commerce import (
    CartRepository,
    OrderRepository,
)
from services.merch_service.repositories.fees import (
    FeeStructureRepository,
    StreamerFeeRepository,
    SuperfanFeeRepository,
    superfan_key,
)
from services.merch_service.repositories.promotions import PromotionRepository
from services.merch_service.repositories.providers import (
    MarkupRuleRepository,
    ProviderAccessRepository,
    ProviderConnectionRepository,
    RoutingRuleRepository,
)

__all__ = [
    "CartRepository",
    "CatalogRepository",
    "FeeStructureRepository",
    "MarkupRuleRepository",
    "OrderRepository",
    "PromotionRepository",
    "ProviderAccessRepository",
    "ProviderConnectionRepository",
    "RoutingRuleRepository",
    "SnapshotRepository",
    "merge_changes",
    "StreamerFeeRepository",
    "SuperfanFeeRepository",
    "superfan_key",
]
