from services.merch_service.models import (
    MarkupRule,
    ProviderAccess,
    ProviderConnection,
    ProviderRoutingRule,
)
from services.merch_service.repositories.base import SnapshotRepository


class ProviderConnectionRepository(SnapshotRepository[ProviderConnection]):
    document_key = "providers.connections"
    model = ProviderConnection

    def key_of(self, item: ProviderConnection) -> str:
        return item.streamer_id


class RoutingRuleRepository(SnapshotRepository[ProviderRoutingRule]):
    document_key = "providers.routing_rules"
    model = ProviderRoutingRule


class ProviderAccessRepository(SnapshotRepository[ProviderAccess]):
    document_key = "providers.access"
    model = ProviderAccess

    def key_of(self, item: ProviderAccess) -> str:
        return item.streamer_id


class MarkupRuleRepository(SnapshotRepository[MarkupRule]):
    document_key = "providers.markup_rules"
    model = MarkupRule
