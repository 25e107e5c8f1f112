from typing import Optional

from services.merch_service.models import PODProvider, Product
from services.merch_service.repositories.base import SnapshotRepository


class CatalogRepository(SnapshotRepository[Product]):
    document_key = "catalog"
    model = Product

    def find_by_provider_id(
        self, provider: PODProvider, provider_product_id: str
    ) -> Optional[Product]:
        return next(
            (
                p
                for p in self._items.values()
                if p.provider == provider and p.provider_product_id == provider_product_id
            ),
            None,
        )
