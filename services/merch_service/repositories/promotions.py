from typing import Optional

from services.merch_service.models import Promotion
from services.merch_service.repositories.base import SnapshotRepository


class PromotionRepository(SnapshotRepository[Promotion]):
    document_key = "promotions"
    model = Promotion

    def find_by_code(self, code: str) -> Optional[Promotion]:
        wanted = code.strip().upper()
        return next(
            (
                p
                for p in self._items.values()
                if p.code and p.code.upper() == wanted
            ),
            None,
        )
