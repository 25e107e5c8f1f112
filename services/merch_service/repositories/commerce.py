from services.merch_service.models import Cart, Order
from services.merch_service.repositories.base import SnapshotRepository


class CartRepository(SnapshotRepository[Cart]):
    document_key = "carts"
    model = Cart


class OrderRepository(SnapshotRepository[Order]):
    document_key = "orders"
    model = Order

    def references_promotion(self, promotion_id: str) -> bool:
        return any(o.promotion_id == promotion_id for o in self._items.values())
