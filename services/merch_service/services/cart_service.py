"""Session-scoped shopping carts.

Lines are keyed by (product_id, variant_id) and hold the unit price
captured when the line was first added.
"""

from typing import Optional

from libs.common.currency import ZERO, round_money
from libs.common.datetime_utils import Clock, utc_now
from libs.common.logging import get_logger
from services.merch_service.errors import InvalidSelection, NotFound, OperationResult
from services.merch_service.models import Cart, CartItem, CartTotals
from services.merch_service.repositories import CartRepository
from services.merch_service.services.catalog_service import CatalogService

logger = get_logger(__name__)


class CartService:
    def __init__(
        self,
        carts: CartRepository,
        catalog: CatalogService,
        *,
        clock: Clock = utc_now,
    ):
        self.carts = carts
        self.catalog = catalog
        self.clock = clock

    def get_cart(self, cart_id: str) -> Cart:
        """Return the cart, or an unsaved empty one if none exists yet."""
        return self.carts.get(cart_id) or Cart(id=cart_id, updated_at=self.clock())

    async def _save(self, cart: Cart) -> Cart:
        cart.updated_at = self.clock()
        return await self.carts.put(cart)

    async def add(
        self,
        cart_id: str,
        product_id: str,
        variant_id: str,
        quantity: int = 1,
    ) -> OperationResult[CartItem]:
        product = self.catalog.get_product(product_id)
        if product is None or not product.is_active:
            return OperationResult.fail(InvalidSelection("Product is not available"))
        if not product.variants:
            return OperationResult.fail(InvalidSelection("Product has no variants"))

        variant = product.get_variant(variant_id)
        if variant is None or not variant.available:
            return OperationResult.fail(
                InvalidSelection("Selected variant is not available")
            )
        if quantity <= 0:
            return OperationResult.fail(InvalidSelection("Quantity must be positive"))

        cart = self.get_cart(cart_id)
        line = cart.find_line(product_id, variant_id)
        if line:
            # Merge keeps the original price snapshot
            line.quantity += quantity
        else:
            line = CartItem(
                product_id=product.id,
                variant_id=variant.id,
                product_title=product.title,
                product_image=product.images[0] if product.images else "",
                variant_title=variant.title,
                size=variant.size,
                color=variant.color,
                quantity=quantity,
                unit_price=product.final_price + variant.additional_price,
                streamer_id=product.streamer_id,
                streamer_name=product.streamer_name,
                added_at=self.clock(),
            )
            cart.items.append(line)

        await self._save(cart)
        logger.debug(
            "Cart %s: %s x%d (line %s)", cart_id, product.title, quantity, line.id
        )
        return OperationResult.ok(line)

    async def update(
        self, cart_id: str, line_id: str, quantity: int
    ) -> OperationResult[Optional[CartItem]]:
        """Set a line's quantity; zero or less removes the line."""
        cart = self.carts.get(cart_id)
        line = next((i for i in cart.items if i.id == line_id), None) if cart else None
        if line is None:
            return OperationResult.fail(NotFound("Cart line not found"))

        if quantity <= 0:
            cart.items = [i for i in cart.items if i.id != line_id]
            await self._save(cart)
            return OperationResult.ok(None)

        line.quantity = quantity
        await self._save(cart)
        return OperationResult.ok(line)

    async def remove(self, cart_id: str, line_id: str) -> bool:
        cart = self.carts.get(cart_id)
        if cart is None:
            return False
        remaining = [i for i in cart.items if i.id != line_id]
        if len(remaining) == len(cart.items):
            return False
        cart.items = remaining
        await self._save(cart)
        return True

    async def clear(self, cart_id: str) -> None:
        cart = self.carts.get(cart_id)
        if cart is None or not cart.items:
            return
        cart.items = []
        await self._save(cart)

    def totals(self, cart_id: str) -> CartTotals:
        """Sum snapshot prices; live catalog prices are never consulted."""
        cart = self.get_cart(cart_id)
        return CartTotals(
            subtotal=round_money(sum((i.line_total for i in cart.items), ZERO)),
            item_count=sum(i.quantity for i in cart.items),
        )
