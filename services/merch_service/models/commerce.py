"""Commerce models: carts, orders and their snapshots."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.datetime_utils import utc_now
from pydantic import BaseModel, ConfigDict, Field
from services.merch_service.models.catalog import new_id
from services.merch_service.models.enums import (
    BuyerTier,
    OrderStatus,
    PODProvider,
    ShippingMethod,
)

# ============================================================================
# CART
# ============================================================================


class CartItem(BaseModel):
    """Cart line keyed by (product_id, variant_id).

    ``unit_price`` is the snapshot taken at add time (final price + variant
    delta); later catalog edits do not touch it.
    """

    id: str = Field(default_factory=new_id)
    product_id: str
    variant_id: str
    product_title: str
    product_image: str = ""
    variant_title: str = ""
    size: Optional[str] = None
    color: Optional[str] = None
    quantity: int
    unit_price: Decimal
    streamer_id: str
    streamer_name: str = ""
    added_at: datetime = Field(default_factory=utc_now)

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


class Cart(BaseModel):
    id: str
    items: list[CartItem] = Field(default_factory=list)
    updated_at: datetime = Field(default_factory=utc_now)

    def find_line(self, product_id: str, variant_id: str) -> Optional[CartItem]:
        return next(
            (
                item
                for item in self.items
                if item.product_id == product_id and item.variant_id == variant_id
            ),
            None,
        )


class CartTotals(BaseModel):
    subtotal: Decimal
    item_count: int


# ============================================================================
# ORDER
# ============================================================================


class ShippingAddress(BaseModel):
    first_name: str
    last_name: str
    address1: str
    address2: Optional[str] = None
    city: str
    state: str
    country: str
    zip_code: str
    phone: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class Buyer(BaseModel):
    user_id: str
    name: str = ""
    email: str = ""
    tier: BuyerTier = BuyerTier.USER


class OrderItem(BaseModel):
    """Denormalised copy of a cart line; never a live product reference."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    product_id: str
    product_title: str
    product_image: str = ""
    variant_id: str
    variant_title: str = ""
    size: Optional[str] = None
    color: Optional[str] = None
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    streamer_id: str
    streamer_name: str = ""


class Order(BaseModel):
    id: str = Field(default_factory=new_id)
    order_number: str
    user_id: str
    user_name: str = ""
    user_email: str = ""
    buyer_tier: BuyerTier = BuyerTier.USER

    items: list[OrderItem]

    # Pricing, fixed at creation
    subtotal: Decimal
    promotion_discount: Decimal = Decimal("0.00")
    promotion_id: Optional[str] = None
    promotion_code: Optional[str] = None
    promotion_message: Optional[str] = None
    platform_fee: Decimal
    shipping_cost: Decimal
    shipping_discount: Decimal = Decimal("0.00")
    tax: Decimal
    total: Decimal

    # Shipping
    shipping_address: ShippingAddress
    shipping_method: ShippingMethod
    tracking_number: Optional[str] = None
    tracking_url: Optional[str] = None

    # Fulfillment
    status: OrderStatus = OrderStatus.PENDING
    provider: Optional[PODProvider] = None
    provider_order_id: Optional[str] = None

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    paid_at: Optional[datetime] = None
    sent_to_provider_at: Optional[datetime] = None
    shipped_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def streamer_ids(self) -> list[str]:
        return list(dict.fromkeys(item.streamer_id for item in self.items))

    def __repr__(self):
        return f"<Order {self.order_number} status={self.status.value}>"


class OrderFilter(BaseModel):
    user_id: Optional[str] = None
    streamer_id: Optional[str] = None
    status: Optional[OrderStatus] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
