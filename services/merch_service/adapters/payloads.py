"""Vendor-specific order payloads, one model per provider.

``build_order_payload`` converts a canonical ``Order`` into the shape the
selected provider's adapter expects. Variant and product ids are translated
through the catalog's provider ids when they are known.
"""

from typing import Annotated, Literal, Optional, Union

from libs.common.currency import dollars_to_cents
from pydantic import BaseModel, Field
from services.merch_service.models import (
    Order,
    PODProvider,
    Product,
    ShippingMethod,
)

# ============================================================================
# PRINTFUL
# ============================================================================


class PrintfulRecipient(BaseModel):
    name: str
    address1: str
    address2: Optional[str] = None
    city: str
    state_code: str
    country_code: str
    zip: str
    phone: Optional[str] = None
    email: Optional[str] = None


class PrintfulItem(BaseModel):
    sync_variant_id: str
    quantity: int
    retail_price: str


class PrintfulRetailCosts(BaseModel):
    currency: str = "USD"
    subtotal: str
    discount: str
    shipping: str
    tax: str


class PrintfulOrderPayload(BaseModel):
    provider: Literal[PODProvider.PRINTFUL] = PODProvider.PRINTFUL
    external_id: str
    shipping: str
    recipient: PrintfulRecipient
    items: list[PrintfulItem]
    retail_costs: PrintfulRetailCosts


# ============================================================================
# PRINTIFY
# ============================================================================


class PrintifyAddress(BaseModel):
    first_name: str
    last_name: str
    email: str = ""
    phone: str = ""
    country: str
    region: str
    address1: str
    address2: Optional[str] = None
    city: str
    zip: str


class PrintifyLineItem(BaseModel):
    product_id: str
    variant_id: str
    quantity: int


class PrintifyOrderPayload(BaseModel):
    provider: Literal[PODProvider.PRINTIFY] = PODProvider.PRINTIFY
    external_id: str
    label: str
    line_items: list[PrintifyLineItem]
    shipping_method: int  # 1 standard, 2 express
    send_shipping_notification: bool = False
    address_to: PrintifyAddress


# ============================================================================
# GELATO
# ============================================================================


class GelatoAddress(BaseModel):
    firstName: str
    lastName: str
    addressLine1: str
    addressLine2: Optional[str] = None
    city: str
    postCode: str
    state: str
    country: str
    email: str = ""
    phone: Optional[str] = None


class GelatoItem(BaseModel):
    itemReferenceId: str
    productUid: str
    quantity: int
    # price in cents
    retailPrice: int


class GelatoOrderPayload(BaseModel):
    provider: Literal[PODProvider.GELATO] = PODProvider.GELATO
    orderReferenceId: str
    customerReferenceId: str
    currency: str = "USD"
    orderType: str = "order"
    shipmentMethodUid: str
    orderItems: list[GelatoItem]
    shippingAddress: GelatoAddress


OrderPayload = Annotated[
    Union[PrintfulOrderPayload, PrintifyOrderPayload, GelatoOrderPayload],
    Field(discriminator="provider"),
]


def _provider_ids(
    item_product_id: str, item_variant_id: str, products: dict[str, Product]
) -> tuple[str, str]:
    product = products.get(item_product_id)
    if product is None:
        return item_product_id, item_variant_id
    variant = product.get_variant(item_variant_id)
    return (
        product.provider_product_id or item_product_id,
        (variant.provider_variant_id if variant else None) or item_variant_id,
    )


def _printful_payload(order: Order, products: dict[str, Product]) -> PrintfulOrderPayload:
    address = order.shipping_address
    return PrintfulOrderPayload(
        external_id=order.id,
        shipping=order.shipping_method.value.upper(),
        recipient=PrintfulRecipient(
            name=address.full_name,
            address1=address.address1,
            address2=address.address2,
            city=address.city,
            state_code=address.state,
            country_code=address.country,
            zip=address.zip_code,
            phone=address.phone,
            email=order.user_email or None,
        ),
        items=[
            PrintfulItem(
                sync_variant_id=_provider_ids(item.product_id, item.variant_id, products)[1],
                quantity=item.quantity,
                retail_price=f"{item.unit_price:.2f}",
            )
            for item in order.items
        ],
        retail_costs=PrintfulRetailCosts(
            subtotal=f"{order.subtotal:.2f}",
            discount=f"{order.promotion_discount + order.shipping_discount:.2f}",
            shipping=f"{order.shipping_cost:.2f}",
            tax=f"{order.tax:.2f}",
        ),
    )


def _printify_payload(order: Order, products: dict[str, Product]) -> PrintifyOrderPayload:
    address = order.shipping_address
    line_items = []
    for item in order.items:
        product_id, variant_id = _provider_ids(item.product_id, item.variant_id, products)
        line_items.append(
            PrintifyLineItem(
                product_id=product_id, variant_id=variant_id, quantity=item.quantity
            )
        )
    return PrintifyOrderPayload(
        external_id=order.id,
        label=order.order_number,
        line_items=line_items,
        shipping_method=2 if order.shipping_method == ShippingMethod.EXPRESS else 1,
        address_to=PrintifyAddress(
            first_name=address.first_name,
            last_name=address.last_name,
            email=order.user_email,
            phone=address.phone or "",
            country=address.country,
            region=address.state,
            address1=address.address1,
            address2=address.address2,
            city=address.city,
            zip=address.zip_code,
        ),
    )


def _gelato_payload(order: Order, products: dict[str, Product]) -> GelatoOrderPayload:
    address = order.shipping_address
    return GelatoOrderPayload(
        orderReferenceId=order.id,
        customerReferenceId=order.user_id,
        shipmentMethodUid=order.shipping_method.value,
        orderItems=[
            GelatoItem(
                itemReferenceId=f"{order.id}-{index}",
                productUid=_provider_ids(item.product_id, item.variant_id, products)[0],
                quantity=item.quantity,
                retailPrice=dollars_to_cents(item.unit_price),
            )
            for index, item in enumerate(order.items)
        ],
        shippingAddress=GelatoAddress(
            firstName=address.first_name,
            lastName=address.last_name,
            addressLine1=address.address1,
            addressLine2=address.address2,
            city=address.city,
            postCode=address.zip_code,
            state=address.state,
            country=address.country,
            email=order.user_email,
            phone=address.phone,
        ),
    )


PAYLOAD_BUILDERS = {
    PODProvider.PRINTFUL: _printful_payload,
    PODProvider.PRINTIFY: _printify_payload,
    PODProvider.GELATO: _gelato_payload,
}


def build_order_payload(
    provider: PODProvider,
    order: Order,
    products: Optional[dict[str, Product]] = None,
) -> OrderPayload:
    """Build the provider's order payload; ``products`` maps local product ids."""
    return PAYLOAD_BUILDERS[provider](order, products or {})
