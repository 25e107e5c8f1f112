"""Merch checkout and order history router."""

from fastapi import APIRouter, Depends, HTTPException
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from services.merch_service.engine import MerchEngine
from services.merch_service.models import Order
from services.merch_service.routers._helpers import (
    buyer_from_user,
    get_merch_engine,
    unwrap,
)
from services.merch_service.schemas import CheckoutRequest

router = APIRouter(tags=["merch"])


@router.post("/checkout", response_model=Order, status_code=201)
async def checkout(
    checkout_in: CheckoutRequest,
    current_user: AuthUser = Depends(get_current_user),
    engine: MerchEngine = Depends(get_merch_engine),
):
    """Create an order from the caller's cart.

    An invalid promotion code does not fail checkout; the order's
    ``promotion_message`` explains why no discount was applied.
    """
    result = await engine.orders.create(
        current_user.user_id,
        buyer_from_user(current_user),
        checkout_in.shipping_address,
        checkout_in.shipping_method,
        checkout_in.promotion_code,
    )
    return unwrap(result)


@router.get("/orders", response_model=list[Order])
async def list_my_orders(
    current_user: AuthUser = Depends(get_current_user),
    engine: MerchEngine = Depends(get_merch_engine),
):
    return engine.orders.user_orders(current_user.user_id)


@router.get("/orders/{order_number}", response_model=Order)
async def get_order(
    order_number: str,
    current_user: AuthUser = Depends(get_current_user),
    engine: MerchEngine = Depends(get_merch_engine),
):
    order = engine.orders.get_by_number(order_number)
    if not order or (order.user_id != current_user.user_id and not current_user.is_admin):
        raise HTTPException(status_code=404, detail="Order not found")
    return order
