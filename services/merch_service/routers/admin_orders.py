"""Admin merch router: order management, fulfillment and analytics."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from libs.auth.dependencies import require_admin
from services.merch_service.engine import MerchEngine
from services.merch_service.models import Order, OrderFilter, OrderStatus
from services.merch_service.routers._helpers import get_merch_engine, unwrap
from services.merch_service.schemas import OrderStatusUpdate
from services.merch_service.services.analytics_service import MerchAnalytics

router = APIRouter(tags=["admin-merch"], dependencies=[Depends(require_admin)])


@router.get("/orders", response_model=list[Order])
async def list_orders(
    user_id: Optional[str] = None,
    streamer_id: Optional[str] = None,
    status: Optional[OrderStatus] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    engine: MerchEngine = Depends(get_merch_engine),
):
    return engine.orders.list_orders(
        OrderFilter(
            user_id=user_id,
            streamer_id=streamer_id,
            status=status,
            date_from=date_from,
            date_to=date_to,
        )
    )


@router.get("/orders/{order_id}", response_model=Order)
async def get_order(
    order_id: str,
    engine: MerchEngine = Depends(get_merch_engine),
):
    order = engine.orders.get(order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


@router.post("/orders/{order_id}/status", response_model=Order)
async def update_order_status(
    order_id: str,
    status_in: OrderStatusUpdate,
    engine: MerchEngine = Depends(get_merch_engine),
):
    """Advance an order; backward moves and moves out of terminal states are rejected."""
    return unwrap(
        await engine.orders.advance(
            order_id,
            status_in.status,
            tracking_number=status_in.tracking_number,
            tracking_url=status_in.tracking_url,
        )
    )


@router.post("/orders/{order_id}/push", response_model=Order)
async def push_order(
    order_id: str,
    engine: MerchEngine = Depends(get_merch_engine),
):
    """Send to the routed provider; safe to retry after a failure."""
    return unwrap(await engine.providers.push_order(order_id))


@router.post("/orders/{order_id}/refresh-tracking", response_model=Order)
async def refresh_tracking(
    order_id: str,
    engine: MerchEngine = Depends(get_merch_engine),
):
    return unwrap(await engine.providers.refresh_tracking(order_id))


@router.get("/analytics", response_model=MerchAnalytics)
async def merch_analytics(
    days: int = Query(30, ge=1, le=365),
    engine: MerchEngine = Depends(get_merch_engine),
):
    return engine.analytics.merch_analytics(days)
