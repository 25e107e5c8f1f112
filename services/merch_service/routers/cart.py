"""Merch cart router. Each signed-in user has one cart keyed by their id."""

from fastapi import APIRouter, Depends, HTTPException
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from services.merch_service.engine import MerchEngine
from services.merch_service.routers._helpers import get_merch_engine, unwrap
from services.merch_service.schemas import CartItemCreate, CartItemUpdate, CartResponse

router = APIRouter(tags=["merch"])


def _cart_response(engine: MerchEngine, cart_id: str) -> CartResponse:
    cart = engine.carts.get_cart(cart_id)
    totals = engine.carts.totals(cart_id)
    return CartResponse(
        id=cart.id,
        items=cart.items,
        subtotal=totals.subtotal,
        item_count=totals.item_count,
        updated_at=cart.updated_at,
    )


@router.get("/cart", response_model=CartResponse)
async def get_cart(
    current_user: AuthUser = Depends(get_current_user),
    engine: MerchEngine = Depends(get_merch_engine),
):
    return _cart_response(engine, current_user.user_id)


@router.post("/cart/items", response_model=CartResponse, status_code=201)
async def add_to_cart(
    item_in: CartItemCreate,
    current_user: AuthUser = Depends(get_current_user),
    engine: MerchEngine = Depends(get_merch_engine),
):
    unwrap(
        await engine.carts.add(
            current_user.user_id, item_in.product_id, item_in.variant_id, item_in.quantity
        )
    )
    return _cart_response(engine, current_user.user_id)


@router.patch("/cart/items/{line_id}", response_model=CartResponse)
async def update_cart_item(
    line_id: str,
    item_in: CartItemUpdate,
    current_user: AuthUser = Depends(get_current_user),
    engine: MerchEngine = Depends(get_merch_engine),
):
    """Set a line's quantity; zero removes it."""
    unwrap(await engine.carts.update(current_user.user_id, line_id, item_in.quantity))
    return _cart_response(engine, current_user.user_id)


@router.delete("/cart/items/{line_id}", response_model=CartResponse)
async def remove_cart_item(
    line_id: str,
    current_user: AuthUser = Depends(get_current_user),
    engine: MerchEngine = Depends(get_merch_engine),
):
    if not await engine.carts.remove(current_user.user_id, line_id):
        raise HTTPException(status_code=404, detail="Cart line not found")
    return _cart_response(engine, current_user.user_id)


@router.delete("/cart", status_code=204)
async def clear_cart(
    current_user: AuthUser = Depends(get_current_user),
    engine: MerchEngine = Depends(get_merch_engine),
):
    await engine.carts.clear(current_user.user_id)
