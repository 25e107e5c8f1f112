"""Merch promotions router: previews, visible campaigns and streamer boosts."""

from fastapi import APIRouter, Depends
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from services.merch_service.engine import MerchEngine
from services.merch_service.models import Promotion, PromotionValidation
from services.merch_service.routers._helpers import get_merch_engine, require_streamer
from services.merch_service.schemas import PromotionValidateRequest, QuickPromotionCreate

router = APIRouter(tags=["merch"])


@router.get("/promotions", response_model=list[Promotion])
async def list_active_promotions(
    engine: MerchEngine = Depends(get_merch_engine),
):
    """Currently running, visible promotions."""
    return [p for p in engine.promotions.active_promotions() if p.is_visible]


@router.post("/promotions/validate", response_model=PromotionValidation)
async def preview_promotion(
    validate_in: PromotionValidateRequest,
    current_user: AuthUser = Depends(get_current_user),
    engine: MerchEngine = Depends(get_merch_engine),
):
    """Preview a code against the cart; does not consume a use."""
    subtotal = validate_in.subtotal
    if subtotal is None:
        subtotal = engine.carts.totals(current_user.user_id).subtotal
    return engine.promotions.validate(
        validate_in.code, subtotal, current_user.user_id, current_user.tier
    )


@router.get("/streamer/promotions", response_model=list[Promotion])
async def streamer_promotions(
    current_user: AuthUser = Depends(get_current_user),
    engine: MerchEngine = Depends(get_merch_engine),
):
    require_streamer(current_user)
    return engine.promotions.streamer_visible_promotions()


@router.post("/streamer/boost", response_model=Promotion, status_code=201)
async def boost(
    boost_in: QuickPromotionCreate,
    current_user: AuthUser = Depends(get_current_user),
    engine: MerchEngine = Depends(get_merch_engine),
):
    """Start a short campaign with a generated code on behalf of the caller."""
    require_streamer(current_user)
    return await engine.promotions.create_quick_promotion(
        boost_in.name,
        boost_in.type,
        boost_in.value,
        boost_in.duration,
        boost_in.target_audience,
        created_by=current_user.user_id,
    )
