"""Shared helpers for merch routers."""

from fastapi import HTTPException, Request
from libs.auth.models import AuthUser
from services.merch_service.engine import MerchEngine
from services.merch_service.errors import OperationResult
from services.merch_service.models import Buyer, BuyerTier

ERROR_STATUS_CODES = {
    "not_found": 404,
    "invalid_selection": 400,
    "empty_cart": 400,
    "invalid_transition": 400,
    "promotion_invalid": 400,
    "provider_access_denied": 403,
    "provider_unavailable": 502,
    "auth_error": 401,
}


def get_merch_engine(request: Request) -> MerchEngine:
    """The engine instance built in the app lifespan."""
    return request.app.state.merch_engine


def unwrap(result: OperationResult):
    """Return the result value or raise the HTTP error matching its code."""
    if result.success:
        return result.value
    raise HTTPException(
        status_code=ERROR_STATUS_CODES.get(result.error, 400),
        detail={"error": result.error, "message": result.message},
    )


def buyer_from_user(user: AuthUser) -> Buyer:
    return Buyer(
        user_id=user.user_id,
        name=user.name,
        email=user.email or "",
        tier=BuyerTier(user.tier),
    )


def require_streamer(user: AuthUser) -> None:
    if user.tier != BuyerTier.STREAMER.value and not user.is_admin:
        raise HTTPException(status_code=403, detail="Streamer account required")
