"""Fee status for the signed-in streamer or fan."""

from fastapi import APIRouter, Depends
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from services.merch_service.engine import MerchEngine
from services.merch_service.routers._helpers import get_merch_engine, require_streamer
from services.merch_service.schemas import StreamerFeeResponse, SuperfanFeeResponse

router = APIRouter(tags=["merch"])


def streamer_fee_response(engine: MerchEngine, streamer_id: str) -> StreamerFeeResponse:
    return StreamerFeeResponse(
        streamer_id=streamer_id,
        in_trial=engine.fees.is_in_trial(streamer_id),
        current_fee_percent=engine.fees.current_fee(streamer_id),
        status=engine.fees.get_status(streamer_id),
        fee_structure=engine.fees.active_fee_structure(),
    )


@router.get("/streamer/fees", response_model=StreamerFeeResponse)
async def my_fee_status(
    current_user: AuthUser = Depends(get_current_user),
    engine: MerchEngine = Depends(get_merch_engine),
):
    require_streamer(current_user)
    return streamer_fee_response(engine, current_user.user_id)


@router.post("/streamer/fees/trial", response_model=StreamerFeeResponse)
async def start_my_trial(
    current_user: AuthUser = Depends(get_current_user),
    engine: MerchEngine = Depends(get_merch_engine),
):
    """Start the caller's fee-free window; repeat calls keep the original window."""
    require_streamer(current_user)
    await engine.fees.initialize_trial(current_user.user_id)
    return streamer_fee_response(engine, current_user.user_id)


@router.post("/superfan/{streamer_id}/trial", response_model=SuperfanFeeResponse)
async def start_superfan_trial(
    streamer_id: str,
    current_user: AuthUser = Depends(get_current_user),
    engine: MerchEngine = Depends(get_merch_engine),
):
    await engine.fees.initialize_superfan_trial(current_user.user_id, streamer_id)
    return SuperfanFeeResponse(
        user_id=current_user.user_id,
        streamer_id=streamer_id,
        fee_waived=engine.fees.is_superfan_fee_waived(current_user.user_id, streamer_id),
        current_fee_percent=engine.fees.superfan_current_fee(
            current_user.user_id, streamer_id
        ),
    )
