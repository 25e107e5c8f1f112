"""Admin merch router: fee structures and per-streamer fee status."""

from fastapi import APIRouter, Depends, HTTPException
from libs.auth.dependencies import require_admin
from services.merch_service.engine import MerchEngine
from services.merch_service.models import FeeStructure, StreamerFeeStatus
from services.merch_service.routers._helpers import get_merch_engine
from services.merch_service.routers.fees import streamer_fee_response
from services.merch_service.schemas import (
    CustomRateRequest,
    FeeStructureCreate,
    FeeStructureUpdate,
    SavingsRequest,
    StreamerFeeResponse,
)

router = APIRouter(tags=["admin-merch"], dependencies=[Depends(require_admin)])


@router.get("/fee-structures", response_model=list[FeeStructure])
async def list_fee_structures(
    engine: MerchEngine = Depends(get_merch_engine),
):
    return engine.fee_structure_repo.all()


@router.post("/fee-structures", response_model=FeeStructure, status_code=201)
async def create_fee_structure(
    structure_in: FeeStructureCreate,
    engine: MerchEngine = Depends(get_merch_engine),
):
    """Add a structure; an active one deactivates the rest."""
    return await engine.fees.add_fee_structure(**structure_in.model_dump())


@router.patch("/fee-structures/{structure_id}", response_model=FeeStructure)
async def update_fee_structure(
    structure_id: str,
    structure_in: FeeStructureUpdate,
    engine: MerchEngine = Depends(get_merch_engine),
):
    structure = await engine.fees.update_fee_structure(
        structure_id, **structure_in.model_dump(exclude_unset=True)
    )
    if not structure:
        raise HTTPException(status_code=404, detail="Fee structure not found")
    return structure


@router.get("/streamers/{streamer_id}/fees", response_model=StreamerFeeResponse)
async def get_streamer_fees(
    streamer_id: str,
    engine: MerchEngine = Depends(get_merch_engine),
):
    return streamer_fee_response(engine, streamer_id)


@router.post("/streamers/{streamer_id}/fees/trial", response_model=StreamerFeeResponse)
async def initialize_streamer_trial(
    streamer_id: str,
    engine: MerchEngine = Depends(get_merch_engine),
):
    status = await engine.fees.initialize_trial(streamer_id)
    if status is None:
        raise HTTPException(status_code=400, detail="No active fee structure")
    return streamer_fee_response(engine, streamer_id)


@router.put("/streamers/{streamer_id}/fees/custom-rate", response_model=StreamerFeeStatus)
async def set_custom_rate(
    streamer_id: str,
    rate_in: CustomRateRequest,
    engine: MerchEngine = Depends(get_merch_engine),
):
    """Set or clear (null) a negotiated fee override."""
    status = await engine.fees.set_custom_rate(streamer_id, rate_in.fee_percent)
    if not status:
        raise HTTPException(status_code=404, detail="Streamer has no fee status")
    return status


@router.post("/streamers/{streamer_id}/fees/savings", response_model=StreamerFeeStatus)
async def record_savings(
    streamer_id: str,
    savings_in: SavingsRequest,
    engine: MerchEngine = Depends(get_merch_engine),
):
    await engine.fees.record_savings(streamer_id, savings_in.amount)
    status = engine.fees.get_status(streamer_id)
    if not status:
        raise HTTPException(status_code=404, detail="Streamer has no fee status")
    return status
