"""Admin merch router: product moderation and promotion management."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from services.merch_service.engine import MerchEngine
from services.merch_service.models import (
    Product,
    Promotion,
    PromotionFilter,
    PromotionStatus,
    TargetAudience,
)
from services.merch_service.routers._helpers import get_merch_engine
from services.merch_service.schemas import (
    BulkProductUpdate,
    BulkUpdateResponse,
    PromotionCreate,
    PromotionUpdate,
    QuickPromotionCreate,
)

router = APIRouter(tags=["admin-merch"], dependencies=[Depends(require_admin)])


# ============================================================================
# PRODUCTS
# ============================================================================


@router.get("/products", response_model=list[Product])
async def list_all_products(
    streamer_id: Optional[str] = None,
    engine: MerchEngine = Depends(get_merch_engine),
):
    """All products including inactive ones."""
    if streamer_id:
        return engine.catalog.streamer_products(streamer_id)
    return engine.product_repo.all()


@router.post("/products/bulk-update", response_model=BulkUpdateResponse)
async def bulk_update_products(
    bulk_in: BulkProductUpdate,
    engine: MerchEngine = Depends(get_merch_engine),
):
    changes = bulk_in.model_dump(exclude={"product_ids"}, exclude_unset=True)
    updated = await engine.catalog.bulk_update(bulk_in.product_ids, **changes)
    return BulkUpdateResponse(updated=updated)


@router.post("/products/{product_id}/feature", response_model=Product)
async def feature_product(
    product_id: str,
    featured: bool = True,
    engine: MerchEngine = Depends(get_merch_engine),
):
    product = await engine.catalog.set_featured(product_id, featured)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


# ============================================================================
# PROMOTIONS
# ============================================================================


@router.get("/promotions", response_model=list[Promotion])
async def list_promotions(
    status: Optional[PromotionStatus] = None,
    target_audience: Optional[TargetAudience] = None,
    is_visible: Optional[bool] = None,
    engine: MerchEngine = Depends(get_merch_engine),
):
    return engine.promotions.list_promotions(
        PromotionFilter(
            status=status, target_audience=target_audience, is_visible=is_visible
        )
    )


@router.post("/promotions", response_model=Promotion, status_code=201)
async def create_promotion(
    promotion_in: PromotionCreate,
    current_user: AuthUser = Depends(require_admin),
    engine: MerchEngine = Depends(get_merch_engine),
):
    if promotion_in.end_date <= promotion_in.start_date:
        raise HTTPException(status_code=400, detail="end_date must be after start_date")
    if promotion_in.code and engine.promotions.get_by_code(promotion_in.code):
        raise HTTPException(status_code=400, detail="Promotion code already exists")
    promotion = Promotion(**promotion_in.model_dump(), created_by=current_user.user_id)
    return await engine.promotions.add_promotion(promotion)


@router.post("/promotions/quick", response_model=Promotion, status_code=201)
async def create_quick_promotion(
    quick_in: QuickPromotionCreate,
    current_user: AuthUser = Depends(require_admin),
    engine: MerchEngine = Depends(get_merch_engine),
):
    return await engine.promotions.create_quick_promotion(
        quick_in.name,
        quick_in.type,
        quick_in.value,
        quick_in.duration,
        quick_in.target_audience,
        created_by=current_user.user_id,
    )


@router.post("/promotions/refresh-statuses")
async def refresh_promotion_statuses(
    engine: MerchEngine = Depends(get_merch_engine),
) -> dict[str, int]:
    return {"updated": await engine.promotions.refresh_statuses()}


@router.patch("/promotions/{promotion_id}", response_model=Promotion)
async def update_promotion(
    promotion_id: str,
    promotion_in: PromotionUpdate,
    engine: MerchEngine = Depends(get_merch_engine),
):
    promotion = await engine.promotions.update_promotion(
        promotion_id, **promotion_in.model_dump(exclude_unset=True)
    )
    if not promotion:
        raise HTTPException(status_code=404, detail="Promotion not found")
    return promotion


@router.post("/promotions/{promotion_id}/end", response_model=Promotion)
async def end_promotion(
    promotion_id: str,
    engine: MerchEngine = Depends(get_merch_engine),
):
    promotion = await engine.promotions.end_promotion(promotion_id)
    if not promotion:
        raise HTTPException(status_code=404, detail="Promotion not found")
    return promotion


@router.delete("/promotions/{promotion_id}", status_code=204)
async def delete_promotion(
    promotion_id: str,
    engine: MerchEngine = Depends(get_merch_engine),
):
    """Hard delete, or soft end when an order references the promotion."""
    if not await engine.promotions.delete_promotion(promotion_id):
        raise HTTPException(status_code=404, detail="Promotion not found")
