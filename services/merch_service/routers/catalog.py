"""Merch catalog router: public listing plus streamer product management."""

from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from services.merch_service.engine import MerchEngine
from services.merch_service.models import (
    Product,
    ProductCategory,
    ProductFilter,
    ProductSortKey,
)
from services.merch_service.routers._helpers import get_merch_engine, require_streamer
from services.merch_service.schemas import ProductCreate, ProductUpdate

router = APIRouter(tags=["merch"])


# ============================================================================
# PUBLIC CATALOG
# ============================================================================


@router.get("/products", response_model=list[Product])
async def list_products(
    streamer_id: Optional[str] = None,
    category: Optional[ProductCategory] = None,
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    featured: Optional[bool] = None,
    search: Optional[str] = None,
    sort_by: Optional[ProductSortKey] = None,
    engine: MerchEngine = Depends(get_merch_engine),
):
    """List active products with optional filtering and sorting."""
    return engine.catalog.list_products(
        ProductFilter(
            streamer_id=streamer_id,
            category=category,
            min_price=min_price,
            max_price=max_price,
            is_featured=featured,
            search_query=search,
            sort_by=sort_by,
        )
    )


@router.get("/products/top-selling", response_model=list[Product])
async def top_selling(
    limit: int = Query(10, ge=1, le=50),
    engine: MerchEngine = Depends(get_merch_engine),
):
    return [p for p in engine.catalog.top_selling(limit) if p.is_active]


@router.get("/products/{product_id}", response_model=Product)
async def get_product(
    product_id: str,
    engine: MerchEngine = Depends(get_merch_engine),
):
    product = engine.catalog.get_product(product_id)
    if not product or not product.is_active:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


# ============================================================================
# STREAMER PRODUCTS
# ============================================================================


def _owned_product(engine: MerchEngine, product_id: str, user: AuthUser) -> Product:
    product = engine.catalog.get_product(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    if product.streamer_id != user.user_id and not user.is_admin:
        raise HTTPException(status_code=403, detail="Not your product")
    return product


@router.get("/streamer/products", response_model=list[Product])
async def my_products(
    current_user: AuthUser = Depends(get_current_user),
    engine: MerchEngine = Depends(get_merch_engine),
):
    """The caller's own products, inactive ones included."""
    require_streamer(current_user)
    return engine.catalog.streamer_products(current_user.user_id)


@router.post("/streamer/products", response_model=Product, status_code=201)
async def create_product(
    product_in: ProductCreate,
    current_user: AuthUser = Depends(get_current_user),
    engine: MerchEngine = Depends(get_merch_engine),
):
    require_streamer(current_user)
    data = product_in.model_dump(exclude={"streamer_id", "streamer_name"})
    streamer_id = current_user.user_id
    streamer_name = current_user.name
    if current_user.is_admin and product_in.streamer_id:
        streamer_id = product_in.streamer_id
        streamer_name = product_in.streamer_name or ""
    # Variants arrive as dicts after model_dump
    data["variants"] = product_in.variants
    return await engine.catalog.add_product(
        streamer_id=streamer_id, streamer_name=streamer_name, **data
    )


@router.patch("/streamer/products/{product_id}", response_model=Product)
async def update_product(
    product_id: str,
    product_in: ProductUpdate,
    current_user: AuthUser = Depends(get_current_user),
    engine: MerchEngine = Depends(get_merch_engine),
):
    _owned_product(engine, product_id, current_user)
    changes = product_in.model_dump(exclude_unset=True)
    return await engine.catalog.update_product(product_id, **changes)


@router.delete("/streamer/products/{product_id}", status_code=204)
async def delete_product(
    product_id: str,
    current_user: AuthUser = Depends(get_current_user),
    engine: MerchEngine = Depends(get_merch_engine),
):
    _owned_product(engine, product_id, current_user)
    await engine.catalog.delete_product(product_id)
