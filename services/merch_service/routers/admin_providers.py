"""Admin merch router: routing rules, provider access, markup and connections."""

from fastapi import APIRouter, Depends, HTTPException
from libs.auth.dependencies import require_admin
from services.merch_service.engine import MerchEngine
from services.merch_service.models import (
    MarkupRule,
    PODProvider,
    PriceQuote,
    ProviderAccess,
    ProviderConnection,
    ProviderRoutingRule,
    SyncResult,
)
from services.merch_service.routers._helpers import get_merch_engine, unwrap
from services.merch_service.schemas import (
    MarkupRuleCreate,
    MarkupRuleUpdate,
    PriceQuoteRequest,
    ProviderAccessCheck,
    ProviderAccessUpdate,
    ProviderConnectionResponse,
    ProviderConnectRequest,
    RoutingRuleCreate,
    RoutingRuleUpdate,
)

router = APIRouter(tags=["admin-merch"], dependencies=[Depends(require_admin)])


def _connection_response(connection: ProviderConnection) -> ProviderConnectionResponse:
    return ProviderConnectionResponse(**connection.model_dump(exclude={"api_token"}))


# ============================================================================
# ROUTING RULES
# ============================================================================


@router.get("/routing-rules", response_model=list[ProviderRoutingRule])
async def list_routing_rules(engine: MerchEngine = Depends(get_merch_engine)):
    return engine.registry.list_routing_rules()


@router.post("/routing-rules", response_model=ProviderRoutingRule, status_code=201)
async def create_routing_rule(
    rule_in: RoutingRuleCreate,
    engine: MerchEngine = Depends(get_merch_engine),
):
    return await engine.registry.add_routing_rule(
        ProviderRoutingRule(**rule_in.model_dump())
    )


@router.patch("/routing-rules/{rule_id}", response_model=ProviderRoutingRule)
async def update_routing_rule(
    rule_id: str,
    rule_in: RoutingRuleUpdate,
    engine: MerchEngine = Depends(get_merch_engine),
):
    rule = await engine.registry.update_routing_rule(
        rule_id, **rule_in.model_dump(exclude_unset=True)
    )
    if not rule:
        raise HTTPException(status_code=404, detail="Routing rule not found")
    return rule


@router.delete("/routing-rules/{rule_id}", status_code=204)
async def delete_routing_rule(
    rule_id: str,
    engine: MerchEngine = Depends(get_merch_engine),
):
    if not await engine.registry.delete_routing_rule(rule_id):
        raise HTTPException(status_code=404, detail="Routing rule not found")


@router.get("/products/{product_id}/route")
async def route_product(
    product_id: str,
    engine: MerchEngine = Depends(get_merch_engine),
) -> dict[str, PODProvider]:
    product = engine.catalog.get_product(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return {
        "provider": engine.registry.route_product(product),
        "provider_for_streamer": engine.registry.route_for_streamer(product),
    }


# ============================================================================
# PROVIDER ACCESS
# ============================================================================


@router.get("/access/{streamer_id}", response_model=ProviderAccess)
async def get_access(
    streamer_id: str,
    engine: MerchEngine = Depends(get_merch_engine),
):
    access = engine.registry.get_access(streamer_id)
    if not access:
        raise HTTPException(status_code=404, detail="No access record (unrestricted)")
    return access


@router.put("/access/{streamer_id}", response_model=ProviderAccess)
async def set_access(
    streamer_id: str,
    access_in: ProviderAccessUpdate,
    engine: MerchEngine = Depends(get_merch_engine),
):
    return await engine.registry.set_access(
        streamer_id, access_in.allowed_providers, access_in.streamer_name
    )


@router.get("/access/{streamer_id}/{provider}", response_model=ProviderAccessCheck)
async def check_access(
    streamer_id: str,
    provider: PODProvider,
    engine: MerchEngine = Depends(get_merch_engine),
):
    return ProviderAccessCheck(
        streamer_id=streamer_id,
        provider=provider,
        allowed=engine.registry.check_access(streamer_id, provider),
    )


@router.delete("/access/{streamer_id}", status_code=204)
async def clear_access(
    streamer_id: str,
    engine: MerchEngine = Depends(get_merch_engine),
):
    """Remove restrictions; the streamer may connect any provider again."""
    if not await engine.registry.clear_access(streamer_id):
        raise HTTPException(status_code=404, detail="No access record")


# ============================================================================
# MARKUP RULES
# ============================================================================


@router.get("/markup-rules", response_model=list[MarkupRule])
async def list_markup_rules(engine: MerchEngine = Depends(get_merch_engine)):
    return engine.registry.list_markup_rules()


@router.post("/markup-rules", response_model=MarkupRule, status_code=201)
async def create_markup_rule(
    rule_in: MarkupRuleCreate,
    engine: MerchEngine = Depends(get_merch_engine),
):
    return await engine.registry.add_markup_rule(MarkupRule(**rule_in.model_dump()))


@router.patch("/markup-rules/{rule_id}", response_model=MarkupRule)
async def update_markup_rule(
    rule_id: str,
    rule_in: MarkupRuleUpdate,
    engine: MerchEngine = Depends(get_merch_engine),
):
    rule = await engine.registry.update_markup_rule(
        rule_id, **rule_in.model_dump(exclude_unset=True)
    )
    if not rule:
        raise HTTPException(status_code=404, detail="Markup rule not found")
    return rule


@router.delete("/markup-rules/{rule_id}", status_code=204)
async def delete_markup_rule(
    rule_id: str,
    engine: MerchEngine = Depends(get_merch_engine),
):
    if not await engine.registry.delete_markup_rule(rule_id):
        raise HTTPException(status_code=404, detail="Markup rule not found")


@router.post("/streamers/{streamer_id}/price-quote", response_model=PriceQuote)
async def price_quote(
    streamer_id: str,
    quote_in: PriceQuoteRequest,
    engine: MerchEngine = Depends(get_merch_engine),
):
    """Preview a product price with the streamer's current fee rate."""
    return engine.registry.quote_price(
        quote_in.category,
        quote_in.base_cost,
        engine.fees.current_fee(streamer_id),
        markup=quote_in.markup,
        streamer_id=streamer_id,
    )


# ============================================================================
# PROVIDER CONNECTIONS
# ============================================================================


@router.get("/connections/{streamer_id}", response_model=ProviderConnectionResponse)
async def get_connection(
    streamer_id: str,
    engine: MerchEngine = Depends(get_merch_engine),
):
    connection = engine.providers.get_connection(streamer_id)
    if not connection:
        raise HTTPException(status_code=404, detail="No provider connection")
    return _connection_response(connection)


@router.put("/connections/{streamer_id}", response_model=ProviderConnectionResponse)
async def connect_provider(
    streamer_id: str,
    connect_in: ProviderConnectRequest,
    engine: MerchEngine = Depends(get_merch_engine),
):
    connection = unwrap(
        await engine.providers.connect_provider(
            streamer_id,
            connect_in.provider,
            connect_in.api_token,
            store_id=connect_in.store_id,
            store_name=connect_in.store_name,
            validate=connect_in.validate_credentials,
        )
    )
    return _connection_response(connection)


@router.delete("/connections/{streamer_id}", status_code=204)
async def disconnect_provider(
    streamer_id: str,
    engine: MerchEngine = Depends(get_merch_engine),
):
    if not await engine.providers.disconnect(streamer_id):
        raise HTTPException(status_code=404, detail="No provider connection")


@router.post("/connections/{streamer_id}/sync", response_model=SyncResult)
async def sync_products(
    streamer_id: str,
    streamer_name: str = "",
    engine: MerchEngine = Depends(get_merch_engine),
):
    return await engine.providers.sync_products(streamer_id, streamer_name)
