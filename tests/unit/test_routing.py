"""Unit tests for provider routing, access allow-lists and markup pricing."""

from decimal import Decimal

import pytest
from services.merch_service.models import (
    MarkupRule,
    MarkupType,
    PODProvider,
    PriceRange,
    ProductCategory,
    ProviderRoutingRule,
    RoutingConditions,
)
from tests.factories import ProductFactory

# ---------------------------------------------------------------------------
# Routing
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_default_rules_route_everything_to_printify(merch_engine):
    product = ProductFactory.create(final_price=Decimal("80.00"))

    assert merch_engine.registry.route_product(product) == PODProvider.PRINTIFY


@pytest.mark.asyncio
@pytest.mark.unit
async def test_override_beats_rules(merch_engine):
    product = ProductFactory.create(provider_override=PODProvider.GELATO)

    assert merch_engine.registry.route_product(product) == PODProvider.GELATO


@pytest.mark.asyncio
@pytest.mark.unit
async def test_price_range_rule_when_activated(merch_engine):
    await merch_engine.registry.update_routing_rule("rule-premium-printful", is_active=True)
    premium = ProductFactory.create(final_price=Decimal("50.00"))
    budget = ProductFactory.create(final_price=Decimal("49.99"))

    assert merch_engine.registry.route_product(premium) == PODProvider.PRINTFUL
    assert merch_engine.registry.route_product(budget) == PODProvider.PRINTIFY


@pytest.mark.asyncio
@pytest.mark.unit
async def test_lowest_priority_number_wins(merch_engine):
    await merch_engine.registry.add_routing_rule(
        ProviderRoutingRule(
            name="Stickers to Printful",
            priority=5,
            conditions=RoutingConditions(categories=[ProductCategory.STICKERS]),
            provider=PODProvider.PRINTFUL,
        )
    )
    await merch_engine.registry.add_routing_rule(
        ProviderRoutingRule(
            name="Stickers to Gelato",
            priority=3,
            conditions=RoutingConditions(categories=[ProductCategory.STICKERS]),
            provider=PODProvider.GELATO,
        )
    )
    sticker = ProductFactory.create(category=ProductCategory.STICKERS)

    assert merch_engine.registry.route_product(sticker) == PODProvider.GELATO


@pytest.mark.asyncio
@pytest.mark.unit
async def test_all_conditions_must_match(merch_engine):
    await merch_engine.registry.add_routing_rule(
        ProviderRoutingRule(
            name="Tagged premium hoodies",
            priority=1,
            conditions=RoutingConditions(
                categories=[ProductCategory.APPAREL],
                tags=["premium"],
                price_range=PriceRange(max=Decimal("100")),
            ),
            provider=PODProvider.PRINTFUL,
        )
    )
    tagged = ProductFactory.create(tags=["premium", "hoodie"])
    untagged = ProductFactory.create(tags=["hoodie"])
    too_expensive = ProductFactory.create(tags=["premium"], final_price=Decimal("120"))

    assert merch_engine.registry.route_product(tagged) == PODProvider.PRINTFUL
    assert merch_engine.registry.route_product(untagged) == PODProvider.PRINTIFY
    assert merch_engine.registry.route_product(too_expensive) == PODProvider.PRINTIFY


@pytest.mark.asyncio
@pytest.mark.unit
async def test_inactive_rules_are_ignored(merch_engine):
    sticker = ProductFactory.create(category=ProductCategory.STICKERS)

    # rule-print-gelato ships inactive
    assert merch_engine.registry.route_product(sticker) == PODProvider.PRINTIFY

    await merch_engine.registry.update_routing_rule("rule-print-gelato", is_active=True)
    assert merch_engine.registry.route_product(sticker) == PODProvider.GELATO


@pytest.mark.asyncio
@pytest.mark.unit
async def test_no_active_rules_uses_configured_default(merch_engine):
    await merch_engine.registry.update_routing_rule("rule-default-printify", is_active=False)

    assert merch_engine.registry.route_product(ProductFactory.create()) == PODProvider(
        merch_engine.settings.DEFAULT_POD_PROVIDER
    )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_routing_rule_crud(merch_engine):
    rules = merch_engine.registry.list_routing_rules()
    assert [r.priority for r in rules] == sorted(r.priority for r in rules)

    assert await merch_engine.registry.delete_routing_rule("rule-print-gelato")
    assert not await merch_engine.registry.delete_routing_rule("rule-print-gelato")
    assert await merch_engine.registry.update_routing_rule("missing", priority=1) is None


# ---------------------------------------------------------------------------
# Access
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_no_access_record_is_unrestricted(merch_engine):
    for provider in PODProvider:
        assert merch_engine.registry.check_access("streamer-1", provider)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_access_record_is_an_allow_list(merch_engine):
    record = await merch_engine.registry.set_access(
        "streamer-1",
        [PODProvider.PRINTFUL, PODProvider.PRINTFUL, PODProvider.GELATO],
        streamer_name="ProGamer",
    )

    assert record.allowed_providers == [PODProvider.PRINTFUL, PODProvider.GELATO]
    assert merch_engine.registry.check_access("streamer-1", PODProvider.PRINTFUL)
    assert not merch_engine.registry.check_access("streamer-1", PODProvider.PRINTIFY)

    assert await merch_engine.registry.clear_access("streamer-1")
    assert merch_engine.registry.check_access("streamer-1", PODProvider.PRINTIFY)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_route_for_streamer_falls_back_to_allowed_provider(merch_engine):
    await merch_engine.registry.update_routing_rule("rule-premium-printful", is_active=True)
    premium = ProductFactory.create(final_price=Decimal("75.00"))

    await merch_engine.registry.set_access("streamer-1", [PODProvider.PRINTIFY])

    assert merch_engine.registry.route_product(premium) == PODProvider.PRINTFUL
    assert merch_engine.registry.route_for_streamer(premium) == PODProvider.PRINTIFY


@pytest.mark.asyncio
@pytest.mark.unit
async def test_route_for_streamer_keeps_route_when_nothing_allowed(merch_engine):
    await merch_engine.registry.set_access("streamer-1", [PODProvider.GELATO])
    product = ProductFactory.create()

    # Neither the routed provider nor the default is allowed; the route stands
    assert merch_engine.registry.route_for_streamer(product) == PODProvider.PRINTIFY


# ---------------------------------------------------------------------------
# Markup
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_default_markup_is_thirty_percent(merch_engine):
    markup = merch_engine.registry.compute_markup(ProductCategory.MUGS, Decimal("12.50"))

    assert markup == Decimal("3.75")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_product_specific_markup_rule(merch_engine):
    await merch_engine.registry.add_markup_rule(
        MarkupRule(
            name="Hero product",
            product_ids=["prod-hero"],
            markup_type=MarkupType.FIXED,
            markup_value=Decimal("25"),
            priority=0,
        )
    )

    hero = merch_engine.registry.compute_markup(
        ProductCategory.MUGS, Decimal("10"), product_id="prod-hero"
    )
    other = merch_engine.registry.compute_markup(
        ProductCategory.MUGS, Decimal("10"), product_id="prod-other"
    )

    assert hero == Decimal("25.00")
    assert other == Decimal("3.00")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_quote_price_components(merch_engine):
    quote = merch_engine.registry.quote_price(
        ProductCategory.APPAREL, Decimal("20.00"), Decimal("12")
    )

    assert quote.markup == Decimal("6.00")
    assert quote.platform_fee == Decimal("3.12")
    assert quote.final_price == Decimal("29.12")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_quote_price_honours_fee_override(merch_engine):
    await merch_engine.registry.add_markup_rule(
        MarkupRule(
            name="Streamer deal",
            streamer_ids=["streamer-7"],
            markup_type=MarkupType.PERCENTAGE,
            markup_value=Decimal("40"),
            platform_fee_override=Decimal("0"),
            priority=0,
        )
    )

    quote = merch_engine.registry.quote_price(
        ProductCategory.APPAREL, Decimal("20.00"), Decimal("12"), streamer_id="streamer-7"
    )

    assert quote.markup == Decimal("8.00")
    assert quote.platform_fee == Decimal("0.00")
    assert quote.final_price == Decimal("28.00")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_markup_rule_listing_and_delete(merch_engine):
    rules = merch_engine.registry.list_markup_rules()
    assert [r.id for r in rules] == ["markup-premium-apparel", "markup-small-goods-fixed"]

    assert await merch_engine.registry.delete_markup_rule("markup-premium-apparel")
    assert await merch_engine.registry.update_markup_rule("missing", priority=3) is None
