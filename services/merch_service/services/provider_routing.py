"""Provider routing, connection access control and markup rules."""

from decimal import Decimal
from typing import Optional

from libs.common.config import Settings, get_settings
from libs.common.currency import percent_of, round_money, to_decimal
from libs.common.datetime_utils import Clock, utc_now
from libs.common.logging import get_logger
from services.merch_service.models import (
    MarkupRule,
    MarkupType,
    PODProvider,
    PriceQuote,
    PriceRange,
    Product,
    ProductCategory,
    ProviderAccess,
    ProviderRoutingRule,
    RoutingConditions,
)
from services.merch_service.repositories import (
    MarkupRuleRepository,
    ProviderAccessRepository,
    RoutingRuleRepository,
    merge_changes,
)

logger = get_logger(__name__)


def rule_matches(rule: ProviderRoutingRule, product: Product) -> bool:
    conditions = rule.conditions

    if conditions.categories and product.category not in conditions.categories:
        return False
    if conditions.product_ids and product.id not in conditions.product_ids:
        return False
    if conditions.streamer_ids and product.streamer_id not in conditions.streamer_ids:
        return False
    if conditions.price_range:
        low, high = conditions.price_range.min, conditions.price_range.max
        if low is not None and product.final_price < low:
            return False
        if high is not None and product.final_price > high:
            return False
    if conditions.tags and not set(conditions.tags) & set(product.tags):
        return False
    return True


def markup_rule_matches(
    rule: MarkupRule,
    category: ProductCategory,
    product_id: Optional[str],
    streamer_id: Optional[str],
) -> bool:
    if rule.is_global:
        return True
    if product_id and product_id in rule.product_ids:
        return True
    if category in rule.categories:
        return True
    if streamer_id and streamer_id in rule.streamer_ids:
        return True
    return False


def default_routing_rules() -> list[ProviderRoutingRule]:
    """Starter rules; only the catch-all is active out of the box."""
    return [
        ProviderRoutingRule(
            id="rule-premium-printful",
            name="Premium products - Printful",
            description="Send products priced $50 and up to Printful",
            priority=1,
            is_active=False,
            conditions=RoutingConditions(price_range=PriceRange(min=Decimal("50"))),
            provider=PODProvider.PRINTFUL,
            fallback_provider=PODProvider.PRINTIFY,
        ),
        ProviderRoutingRule(
            id="rule-print-gelato",
            name="Flat prints - Gelato",
            description="Posters and stickers go to Gelato",
            priority=2,
            is_active=False,
            conditions=RoutingConditions(
                categories=[ProductCategory.POSTERS, ProductCategory.STICKERS]
            ),
            provider=PODProvider.GELATO,
            fallback_provider=PODProvider.PRINTIFY,
        ),
        ProviderRoutingRule(
            id="rule-default-printify",
            name="Default - Printify",
            description="Catch-all",
            priority=999,
            is_active=True,
            provider=PODProvider.PRINTIFY,
        ),
    ]


def default_markup_rules() -> list[MarkupRule]:
    return [
        MarkupRule(
            id="markup-premium-apparel",
            name="Premium apparel 70%",
            categories=[ProductCategory.APPAREL, ProductCategory.BAGS],
            markup_type=MarkupType.PERCENTAGE,
            markup_value=Decimal("70"),
            priority=1,
            is_active=False,
        ),
        MarkupRule(
            id="markup-small-goods-fixed",
            name="Small goods $10 fixed",
            categories=[ProductCategory.STICKERS, ProductCategory.PHONE_CASES],
            markup_type=MarkupType.FIXED,
            markup_value=Decimal("10"),
            priority=2,
            is_active=False,
        ),
    ]


class ProviderRegistry:
    """Routing rules, per-streamer provider allow-lists and markup rules."""

    def __init__(
        self,
        routing_rules: RoutingRuleRepository,
        access: ProviderAccessRepository,
        markup_rules: MarkupRuleRepository,
        *,
        settings: Optional[Settings] = None,
        clock: Clock = utc_now,
    ):
        self.routing_rules = routing_rules
        self.access = access
        self.markup_rules = markup_rules
        self.settings = settings or get_settings()
        self.clock = clock

    @property
    def default_provider(self) -> PODProvider:
        return PODProvider(self.settings.DEFAULT_POD_PROVIDER)

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------

    def _active_rules(self) -> list[ProviderRoutingRule]:
        return sorted(
            (r for r in self.routing_rules.all() if r.is_active),
            key=lambda r: r.priority,
        )

    def matching_rule(self, product: Product) -> Optional[ProviderRoutingRule]:
        return next((r for r in self._active_rules() if rule_matches(r, product)), None)

    def route_product(self, product: Product) -> PODProvider:
        """Explicit override, then the first matching rule, then the default."""
        if product.provider_override:
            return product.provider_override

        rule = self.matching_rule(product)
        if rule:
            logger.debug(
                "Product %s matched routing rule %s -> %s",
                product.id,
                rule.name,
                rule.provider.value,
            )
            return rule.provider

        return self.default_provider

    def route_for_streamer(self, product: Product) -> PODProvider:
        """Route, then fall back when the streamer may not use the routed provider."""
        provider = self.route_product(product)
        if self.check_access(product.streamer_id, provider):
            return provider

        rule = None if product.provider_override else self.matching_rule(product)
        fallback = rule.fallback_provider if rule else None
        for candidate in (fallback, self.default_provider):
            if candidate and self.check_access(product.streamer_id, candidate):
                logger.info(
                    "Streamer %s cannot use %s; routing product %s to %s",
                    product.streamer_id,
                    provider.value,
                    product.id,
                    candidate.value,
                )
                return candidate
        return provider

    async def add_routing_rule(self, rule: ProviderRoutingRule) -> ProviderRoutingRule:
        rule.created_at = rule.updated_at = self.clock()
        await self.routing_rules.put(rule)
        logger.info("Added routing rule %s -> %s", rule.name, rule.provider.value)
        return rule

    async def update_routing_rule(
        self, rule_id: str, **changes
    ) -> Optional[ProviderRoutingRule]:
        rule = self.routing_rules.get(rule_id)
        if rule is None:
            return None
        return await self.routing_rules.put(
            merge_changes(rule, changes, updated_at=self.clock())
        )

    async def delete_routing_rule(self, rule_id: str) -> bool:
        return await self.routing_rules.remove(rule_id) is not None

    def list_routing_rules(self) -> list[ProviderRoutingRule]:
        return sorted(self.routing_rules.all(), key=lambda r: r.priority)

    async def initialize_default_routing_rules(self) -> None:
        if len(self.routing_rules):
            return
        await self.routing_rules.put_many(default_routing_rules())

    # ------------------------------------------------------------------
    # Access control
    # ------------------------------------------------------------------

    async def set_access(
        self,
        streamer_id: str,
        allowed_providers: list[PODProvider],
        streamer_name: str = "",
    ) -> ProviderAccess:
        now = self.clock()
        existing = self.access.get(streamer_id)
        record = ProviderAccess(
            streamer_id=streamer_id,
            streamer_name=streamer_name or (existing.streamer_name if existing else ""),
            allowed_providers=list(dict.fromkeys(allowed_providers)),
            created_at=existing.created_at if existing else now,
            updated_at=now,
        )
        await self.access.put(record)
        logger.info(
            "Provider access for streamer %s set to %s",
            streamer_id,
            [p.value for p in record.allowed_providers],
        )
        return record

    def get_access(self, streamer_id: str) -> Optional[ProviderAccess]:
        return self.access.get(streamer_id)

    def check_access(self, streamer_id: str, provider: PODProvider) -> bool:
        """No record means unrestricted; a record is an allow-list."""
        record = self.access.get(streamer_id)
        if record is None:
            return True
        return provider in record.allowed_providers

    async def clear_access(self, streamer_id: str) -> bool:
        return await self.access.remove(streamer_id) is not None

    # ------------------------------------------------------------------
    # Markup
    # ------------------------------------------------------------------

    def find_markup_rule(
        self,
        category: ProductCategory,
        product_id: Optional[str] = None,
        streamer_id: Optional[str] = None,
    ) -> Optional[MarkupRule]:
        rules = sorted(
            (r for r in self.markup_rules.all() if r.is_active),
            key=lambda r: r.priority,
        )
        return next(
            (
                r
                for r in rules
                if markup_rule_matches(r, category, product_id, streamer_id)
            ),
            None,
        )

    def compute_markup(
        self,
        category: ProductCategory,
        base_price: Decimal,
        product_id: Optional[str] = None,
        streamer_id: Optional[str] = None,
    ) -> Decimal:
        base_price = to_decimal(base_price)
        rule = self.find_markup_rule(category, product_id, streamer_id)
        if rule is None:
            return percent_of(base_price, self.settings.DEFAULT_MARKUP_PERCENT)
        if rule.markup_type == MarkupType.PERCENTAGE:
            return percent_of(base_price, rule.markup_value)
        return round_money(rule.markup_value)

    def quote_price(
        self,
        category: ProductCategory,
        base_price: Decimal,
        fee_percent: Decimal,
        *,
        markup: Optional[Decimal] = None,
        product_id: Optional[str] = None,
        streamer_id: Optional[str] = None,
    ) -> PriceQuote:
        """Price a product: base + markup + platform fee on (base + markup)."""
        base_price = round_money(base_price)
        if markup is None:
            markup = self.compute_markup(category, base_price, product_id, streamer_id)
        markup = round_money(markup)

        rule = self.find_markup_rule(category, product_id, streamer_id)
        if rule and rule.platform_fee_override is not None:
            fee_percent = rule.platform_fee_override
        fee_percent = to_decimal(fee_percent)

        platform_fee = percent_of(base_price + markup, fee_percent)
        return PriceQuote(
            markup=markup,
            platform_fee_percent=fee_percent,
            platform_fee=platform_fee,
            final_price=round_money(base_price + markup + platform_fee),
        )

    async def add_markup_rule(self, rule: MarkupRule) -> MarkupRule:
        rule.created_at = rule.updated_at = self.clock()
        await self.markup_rules.put(rule)
        logger.info("Added markup rule %s", rule.name)
        return rule

    async def update_markup_rule(self, rule_id: str, **changes) -> Optional[MarkupRule]:
        rule = self.markup_rules.get(rule_id)
        if rule is None:
            return None
        return await self.markup_rules.put(
            merge_changes(rule, changes, updated_at=self.clock())
        )

    async def delete_markup_rule(self, rule_id: str) -> bool:
        return await self.markup_rules.remove(rule_id) is not None

    def list_markup_rules(self) -> list[MarkupRule]:
        return sorted(self.markup_rules.all(), key=lambda r: r.priority)

    async def initialize_default_markup_rules(self) -> None:
        if len(self.markup_rules):
            return
        await self.markup_rules.put_many(default_markup_rules())
