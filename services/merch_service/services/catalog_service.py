"""Catalog store: products, variants, filtered views and sales counters."""

from decimal import Decimal
from typing import Iterable, Optional

from libs.common.currency import round_money, to_decimal
from libs.common.datetime_utils import Clock, utc_now
from libs.common.logging import get_logger
from services.merch_service.models import (
    OrderItem,
    PODProvider,
    Product,
    ProductCategory,
    ProductFilter,
    ProductSortKey,
    ProviderProduct,
    Variant,
)
from services.merch_service.repositories import CatalogRepository, merge_changes
from services.merch_service.services.fee_ledger import FeeLedger
from services.merch_service.services.provider_routing import ProviderRegistry

logger = get_logger(__name__)

PRICING_FIELDS = {"base_cost", "markup"}


def _sort_products(products: list[Product], sort_by: ProductSortKey) -> list[Product]:
    if sort_by == ProductSortKey.NEWEST:
        return sorted(products, key=lambda p: p.created_at, reverse=True)
    if sort_by == ProductSortKey.PRICE_LOW:
        return sorted(products, key=lambda p: p.final_price)
    if sort_by == ProductSortKey.PRICE_HIGH:
        return sorted(products, key=lambda p: p.final_price, reverse=True)
    if sort_by == ProductSortKey.BEST_SELLING:
        return sorted(products, key=lambda p: p.units_sold, reverse=True)
    if sort_by == ProductSortKey.FEATURED:
        return sorted(products, key=lambda p: not p.is_featured)
    return products


def _matches_search(product: Product, query: str) -> bool:
    query = query.lower()
    return (
        query in product.title.lower()
        or query in product.description.lower()
        or query in product.streamer_name.lower()
    )


def _merge_synced_variants(existing: list[Variant], incoming: list[Variant]) -> list[Variant]:
    """Fold a vendor's variant list into the stored one.

    Variants are matched on ``provider_variant_id`` and keep their local id,
    so carts and placed orders still resolve. Stored variants the vendor no
    longer lists are kept but marked unavailable.
    """
    by_provider_id = {
        variant.provider_variant_id: variant
        for variant in existing
        if variant.provider_variant_id
    }
    merged: list[Variant] = []
    seen: set[str] = set()
    for variant in incoming:
        current = by_provider_id.get(variant.provider_variant_id)
        if current is None:
            merged.append(variant)
            continue
        seen.add(current.id)
        merged.append(variant.model_copy(update={"id": current.id}))
    for variant in existing:
        if variant.id not in seen and variant.provider_variant_id:
            merged.append(variant.model_copy(update={"is_available": False}))
    return merged


class CatalogService:
    def __init__(
        self,
        products: CatalogRepository,
        fees: FeeLedger,
        registry: ProviderRegistry,
        *,
        clock: Clock = utc_now,
    ):
        self.products = products
        self.fees = fees
        self.registry = registry
        self.clock = clock

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def add_product(
        self,
        *,
        streamer_id: str,
        title: str,
        base_cost: Decimal,
        category: ProductCategory = ProductCategory.OTHER,
        streamer_name: str = "",
        description: str = "",
        markup: Optional[Decimal] = None,
        images: Optional[list[str]] = None,
        variants: Optional[list[Variant]] = None,
        tags: Optional[list[str]] = None,
        is_active: bool = True,
        is_featured: bool = False,
        provider: Optional[PODProvider] = None,
        provider_product_id: Optional[str] = None,
        provider_override: Optional[PODProvider] = None,
    ) -> Product:
        """Create a product priced from markup rules and the streamer's fee rate.

        The platform fee percent is captured once here; later changes to the
        streamer's trial status do not reprice existing products.
        """
        now = self.clock()
        quote = self.registry.quote_price(
            category,
            to_decimal(base_cost),
            self.fees.current_fee(streamer_id),
            markup=markup,
            streamer_id=streamer_id,
        )
        product = Product(
            streamer_id=streamer_id,
            streamer_name=streamer_name,
            title=title,
            description=description,
            category=category,
            base_cost=round_money(base_cost),
            markup=quote.markup,
            platform_fee_percent=quote.platform_fee_percent,
            platform_fee=quote.platform_fee,
            final_price=quote.final_price,
            images=images or [],
            variants=variants or [],
            is_active=is_active,
            is_featured=is_featured,
            tags=tags or [],
            provider=provider,
            provider_product_id=provider_product_id,
            provider_override=provider_override,
            created_at=now,
            updated_at=now,
            last_sync_at=now if provider_product_id else None,
        )
        await self.products.put(product)
        logger.info(
            "Created product %s for streamer %s at %s",
            product.id,
            streamer_id,
            product.final_price,
        )
        return product

    async def update_product(self, product_id: str, **changes) -> Optional[Product]:
        """Apply edits; base cost or markup edits reprice with the captured fee percent."""
        product = self.products.get(product_id)
        if product is None:
            return None

        updated = merge_changes(product, changes, updated_at=self.clock())
        if changes.get("final_price") is None and PRICING_FIELDS & {
            k for k, v in changes.items() if v is not None
        }:
            quote = self.registry.quote_price(
                updated.category,
                updated.base_cost,
                updated.platform_fee_percent,
                markup=updated.markup,
            )
            updated.platform_fee = quote.platform_fee
            updated.final_price = quote.final_price

        return await self.products.put(updated)

    async def bulk_update(self, product_ids: Iterable[str], **changes) -> int:
        now = self.clock()
        updated = []
        for product_id in product_ids:
            product = self.products.get(product_id)
            if product is None:
                continue
            updated.append(merge_changes(product, changes, updated_at=now))
        if updated:
            await self.products.put_many(updated)
        return len(updated)

    async def set_featured(self, product_id: str, featured: bool) -> Optional[Product]:
        return await self.update_product(product_id, is_featured=featured)

    async def delete_product(self, product_id: str) -> bool:
        """Remove from the catalog; order snapshots keep their copies."""
        removed = await self.products.remove(product_id)
        if removed:
            logger.info("Deleted product %s", product_id)
        return removed is not None

    async def record_sales(self, items: Iterable[OrderItem]) -> None:
        """Bump units-sold and revenue for every order line whose product still exists."""
        touched = False
        for item in items:
            product = self.products.get(item.product_id)
            if product is None:
                continue
            product.units_sold += item.quantity
            product.revenue = round_money(product.revenue + item.line_total)
            touched = True
        if touched:
            await self.products.persist()

    async def upsert_from_provider(
        self,
        streamer_id: str,
        streamer_name: str,
        provider_product: ProviderProduct,
    ) -> Product:
        existing = self.products.find_by_provider_id(
            provider_product.provider, provider_product.provider_product_id
        )
        if existing is None:
            return await self.add_product(
                streamer_id=streamer_id,
                streamer_name=streamer_name,
                title=provider_product.title,
                description=provider_product.description,
                category=provider_product.category,
                base_cost=provider_product.base_cost,
                images=provider_product.images,
                variants=provider_product.variants,
                tags=provider_product.tags,
                provider=provider_product.provider,
                provider_product_id=provider_product.provider_product_id,
            )

        updated = await self.update_product(
            existing.id,
            title=provider_product.title,
            description=provider_product.description,
            base_cost=provider_product.base_cost,
            images=provider_product.images,
            variants=_merge_synced_variants(existing.variants, provider_product.variants),
            tags=provider_product.tags,
            last_sync_at=self.clock(),
        )
        return updated or existing

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_product(self, product_id: str) -> Optional[Product]:
        return self.products.get(product_id)

    def list_products(self, filters: Optional[ProductFilter] = None) -> list[Product]:
        """Customer-facing listing; inactive products never appear here."""
        result = self.products.all()

        if filters:
            if filters.streamer_id:
                result = [p for p in result if p.streamer_id == filters.streamer_id]
            if filters.category:
                result = [p for p in result if p.category == filters.category]
            if filters.min_price is not None:
                result = [p for p in result if p.final_price >= filters.min_price]
            if filters.max_price is not None:
                result = [p for p in result if p.final_price <= filters.max_price]
            if filters.is_active is not None:
                result = [p for p in result if p.is_active == filters.is_active]
            if filters.is_featured is not None:
                result = [p for p in result if p.is_featured == filters.is_featured]
            if filters.search_query:
                result = [p for p in result if _matches_search(p, filters.search_query)]
            if filters.sort_by:
                result = _sort_products(result, filters.sort_by)

        return [p for p in result if p.is_active]

    def streamer_products(self, streamer_id: str) -> list[Product]:
        """A streamer's own products, inactive ones included."""
        return [p for p in self.products.all() if p.streamer_id == streamer_id]

    def top_selling(self, limit: int = 10) -> list[Product]:
        return sorted(self.products.all(), key=lambda p: p.units_sold, reverse=True)[
            :limit
        ]
