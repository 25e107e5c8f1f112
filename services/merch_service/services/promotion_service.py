"""Time-bounded discount campaigns.

``validate`` is read-only so a checkout preview never consumes a use;
``redeem`` bumps the usage counter and is called only when an order commits.
"""

import secrets
import string
from datetime import timedelta
from decimal import Decimal
from typing import Optional, Union

from libs.common.config import Settings, get_settings
from libs.common.currency import ZERO, format_usd, percent_of, round_money, to_decimal
from libs.common.datetime_utils import Clock, ensure_utc, utc_now
from libs.common.logging import get_logger
from services.merch_service.models import (
    BuyerTier,
    Promotion,
    PromotionDuration,
    PromotionFilter,
    PromotionStatus,
    PromotionType,
    PromotionValidation,
    TargetAudience,
)
from services.merch_service.repositories import (
    OrderRepository,
    PromotionRepository,
    merge_changes,
)

logger = get_logger(__name__)

DURATION_DELTAS: dict[PromotionDuration, timedelta] = {
    PromotionDuration.THIRTY_MINUTES: timedelta(minutes=30),
    PromotionDuration.ONE_HOUR: timedelta(hours=1),
    PromotionDuration.TWO_HOURS: timedelta(hours=2),
    PromotionDuration.SIX_HOURS: timedelta(hours=6),
    PromotionDuration.TWELVE_HOURS: timedelta(hours=12),
    PromotionDuration.ONE_DAY: timedelta(hours=24),
    PromotionDuration.THREE_DAYS: timedelta(days=3),
    PromotionDuration.SEVEN_DAYS: timedelta(days=7),
    PromotionDuration.FOURTEEN_DAYS: timedelta(days=14),
    PromotionDuration.THIRTY_DAYS: timedelta(days=30),
}

QUICK_CODE_PREFIX = "QUICK"
QUICK_CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_promo_code(prefix: str = QUICK_CODE_PREFIX, length: int = 6) -> str:
    return prefix + "".join(secrets.choice(QUICK_CODE_ALPHABET) for _ in range(length))


def _rejected(message: str) -> PromotionValidation:
    return PromotionValidation(valid=False, discount=ZERO, message=message)


class PromotionService:
    def __init__(
        self,
        promotions: PromotionRepository,
        orders: OrderRepository,
        *,
        settings: Optional[Settings] = None,
        clock: Clock = utc_now,
    ):
        self.promotions = promotions
        self.orders = orders
        self.settings = settings or get_settings()
        self.clock = clock

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    async def add_promotion(self, promotion: Promotion) -> Promotion:
        now = self.clock()
        promotion.code = promotion.code.strip().upper() if promotion.code else None
        promotion.usage_count = 0
        promotion.created_at = promotion.updated_at = now
        await self.promotions.put(promotion)
        logger.info(
            "Added promotion %s (%s, code=%s)",
            promotion.id,
            promotion.type.value,
            promotion.code,
        )
        return promotion

    async def update_promotion(self, promotion_id: str, **changes) -> Optional[Promotion]:
        promotion = self.promotions.get(promotion_id)
        if promotion is None:
            return None
        if changes.get("code"):
            changes["code"] = changes["code"].strip().upper()
        return await self.promotions.put(
            merge_changes(promotion, changes, updated_at=self.clock())
        )

    async def end_promotion(self, promotion_id: str) -> Optional[Promotion]:
        """Soft end; the record stays for the orders that reference it."""
        promotion = await self.update_promotion(
            promotion_id, status=PromotionStatus.ENDED
        )
        if promotion:
            logger.info("Ended promotion %s", promotion_id)
        return promotion

    async def delete_promotion(self, promotion_id: str) -> bool:
        if self.promotions.get(promotion_id) is None:
            return False
        if self.orders.references_promotion(promotion_id):
            await self.end_promotion(promotion_id)
            return True
        await self.promotions.remove(promotion_id)
        logger.info("Deleted promotion %s", promotion_id)
        return True

    def get_promotion(self, promotion_id: str) -> Optional[Promotion]:
        return self.promotions.get(promotion_id)

    def get_by_code(self, code: str) -> Optional[Promotion]:
        return self.promotions.find_by_code(code)

    def list_promotions(self, filters: Optional[PromotionFilter] = None) -> list[Promotion]:
        result = self.promotions.all()
        if filters:
            if filters.status:
                result = [p for p in result if p.status == filters.status]
            if filters.target_audience:
                result = [p for p in result if p.target_audience == filters.target_audience]
            if filters.is_visible is not None:
                result = [p for p in result if p.is_visible == filters.is_visible]
        return result

    def _in_window(self, promotion: Promotion) -> bool:
        now = self.clock()
        return ensure_utc(promotion.start_date) <= now < ensure_utc(promotion.end_date)

    def _under_limit(self, promotion: Promotion) -> bool:
        return promotion.usage_limit is None or promotion.usage_count < promotion.usage_limit

    def active_promotions(self) -> list[Promotion]:
        return [
            p
            for p in self.promotions.all()
            if p.status == PromotionStatus.ACTIVE
            and self._in_window(p)
            and self._under_limit(p)
        ]

    def streamer_visible_promotions(self) -> list[Promotion]:
        now = self.clock()
        return [
            p
            for p in self.promotions.all()
            if p.is_visible
            and p.status in (PromotionStatus.ACTIVE, PromotionStatus.SCHEDULED)
            and ensure_utc(p.end_date) > now
            and p.target_audience in (TargetAudience.ALL, TargetAudience.STREAMERS_ONLY)
        ]

    async def refresh_statuses(self) -> int:
        """Move scheduled campaigns to active and past-end campaigns to ended."""
        now = self.clock()
        changed = 0
        for promotion in self.promotions.all():
            if promotion.status == PromotionStatus.ENDED:
                continue
            if ensure_utc(promotion.end_date) <= now:
                promotion.status = PromotionStatus.ENDED
            elif (
                promotion.status == PromotionStatus.SCHEDULED
                and ensure_utc(promotion.start_date) <= now
            ):
                promotion.status = PromotionStatus.ACTIVE
            else:
                continue
            promotion.updated_at = now
            changed += 1
        if changed:
            await self.promotions.persist()
            logger.info("Refreshed status of %d promotions", changed)
        return changed

    # ------------------------------------------------------------------
    # Validation and redemption
    # ------------------------------------------------------------------

    def discount_for(self, promotion: Promotion, subtotal: Decimal) -> Decimal:
        """Raw discount; fixed amounts may exceed the subtotal and callers clamp."""
        subtotal = to_decimal(subtotal)
        if promotion.type == PromotionType.PERCENTAGE_OFF:
            discount = percent_of(subtotal, promotion.value)
            if promotion.max_discount is not None and discount > promotion.max_discount:
                discount = round_money(promotion.max_discount)
            return discount
        if promotion.type == PromotionType.FIXED_AMOUNT_OFF:
            return round_money(promotion.value)
        if promotion.type == PromotionType.FREE_SHIPPING:
            # shipping credit, not a subtotal discount
            return round_money(self.settings.STANDARD_SHIPPING_USD)
        if promotion.type == PromotionType.BUNDLE_DEAL:
            return percent_of(subtotal, promotion.value)
        return ZERO

    def validate(
        self,
        code: str,
        subtotal: Decimal,
        buyer_id: str,
        buyer_tier: Union[BuyerTier, str] = BuyerTier.USER,
    ) -> PromotionValidation:
        """Check a code against a subtotal; first failing check wins. No side effects."""
        promotion = self.promotions.find_by_code(code) if code else None
        if promotion is None:
            return _rejected("Invalid promotion code")

        if promotion.status != PromotionStatus.ACTIVE:
            return _rejected("This promotion is not currently active")

        now = self.clock()
        if now < ensure_utc(promotion.start_date):
            return _rejected("This promotion has not started yet")
        if now >= ensure_utc(promotion.end_date):
            return _rejected("This promotion has expired")

        if not self._under_limit(promotion):
            return _rejected("This promotion has reached its usage limit")

        subtotal = to_decimal(subtotal)
        if promotion.min_purchase is not None and subtotal < promotion.min_purchase:
            return _rejected(
                f"Minimum purchase of {format_usd(promotion.min_purchase)} required"
            )

        tier = getattr(buyer_tier, "value", buyer_tier)
        if (
            promotion.target_audience == TargetAudience.SUPERFANS_ONLY
            and tier != BuyerTier.SUPERFAN.value
        ):
            return _rejected("This promotion is for Super Fans only")
        if (
            promotion.target_audience == TargetAudience.STREAMERS_ONLY
            and tier != BuyerTier.STREAMER.value
        ):
            return _rejected("This promotion is for streamers only")

        discount = self.discount_for(promotion, subtotal)
        logger.debug("Promotion %s valid for buyer %s: %s", promotion.id, buyer_id, discount)
        return PromotionValidation(
            valid=True,
            discount=discount,
            message=f"Promotion applied: -{format_usd(discount)}",
            promotion_id=promotion.id,
            promotion_type=promotion.type,
        )

    async def redeem(self, promotion_id: str) -> Optional[Promotion]:
        promotion = self.promotions.get(promotion_id)
        if promotion is None:
            return None
        promotion.usage_count += 1
        promotion.updated_at = self.clock()
        await self.promotions.persist()
        logger.info(
            "Redeemed promotion %s (%d/%s)",
            promotion_id,
            promotion.usage_count,
            promotion.usage_limit if promotion.usage_limit is not None else "unlimited",
        )
        return promotion

    async def apply(
        self,
        code: str,
        subtotal: Decimal,
        buyer_id: str,
        buyer_tier: Union[BuyerTier, str] = BuyerTier.USER,
    ) -> PromotionValidation:
        """Validate and, when valid, redeem in one step."""
        result = self.validate(code, subtotal, buyer_id, buyer_tier)
        if result.valid and result.promotion_id:
            await self.redeem(result.promotion_id)
        return result

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    async def create_quick_promotion(
        self,
        name: str,
        type: PromotionType,
        value: Decimal,
        duration: PromotionDuration,
        target_audience: TargetAudience = TargetAudience.ALL,
        created_by: str = "admin",
    ) -> Promotion:
        """Compose an immediately active campaign with a generated code.

        A streamer "boost" is this call with ``created_by`` set to the streamer.
        """
        now = self.clock()
        value = to_decimal(value)
        unit = "%" if type in (PromotionType.PERCENTAGE_OFF, PromotionType.BUNDLE_DEAL) else "$"
        promotion = Promotion(
            name=name,
            description=f"Quick promotion: {value}{unit} off",
            type=type,
            value=value,
            code=generate_promo_code(),
            start_date=now,
            end_date=now + DURATION_DELTAS[duration],
            duration=duration,
            target_audience=target_audience,
            status=PromotionStatus.ACTIVE,
            is_visible=True,
            created_by=created_by,
        )
        return await self.add_promotion(promotion)
