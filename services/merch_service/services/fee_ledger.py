"""Platform fee structure and trial ledger.

Streamers and fan-tier buyers get a fee-free trial window seeded from the
single active fee structure. Fan waivers are per buyer per seller, so the
superfan ledger is keyed by (user_id, streamer_id).
"""

from datetime import timedelta
from decimal import Decimal
from typing import Optional

from libs.common.config import Settings, get_settings
from libs.common.currency import round_money, to_decimal
from libs.common.datetime_utils import Clock, ensure_utc, utc_now
from libs.common.logging import get_logger
from services.merch_service.models import (
    FeeStructure,
    StreamerFeeStatus,
    SuperfanFeeStatus,
)
from services.merch_service.repositories import (
    FeeStructureRepository,
    StreamerFeeRepository,
    SuperfanFeeRepository,
    merge_changes,
    superfan_key,
)

logger = get_logger(__name__)

ZERO_FEE = Decimal("0")


class FeeLedger:
    def __init__(
        self,
        structures: FeeStructureRepository,
        streamers: StreamerFeeRepository,
        superfans: SuperfanFeeRepository,
        *,
        settings: Optional[Settings] = None,
        clock: Clock = utc_now,
    ):
        self.structures = structures
        self.streamers = streamers
        self.superfans = superfans
        self.settings = settings or get_settings()
        self.clock = clock

    # ------------------------------------------------------------------
    # Fee structures
    # ------------------------------------------------------------------

    def active_fee_structure(self) -> Optional[FeeStructure]:
        return next((f for f in self.structures.all() if f.is_active), None)

    def _deactivate_others(self, keep_id: str) -> None:
        for structure in self.structures.all():
            if structure.id != keep_id and structure.is_active:
                structure.is_active = False
                structure.updated_at = self.clock()

    async def add_fee_structure(
        self,
        *,
        name: str,
        base_platform_fee: Decimal,
        streamer_trial_days: int,
        superfan_trial_days: int,
        description: str = "",
        is_active: bool = True,
    ) -> FeeStructure:
        structure = FeeStructure(
            name=name,
            description=description,
            base_platform_fee=to_decimal(base_platform_fee),
            streamer_trial_days=streamer_trial_days,
            superfan_trial_days=superfan_trial_days,
            is_active=is_active,
            created_at=self.clock(),
            updated_at=self.clock(),
        )
        if is_active:
            self._deactivate_others(structure.id)
        await self.structures.put(structure)
        logger.info(
            "Added fee structure %s (%s%%, active=%s)",
            structure.id,
            structure.base_platform_fee,
            structure.is_active,
        )
        return structure

    async def update_fee_structure(
        self, structure_id: str, **changes
    ) -> Optional[FeeStructure]:
        structure = self.structures.get(structure_id)
        if structure is None:
            return None
        updated = merge_changes(structure, changes, updated_at=self.clock())
        if updated.is_active:
            self._deactivate_others(updated.id)
        return await self.structures.put(updated)

    async def initialize_default_fee_structure(self) -> FeeStructure:
        existing = self.active_fee_structure()
        if existing:
            return existing
        return await self.add_fee_structure(
            name="Standard Fee Structure",
            description="Flat platform commission after the trial window",
            base_platform_fee=self.settings.DEFAULT_PLATFORM_FEE_PERCENT,
            streamer_trial_days=self.settings.DEFAULT_STREAMER_TRIAL_DAYS,
            superfan_trial_days=self.settings.DEFAULT_SUPERFAN_TRIAL_DAYS,
        )

    def _base_rate(self, fee_structure_id: Optional[str] = None) -> Decimal:
        structure = None
        if fee_structure_id:
            structure = self.structures.get(fee_structure_id)
        structure = structure or self.active_fee_structure()
        if structure is None:
            return self.settings.DEFAULT_PLATFORM_FEE_PERCENT
        return structure.base_platform_fee

    # ------------------------------------------------------------------
    # Streamer trials
    # ------------------------------------------------------------------

    async def initialize_trial(self, streamer_id: str) -> Optional[StreamerFeeStatus]:
        """Start a streamer's fee-free window once; never resets an existing one."""
        existing = self.streamers.get(streamer_id)
        if existing:
            return existing

        structure = self.active_fee_structure()
        if structure is None:
            logger.warning(
                "No active fee structure; trial not started for streamer %s",
                streamer_id,
            )
            return None

        now = self.clock()
        status = StreamerFeeStatus(
            streamer_id=streamer_id,
            fee_structure_id=structure.id,
            trial_start=now,
            trial_end=now + timedelta(days=structure.streamer_trial_days),
            created_at=now,
        )
        await self.streamers.put(status)
        logger.info(
            "Started %d-day fee trial for streamer %s",
            structure.streamer_trial_days,
            streamer_id,
        )
        return status

    def get_status(self, streamer_id: str) -> Optional[StreamerFeeStatus]:
        return self.streamers.get(streamer_id)

    def is_in_trial(self, streamer_id: str) -> bool:
        status = self.streamers.get(streamer_id)
        if status is None:
            return False
        return self.clock() < ensure_utc(status.trial_end)

    def current_fee(self, streamer_id: str) -> Decimal:
        """Effective platform fee percent for a streamer right now."""
        status = self.streamers.get(streamer_id)
        if status is None:
            return self._base_rate()
        if self.clock() < ensure_utc(status.trial_end):
            return ZERO_FEE
        if status.custom_fee_percent is not None:
            return status.custom_fee_percent
        return self._base_rate(status.fee_structure_id)

    async def set_custom_rate(
        self, streamer_id: str, fee_percent: Optional[Decimal]
    ) -> Optional[StreamerFeeStatus]:
        status = self.streamers.get(streamer_id)
        if status is None:
            return None
        status.custom_fee_percent = (
            to_decimal(fee_percent) if fee_percent is not None else None
        )
        await self.streamers.persist()
        logger.info("Custom fee for streamer %s set to %s", streamer_id, fee_percent)
        return status

    async def record_savings(self, streamer_id: str, amount: Decimal) -> None:
        """Accumulate what a streamer saved by selling inside the trial."""
        status = self.streamers.get(streamer_id)
        if status is None or amount <= 0:
            return
        status.total_saved = round_money(status.total_saved + to_decimal(amount))
        await self.streamers.persist()

    # ------------------------------------------------------------------
    # Superfan trials
    # ------------------------------------------------------------------

    async def initialize_superfan_trial(
        self, user_id: str, streamer_id: str
    ) -> Optional[SuperfanFeeStatus]:
        existing = self.superfans.get(superfan_key(user_id, streamer_id))
        if existing:
            return existing

        structure = self.active_fee_structure()
        if structure is None:
            logger.warning(
                "No active fee structure; superfan trial not started for %s/%s",
                user_id,
                streamer_id,
            )
            return None

        now = self.clock()
        status = SuperfanFeeStatus(
            user_id=user_id,
            streamer_id=streamer_id,
            fee_structure_id=structure.id,
            trial_start=now,
            trial_end=now + timedelta(days=structure.superfan_trial_days),
            created_at=now,
        )
        await self.superfans.put(status)
        logger.info(
            "Started superfan fee waiver for user %s on streamer %s",
            user_id,
            streamer_id,
        )
        return status

    def get_superfan_status(
        self, user_id: str, streamer_id: str
    ) -> Optional[SuperfanFeeStatus]:
        return self.superfans.get(superfan_key(user_id, streamer_id))

    def is_superfan_fee_waived(self, user_id: str, streamer_id: str) -> bool:
        status = self.get_superfan_status(user_id, streamer_id)
        if status is None:
            return False
        return status.fee_waived and self.clock() < ensure_utc(status.trial_end)

    def superfan_current_fee(self, user_id: str, streamer_id: str) -> Decimal:
        status = self.get_superfan_status(user_id, streamer_id)
        if status is None:
            return self._base_rate()
        if self.is_superfan_fee_waived(user_id, streamer_id):
            return ZERO_FEE
        if status.custom_fee_percent is not None:
            return status.custom_fee_percent
        return self._base_rate(status.fee_structure_id)
