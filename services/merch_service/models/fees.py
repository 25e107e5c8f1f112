"""Platform fee structure and trial ledger records."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.datetime_utils import utc_now
from pydantic import BaseModel, Field
from services.merch_service.models.catalog import new_id


class FeeStructure(BaseModel):
    id: str = Field(default_factory=new_id)
    name: str
    description: str = ""
    base_platform_fee: Decimal  # percent, e.g. 12 = 12%
    streamer_trial_days: int
    superfan_trial_days: int
    is_active: bool = True
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class StreamerFeeStatus(BaseModel):
    streamer_id: str
    fee_structure_id: str
    trial_start: datetime
    trial_end: datetime
    custom_fee_percent: Optional[Decimal] = None  # negotiated override
    total_saved: Decimal = Decimal("0.00")
    created_at: datetime = Field(default_factory=utc_now)


class SuperfanFeeStatus(BaseModel):
    user_id: str
    streamer_id: str
    fee_structure_id: str
    trial_start: datetime
    trial_end: datetime
    fee_waived: bool = True
    custom_fee_percent: Optional[Decimal] = None
    created_at: datetime = Field(default_factory=utc_now)
