"""Promotion campaign models."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.datetime_utils import utc_now
from pydantic import BaseModel, Field
from services.merch_service.models.catalog import new_id
from services.merch_service.models.enums import (
    PromotionDuration,
    PromotionStatus,
    PromotionType,
    TargetAudience,
)


class Promotion(BaseModel):
    id: str = Field(default_factory=new_id)
    name: str
    description: str = ""
    type: PromotionType
    value: Decimal  # percent (0-100) or dollars, depending on type
    code: Optional[str] = None
    min_purchase: Optional[Decimal] = None
    max_discount: Optional[Decimal] = None

    start_date: datetime
    end_date: datetime
    duration: Optional[PromotionDuration] = None

    target_audience: TargetAudience = TargetAudience.ALL
    status: PromotionStatus = PromotionStatus.SCHEDULED
    is_visible: bool = True

    usage_count: int = 0
    usage_limit: Optional[int] = None

    created_by: str = "admin"
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def __repr__(self):
        return f"<Promotion {self.name} code={self.code}>"


class PromotionValidation(BaseModel):
    valid: bool
    discount: Decimal = Decimal("0.00")
    message: str
    promotion_id: Optional[str] = None
    promotion_type: Optional[PromotionType] = None


class PromotionFilter(BaseModel):
    status: Optional[PromotionStatus] = None
    target_audience: Optional[TargetAudience] = None
    is_visible: Optional[bool] = None
