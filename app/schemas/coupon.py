from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator, model_validator

from app.core.clock import as_utc
from app.models import DiscountType


class CouponIn(BaseModel):
    """Admin create / replace payload."""
    code: str = Field(min_length=1, max_length=64)
    description: str | None = Field(default=None, max_length=255)
    discount_type: DiscountType
    discount_value: Decimal = Field(gt=0)
    min_order_amount: Decimal | None = Field(default=None, ge=0)
    max_discount_amount: Decimal | None = Field(default=None, gt=0)
    usage_limit: int | None = Field(default=None, ge=1)
    usage_per_user: int | None = Field(default=None, ge=1)
    start_date: datetime
    end_date: datetime
    is_active: bool = True

    @field_validator("code")
    @classmethod
    def upper_code(cls, v: str) -> str:
        v = v.strip().upper()
        if not v:
            raise ValueError("Coupon code is required")
        return v

    @field_validator("start_date", "end_date")
    @classmethod
    def utc_window(cls, v: datetime) -> datetime:
        """Offsets are converted to UTC; a bare timestamp is read as UTC."""
        return as_utc(v)

    @model_validator(mode="after")
    def check_rules(self) -> "CouponIn":
        if self.discount_type == DiscountType.PERCENTAGE and self.discount_value > 100:
            raise ValueError("Percentage discount cannot exceed 100")
        if self.start_date >= self.end_date:
            raise ValueError("start_date must be before end_date")
        return self


class CouponResponse(BaseModel):
    id: int
    code: str
    description: str | None = None
    discount_type: DiscountType
    discount_value: Decimal
    min_order_amount: Decimal | None = None
    max_discount_amount: Decimal | None = None
    usage_limit: int | None = None
    usage_per_user: int | None = None
    current_usage: int
    start_date: datetime
    end_date: datetime
    is_active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}
