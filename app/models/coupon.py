"""Coupon: percentage or fixed discount, validity window, minimum order and usage caps."""
from datetime import datetime
from decimal import Decimal
from enum import Enum

from sqlmodel import Field, SQLModel

from app.core.clock import utc_now


class DiscountType(str, Enum):
    PERCENTAGE = "PERCENTAGE"
    FIXED_AMOUNT = "FIXED_AMOUNT"


class Coupon(SQLModel, table=True):
    """Created by the merchant from the admin API; read-only for pricing."""

    id: int | None = Field(default=None, primary_key=True)
    code: str = Field(unique=True, index=True, max_length=64)  # stored upper-case, e.g. EID10
    description: str | None = Field(default=None, max_length=255)
    discount_type: DiscountType
    # PERCENTAGE: (0, 100], FIXED_AMOUNT: currency amount
    discount_value: Decimal = Field(max_digits=12, decimal_places=2)
    min_order_amount: Decimal | None = Field(default=None, max_digits=12, decimal_places=2)
    max_discount_amount: Decimal | None = Field(default=None, max_digits=12, decimal_places=2)
    usage_limit: int | None = Field(default=None)  # null = unlimited
    usage_per_user: int | None = Field(default=None)  # null = unlimited
    # Only incremented by the guarded UPDATE in services.coupon.redeem_coupon
    current_usage: int = Field(default=0)
    start_date: datetime  # UTC, inclusive
    end_date: datetime  # UTC, inclusive
    is_active: bool = True
    created_at: datetime | None = Field(default_factory=utc_now)
    updated_at: datetime | None = Field(default_factory=utc_now)


class CouponRedemption(SQLModel, table=True):
    """One row per confirmed order that used a coupon; per-customer counts come from here."""

    id: int | None = Field(default=None, primary_key=True)
    coupon_id: int = Field(foreign_key="coupon.id", index=True)
    customer_id: str | None = Field(default=None, index=True, max_length=64)
    order_id: int | None = Field(default=None, foreign_key="order.id")
    created_at: datetime | None = Field(default_factory=utc_now)
