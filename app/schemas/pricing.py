from decimal import Decimal

from pydantic import BaseModel, Field, field_validator


class CartItemIn(BaseModel):
    """One cart entry as sent by the storefront: ids and quantity, never a price."""
    product_id: int
    variant_id: int | None = None
    quantity: int = Field(ge=1, le=1000)


class QuoteRequest(BaseModel):
    items: list[CartItemIn] = Field(default_factory=list, max_length=200)
    coupon_code: str | None = Field(default=None, max_length=64)
    customer_id: str | None = Field(default=None, max_length=64)

    @field_validator("coupon_code", "customer_id", mode="before")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if isinstance(v, str) and not v.strip():
            return None
        return v.strip() if isinstance(v, str) else v


class RejectionOut(BaseModel):
    code: str
    message: str


class QuoteResponse(BaseModel):
    subtotal: Decimal
    discount_amount: Decimal
    total: Decimal
    currency: str
    applied_coupon_code: str | None = None
    rejection: RejectionOut | None = None
