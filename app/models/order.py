from datetime import datetime
from decimal import Decimal

from sqlmodel import Field, SQLModel

from app.core.clock import utc_now


class Order(SQLModel, table=True):
    """Confirmed checkout: totals are frozen at placement time, payment gets only total + currency."""

    id: int | None = Field(default=None, primary_key=True)
    order_number: str = Field(unique=True, index=True, max_length=32)
    customer_id: str | None = Field(default=None, index=True, max_length=64)
    subtotal: Decimal = Field(max_digits=12, decimal_places=2)
    discount_amount: Decimal = Field(default=Decimal("0"), max_digits=12, decimal_places=2)
    total: Decimal = Field(max_digits=12, decimal_places=2)
    currency: str = Field(default="BDT", max_length=3)
    coupon_code: str | None = Field(default=None, max_length=64)
    status: str = "pending"  # pending | paid | cancelled
    created_at: datetime | None = Field(default_factory=utc_now)


class OrderItem(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    order_id: int = Field(foreign_key="order.id", index=True)
    product_id: int
    variant_id: int | None = None
    quantity: int
    unit_price: Decimal = Field(max_digits=12, decimal_places=2)  # effective price incl. sale + variant
    line_total: Decimal = Field(max_digits=12, decimal_places=2)
