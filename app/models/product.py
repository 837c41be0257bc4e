from datetime import datetime
from decimal import Decimal

from sqlmodel import Field, SQLModel

from app.core.clock import utc_now


class Product(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(max_length=200)
    base_price: Decimal = Field(max_digits=12, decimal_places=2)
    sale_price: Decimal | None = Field(default=None, max_digits=12, decimal_places=2)
    is_active: bool = True
    created_at: datetime | None = Field(default_factory=utc_now)


class ProductVariant(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    product_id: int = Field(foreign_key="product.id", index=True)
    name: str = Field(max_length=120)  # e.g. "XL / Red"
    price_adjustment: Decimal = Field(default=Decimal("0"), max_digits=12, decimal_places=2)  # may be negative
    is_active: bool = True
