from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel

from app.schemas.pricing import RejectionOut


class OrderItemResponse(BaseModel):
    product_id: int
    variant_id: int | None = None
    quantity: int
    unit_price: Decimal
    line_total: Decimal

    model_config = {"from_attributes": True}


class OrderResponse(BaseModel):
    order_number: str
    customer_id: str | None = None
    subtotal: Decimal
    discount_amount: Decimal
    total: Decimal
    currency: str
    coupon_code: str | None = None
    status: str
    created_at: datetime | None = None
    items: list[OrderItemResponse] = []


class PaymentPayload(BaseModel):
    """What the payment collaborator receives: no line or discount detail."""
    order_number: str
    amount: Decimal
    currency: str


class PlaceOrderResponse(BaseModel):
    order: OrderResponse
    payment: PaymentPayload
    # Set when a coupon was given but the order was priced without it
    rejection: RejectionOut | None = None
