from .coupon import CouponIn, CouponResponse
from .order import OrderItemResponse, OrderResponse, PaymentPayload, PlaceOrderResponse
from .pricing import CartItemIn, QuoteRequest, QuoteResponse, RejectionOut

__all__ = [
    "CartItemIn",
    "CouponIn",
    "CouponResponse",
    "OrderItemResponse",
    "OrderResponse",
    "PaymentPayload",
    "PlaceOrderResponse",
    "QuoteRequest",
    "QuoteResponse",
    "RejectionOut",
]
