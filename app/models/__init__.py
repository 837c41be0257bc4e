from .coupon import Coupon, CouponRedemption, DiscountType
from .error_log import ErrorLog
from .order import Order, OrderItem
from .product import Product, ProductVariant
from .security_log import SecurityLog

__all__ = [
    "Coupon",
    "CouponRedemption",
    "DiscountType",
    "ErrorLog",
    "Order",
    "OrderItem",
    "Product",
    "ProductVariant",
    "SecurityLog",
]
