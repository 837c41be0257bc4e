"""
Pricing engine: line totals, coupon eligibility, discount and order total.

Pure functions over already-fetched records. Nothing here touches the database
or increments usage counters; redemption happens at order confirmation
(app/services/coupon.py).
"""
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_EVEN, Decimal
from enum import Enum
from typing import Iterable, Protocol

from app.core.clock import as_utc
from app.core.config import money_quantum, settings
from app.models import Coupon, DiscountType

ZERO = Decimal("0")


class PricingError(Exception):
    """Base for errors the caller turns into a user-facing 4xx."""

    code = "pricing_error"


class InvalidQuantity(PricingError):
    code = "invalid_quantity"

    def __init__(self, product_id: int, quantity: int):
        self.product_id = product_id
        self.quantity = quantity
        super().__init__(f"Quantity must be at least 1 (product {product_id}, got {quantity}).")


class UnknownProductOrVariant(PricingError):
    code = "unknown_product_or_variant"

    def __init__(self, product_id: int, variant_id: int | None = None):
        self.product_id = product_id
        self.variant_id = variant_id
        if variant_id is None:
            msg = f"Product {product_id} is not available."
        else:
            msg = f"Variant {variant_id} of product {product_id} is not available."
        super().__init__(msg)


class RejectionReason(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    EXPIRED = "EXPIRED"
    INACTIVE = "INACTIVE"
    BELOW_MINIMUM_ORDER = "BELOW_MINIMUM_ORDER"
    GLOBAL_USAGE_EXHAUSTED = "GLOBAL_USAGE_EXHAUSTED"
    PER_USER_USAGE_EXHAUSTED = "PER_USER_USAGE_EXHAUSTED"

    @property
    def message(self) -> str:
        return REJECTION_MESSAGES[self]


REJECTION_MESSAGES = {
    RejectionReason.NOT_FOUND: "Invalid coupon code.",
    RejectionReason.EXPIRED: "This coupon is not valid at this time.",
    RejectionReason.INACTIVE: "This coupon is no longer active.",
    RejectionReason.BELOW_MINIMUM_ORDER: "Your order does not reach the minimum amount for this coupon.",
    RejectionReason.GLOBAL_USAGE_EXHAUSTED: "This coupon has reached its usage limit.",
    RejectionReason.PER_USER_USAGE_EXHAUSTED: "You have already used this coupon the maximum number of times.",
}


@dataclass(frozen=True)
class CartLine:
    product_id: int
    unit_price: Decimal
    quantity: int
    variant_price_adjustment: Decimal = ZERO
    sale_price: Decimal | None = None
    variant_id: int | None = None


@dataclass(frozen=True)
class PercentageDiscount:
    value: Decimal
    cap: Decimal | None = None


@dataclass(frozen=True)
class FixedAmountDiscount:
    value: Decimal


DiscountRule = PercentageDiscount | FixedAmountDiscount


@dataclass(frozen=True)
class PricingResult:
    subtotal: Decimal
    discount_amount: Decimal
    total: Decimal
    applied_coupon_code: str | None = None
    rejection: RejectionReason | None = None
    currency: str = "BDT"


class CouponSource(Protocol):
    """Read side of the coupon store: lookup and current redemption counts."""

    def find_by_code(self, code: str) -> Coupon | None: ...

    def global_usage(self, coupon: Coupon) -> int: ...

    def customer_usage(self, coupon: Coupon, customer_id: str) -> int: ...


def normalize_code(code: str | None) -> str | None:
    """Strip + upper-case; blank means no code."""
    if not code or not (code := code.strip()):
        return None
    return code.upper()


def round_money(amount: Decimal) -> Decimal:
    return amount.quantize(money_quantum(), rounding=ROUND_HALF_EVEN)


def effective_unit_price(line: CartLine) -> Decimal:
    price = line.unit_price
    if line.sale_price is not None and line.sale_price < price:
        price = line.sale_price
    price = price + line.variant_price_adjustment
    return max(price, ZERO)


def line_total(line: CartLine) -> Decimal:
    if line.quantity <= 0:
        raise InvalidQuantity(line.product_id, line.quantity)
    return effective_unit_price(line) * line.quantity


def cart_subtotal(lines: Iterable[CartLine]) -> Decimal:
    return sum((line_total(line) for line in lines), start=ZERO)


def discount_rule(coupon: Coupon) -> DiscountRule:
    """Coupon row -> tagged rule. Unknown types are an error, not a zero discount."""
    kind = DiscountType(coupon.discount_type)
    if kind is DiscountType.PERCENTAGE:
        return PercentageDiscount(value=Decimal(coupon.discount_value), cap=coupon.max_discount_amount)
    if kind is DiscountType.FIXED_AMOUNT:
        return FixedAmountDiscount(value=Decimal(coupon.discount_value))
    raise ValueError(f"Unsupported discount type: {coupon.discount_type!r}")


def check_eligibility(
    coupon: Coupon | None,
    subtotal: Decimal,
    customer_id: str | None,
    now: datetime,
    coupons: CouponSource,
) -> RejectionReason | None:
    """
    Returns None when the coupon applies, otherwise the first failing reason.
    Order is fixed: not found, window, active flag, minimum order, global cap, per-customer cap.
    Guests (customer_id None) are only subject to the global cap.
    """
    if coupon is None:
        return RejectionReason.NOT_FOUND
    now = as_utc(now)
    if not (as_utc(coupon.start_date) <= now <= as_utc(coupon.end_date)):
        return RejectionReason.EXPIRED
    if not coupon.is_active:
        return RejectionReason.INACTIVE
    if coupon.min_order_amount is not None and subtotal < coupon.min_order_amount:
        return RejectionReason.BELOW_MINIMUM_ORDER
    if coupon.usage_limit is not None and coupons.global_usage(coupon) >= coupon.usage_limit:
        return RejectionReason.GLOBAL_USAGE_EXHAUSTED
    if (
        coupon.usage_per_user is not None
        and customer_id
        and coupons.customer_usage(coupon, customer_id) >= coupon.usage_per_user
    ):
        return RejectionReason.PER_USER_USAGE_EXHAUSTED
    return None


def calculate_discount(rule: DiscountRule, subtotal: Decimal) -> Decimal:
    if subtotal <= ZERO:
        return ZERO
    if isinstance(rule, PercentageDiscount):
        amount = subtotal * rule.value / 100
        if rule.cap is not None:
            amount = min(amount, Decimal(rule.cap))
    elif isinstance(rule, FixedAmountDiscount):
        amount = min(rule.value, subtotal)
    else:
        raise TypeError(f"Unknown discount rule: {rule!r}")
    # Rounding can move a fractional subtotal's discount above it
    return min(max(round_money(amount), ZERO), subtotal)


def compute_total(
    lines: Iterable[CartLine],
    coupon_code: str | None,
    customer_id: str | None,
    now: datetime,
    coupons: CouponSource,
) -> PricingResult:
    """Subtotal -> eligibility -> discount. Ineligible codes keep discount 0 and report the reason."""
    currency = settings.currency
    subtotal = cart_subtotal(lines)
    if subtotal == ZERO:
        return PricingResult(subtotal=ZERO, discount_amount=ZERO, total=ZERO, currency=currency)

    code = normalize_code(coupon_code)
    if code is None:
        return PricingResult(subtotal=subtotal, discount_amount=ZERO, total=subtotal, currency=currency)

    coupon = coupons.find_by_code(code)
    reason = check_eligibility(coupon, subtotal, customer_id, now, coupons)
    if reason is not None:
        return PricingResult(
            subtotal=subtotal,
            discount_amount=ZERO,
            total=subtotal,
            rejection=reason,
            currency=currency,
        )

    discount = calculate_discount(discount_rule(coupon), subtotal)
    return PricingResult(
        subtotal=subtotal,
        discount_amount=discount,
        total=subtotal - discount,
        applied_coupon_code=coupon.code,
        currency=currency,
    )
