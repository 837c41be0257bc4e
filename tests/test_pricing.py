"""Pricing engine: line totals, eligibility order, discount math, assembly."""
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from app.models import Coupon, DiscountType
from app.services.pricing import (
    CartLine,
    FixedAmountDiscount,
    InvalidQuantity,
    PercentageDiscount,
    RejectionReason,
    calculate_discount,
    cart_subtotal,
    check_eligibility,
    compute_total,
    discount_rule,
    effective_unit_price,
    line_total,
)

NOW = datetime(2026, 3, 15, 12, 0, 0, tzinfo=timezone.utc)


class FakeCoupons:
    """In-memory CouponSource; records lookups so tests can assert the coupon was not consulted."""

    def __init__(self, *coupons: Coupon, usage: dict | None = None, customer_usage: dict | None = None):
        self.coupons = {c.code.upper(): c for c in coupons}
        self.usage = usage or {}
        self.per_customer = customer_usage or {}
        self.lookups: list[str] = []

    def find_by_code(self, code: str):
        self.lookups.append(code)
        return self.coupons.get(code.upper())

    def global_usage(self, coupon: Coupon) -> int:
        return self.usage.get(coupon.code, 0)

    def customer_usage(self, coupon: Coupon, customer_id: str) -> int:
        return self.per_customer.get((coupon.code, customer_id), 0)


def coupon(code="SAVE10", discount_type=DiscountType.PERCENTAGE, value="10", **kwargs) -> Coupon:
    kwargs.setdefault("start_date", NOW - timedelta(days=1))
    kwargs.setdefault("end_date", NOW + timedelta(days=1))
    kwargs.setdefault("is_active", True)
    return Coupon(code=code, discount_type=discount_type, discount_value=Decimal(value), **kwargs)


def line(price, qty=1, **kwargs) -> CartLine:
    return CartLine(product_id=kwargs.pop("product_id", 1), unit_price=Decimal(str(price)), quantity=qty, **kwargs)


# --- line totals ---


def test_line_total_is_price_times_quantity():
    assert line_total(line(250, qty=3)) == Decimal("750")


def test_sale_price_used_only_when_lower():
    assert effective_unit_price(line(500, sale_price=Decimal("400"))) == Decimal("400")
    assert effective_unit_price(line(500, sale_price=Decimal("650"))) == Decimal("500")


def test_variant_adjustment_added_to_sale_price():
    item = line(500, qty=2, sale_price=Decimal("400"), variant_price_adjustment=Decimal("50"))
    assert line_total(item) == Decimal("900")


def test_negative_effective_price_floored_at_zero():
    item = line(100, qty=4, variant_price_adjustment=Decimal("-150"))
    assert effective_unit_price(item) == Decimal("0")
    assert line_total(item) == Decimal("0")


@pytest.mark.parametrize("qty", [0, -2])
def test_non_positive_quantity_rejected(qty):
    with pytest.raises(InvalidQuantity) as exc:
        line_total(line(100, qty=qty, product_id=7))
    assert exc.value.product_id == 7
    assert exc.value.code == "invalid_quantity"


def test_subtotal_is_order_independent():
    lines = [line(120, 2), line(99.5, 3, product_id=2), line(10, 1, product_id=3, variant_price_adjustment=Decimal("5"))]
    assert cart_subtotal(lines) == cart_subtotal(list(reversed(lines))) == Decimal("553.5")


def test_subtotal_of_no_lines_is_zero():
    assert cart_subtotal([]) == Decimal("0")


# --- eligibility ---


def test_missing_coupon_is_not_found():
    assert check_eligibility(None, Decimal("100"), "c1", NOW, FakeCoupons()) is RejectionReason.NOT_FOUND


def test_window_is_inclusive():
    c = coupon(start_date=NOW, end_date=NOW + timedelta(hours=1))
    assert check_eligibility(c, Decimal("100"), None, NOW, FakeCoupons()) is None
    assert check_eligibility(c, Decimal("100"), None, NOW + timedelta(hours=1), FakeCoupons()) is None


@pytest.mark.parametrize("offset", [timedelta(days=-2), timedelta(days=2)])
def test_outside_window_is_expired(offset):
    c = coupon()
    assert check_eligibility(c, Decimal("100"), None, NOW + offset, FakeCoupons()) is RejectionReason.EXPIRED


def test_aware_now_is_compared_in_utc():
    c = coupon(start_date=NOW, end_date=NOW + timedelta(hours=1))
    # 17:30 in Dhaka (UTC+6) is 11:30 UTC, before the window opens
    dhaka = timezone(timedelta(hours=6))
    early = datetime(2026, 3, 15, 17, 30, tzinfo=dhaka)
    assert check_eligibility(c, Decimal("100"), None, early, FakeCoupons()) is RejectionReason.EXPIRED
    inside = datetime(2026, 3, 15, 12, 30, tzinfo=timezone.utc)
    assert check_eligibility(c, Decimal("100"), None, inside, FakeCoupons()) is None


def test_window_read_back_without_offset_is_utc():
    # SQLite returns stored timestamps without tzinfo
    c = coupon(start_date=datetime(2026, 3, 15, 12, 0), end_date=datetime(2026, 3, 15, 13, 0))
    assert check_eligibility(c, Decimal("100"), None, NOW, FakeCoupons()) is None
    assert check_eligibility(c, Decimal("100"), None, NOW - timedelta(minutes=1), FakeCoupons()) is RejectionReason.EXPIRED


def test_expired_reported_before_inactive():
    c = coupon(is_active=False, end_date=NOW - timedelta(hours=1), start_date=NOW - timedelta(days=3))
    assert check_eligibility(c, Decimal("100"), None, NOW, FakeCoupons()) is RejectionReason.EXPIRED


def test_inactive_reported_before_minimum():
    c = coupon(is_active=False, min_order_amount=Decimal("1000"))
    assert check_eligibility(c, Decimal("10"), None, NOW, FakeCoupons()) is RejectionReason.INACTIVE


def test_below_minimum_order():
    c = coupon(min_order_amount=Decimal("1000"))
    assert check_eligibility(c, Decimal("999"), None, NOW, FakeCoupons()) is RejectionReason.BELOW_MINIMUM_ORDER
    assert check_eligibility(c, Decimal("1000"), None, NOW, FakeCoupons()) is None


def test_global_usage_exhausted_regardless_of_subtotal():
    c = coupon(usage_limit=5)
    source = FakeCoupons(c, usage={"SAVE10": 5})
    assert check_eligibility(c, Decimal("1000000"), "c1", NOW, source) is RejectionReason.GLOBAL_USAGE_EXHAUSTED
    source.usage["SAVE10"] = 4
    assert check_eligibility(c, Decimal("1000000"), "c1", NOW, source) is None


def test_per_user_usage_exhausted():
    c = coupon(usage_per_user=1)
    source = FakeCoupons(c, customer_usage={("SAVE10", "c1"): 1})
    assert check_eligibility(c, Decimal("100"), "c1", NOW, source) is RejectionReason.PER_USER_USAGE_EXHAUSTED
    assert check_eligibility(c, Decimal("100"), "c2", NOW, source) is None


def test_guest_only_checked_against_global_cap():
    c = coupon(usage_per_user=1)
    source = FakeCoupons(c, customer_usage={("SAVE10", "c1"): 3})
    assert check_eligibility(c, Decimal("100"), None, NOW, source) is None


def test_global_cap_reported_before_per_user_cap():
    c = coupon(usage_limit=2, usage_per_user=1)
    source = FakeCoupons(c, usage={"SAVE10": 2}, customer_usage={("SAVE10", "c1"): 1})
    assert check_eligibility(c, Decimal("100"), "c1", NOW, source) is RejectionReason.GLOBAL_USAGE_EXHAUSTED


# --- discount ---


def test_percentage_capped_by_max_discount():
    rule = discount_rule(coupon(value="10", max_discount_amount=Decimal("500")))
    assert rule == PercentageDiscount(value=Decimal("10"), cap=Decimal("500"))
    assert calculate_discount(rule, Decimal("10000")) == Decimal("500")


def test_percentage_without_cap():
    assert calculate_discount(PercentageDiscount(Decimal("15")), Decimal("2000")) == Decimal("300")


def test_fixed_amount_clamped_to_subtotal():
    rule = discount_rule(coupon(discount_type=DiscountType.FIXED_AMOUNT, value="300"))
    assert rule == FixedAmountDiscount(value=Decimal("300"))
    assert calculate_discount(rule, Decimal("200")) == Decimal("200")


@pytest.mark.parametrize(
    "subtotal, expected",
    [("250", "12"), ("270", "14"), ("330", "16"), ("10", "0")],
)
def test_rounding_is_half_even_to_whole_taka(subtotal, expected):
    # 5% of 250 = 12.5 -> 12, of 270 = 13.5 -> 14, of 330 = 16.5 -> 16, of 10 = 0.5 -> 0
    assert calculate_discount(PercentageDiscount(Decimal("5")), Decimal(subtotal)) == Decimal(expected)


def test_rounded_discount_never_exceeds_fractional_subtotal():
    assert calculate_discount(FixedAmountDiscount(Decimal("300")), Decimal("200.6")) == Decimal("200.6")


def test_unknown_discount_type_is_an_error():
    c = coupon()
    c.discount_type = "FREE_SHIPPING"
    with pytest.raises(ValueError):
        discount_rule(c)


def test_discount_bounds_hold_for_mixed_coupons():
    rules = [
        PercentageDiscount(Decimal("100")),
        PercentageDiscount(Decimal("33"), cap=Decimal("70")),
        FixedAmountDiscount(Decimal("1")),
        FixedAmountDiscount(Decimal("99999")),
    ]
    for rule in rules:
        for subtotal in ("0", "1", "49.99", "1234", "100000"):
            d = calculate_discount(rule, Decimal(subtotal))
            assert Decimal("0") <= d <= Decimal(subtotal)


# --- assembly ---


def test_compute_total_percentage_with_cap():
    c = coupon(value="10", max_discount_amount=Decimal("500"))
    result = compute_total([line(5000, 2)], "save10", "c1", NOW, FakeCoupons(c))
    assert result.subtotal == Decimal("10000")
    assert result.discount_amount == Decimal("500")
    assert result.total == Decimal("9500")
    assert result.applied_coupon_code == "SAVE10"
    assert result.rejection is None
    assert result.currency == "BDT"


def test_compute_total_fixed_amount_to_zero():
    c = coupon(code="FLAT300", discount_type=DiscountType.FIXED_AMOUNT, value="300")
    result = compute_total([line(200)], "FLAT300", None, NOW, FakeCoupons(c))
    assert (result.discount_amount, result.total) == (Decimal("200"), Decimal("0"))


def test_compute_total_rejection_keeps_subtotal():
    c = coupon(min_order_amount=Decimal("1000"))
    result = compute_total([line(999)], "SAVE10", "c1", NOW, FakeCoupons(c))
    assert result.rejection is RejectionReason.BELOW_MINIMUM_ORDER
    assert result.discount_amount == Decimal("0")
    assert result.total == result.subtotal == Decimal("999")
    assert result.applied_coupon_code is None


def test_compute_total_unknown_code():
    result = compute_total([line(100)], "NOPE", "c1", NOW, FakeCoupons())
    assert result.rejection is RejectionReason.NOT_FOUND
    assert result.rejection.message == "Invalid coupon code."
    assert result.total == Decimal("100")


def test_empty_cart_skips_coupon():
    source = FakeCoupons(coupon())
    result = compute_total([], "SAVE10", "c1", NOW, source)
    assert result.total == Decimal("0")
    assert result.rejection is None
    assert result.applied_coupon_code is None
    assert source.lookups == []


@pytest.mark.parametrize("code", [None, "", "   "])
def test_blank_code_means_no_coupon(code):
    source = FakeCoupons(coupon())
    result = compute_total([line(100)], code, "c1", NOW, source)
    assert result.total == Decimal("100")
    assert result.rejection is None
    assert source.lookups == []


def test_compute_total_is_idempotent():
    c = coupon(value="12.5", usage_limit=10)
    source = FakeCoupons(c, usage={"SAVE10": 3})
    lines = [line(333, 3), line(79, 1, product_id=2)]
    first = compute_total(lines, "SAVE10", "c1", NOW, source)
    second = compute_total(lines, "SAVE10", "c1", NOW, source)
    assert first == second
    assert first.total == first.subtotal - first.discount_amount
