"""Order placement: re-price server side, persist, redeem the coupon once."""
import logging
import secrets
from datetime import datetime
from typing import Iterable

from sqlmodel import Session, select

from app.core.clock import utc_now
from app.models import Order, OrderItem
from app.schemas.pricing import CartItemIn
from app.services.catalog import build_cart_lines
from app.services.coupon import DbCouponSource, redeem_coupon
from app.services.pricing import PricingResult, compute_total, effective_unit_price, line_total

log = logging.getLogger("bazar.orders")


def _order_number(now: datetime) -> str:
    return f"BZ{now.strftime('%y%m%d')}{secrets.token_hex(4).upper()}"


def quote(
    db: Session,
    items: Iterable[CartItemIn],
    coupon_code: str | None,
    customer_id: str | None,
    now: datetime | None = None,
) -> PricingResult:
    """Read-only price quote; never consumes a redemption."""
    now = now or utc_now()
    lines = build_cart_lines(db, items)
    return compute_total(lines, coupon_code, customer_id, now, DbCouponSource(db))


def place_order(
    db: Session,
    items: Iterable[CartItemIn],
    coupon_code: str | None,
    customer_id: str | None,
    now: datetime | None = None,
) -> tuple[Order, PricingResult]:
    """
    Prices the cart again at confirmation time and writes Order + OrderItems.
    An applied coupon is redeemed in the same transaction; CouponRedemptionConflict
    rolls everything back and propagates to the caller.
    """
    now = now or utc_now()
    coupons = DbCouponSource(db)
    lines = build_cart_lines(db, items)
    result = compute_total(lines, coupon_code, customer_id, now, coupons)

    order = Order(
        order_number=_order_number(now),
        customer_id=customer_id,
        subtotal=result.subtotal,
        discount_amount=result.discount_amount,
        total=result.total,
        currency=result.currency,
        coupon_code=result.applied_coupon_code,
    )
    try:
        db.add(order)
        db.flush()
        for line in lines:
            db.add(
                OrderItem(
                    order_id=order.id,
                    product_id=line.product_id,
                    variant_id=line.variant_id,
                    quantity=line.quantity,
                    unit_price=effective_unit_price(line),
                    line_total=line_total(line),
                )
            )
        if result.applied_coupon_code:
            coupon = coupons.find_by_code(result.applied_coupon_code)
            redeem_coupon(db, coupon, customer_id, order.id)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(order)
    log.info(
        "order=%s customer=%s subtotal=%s discount=%s total=%s coupon=%s",
        order.order_number,
        customer_id or "-",
        order.subtotal,
        order.discount_amount,
        order.total,
        order.coupon_code or "-",
    )
    return order, result


def get_order(db: Session, order_number: str) -> Order | None:
    return db.exec(select(Order).where(Order.order_number == order_number)).first()


def order_items(db: Session, order: Order) -> list[OrderItem]:
    return list(db.exec(select(OrderItem).where(OrderItem.order_id == order.id).order_by(OrderItem.id)).all())


def payment_payload(order: Order) -> dict:
    """Only total and currency go to payment initiation."""
    return {"order_number": order.order_number, "amount": order.total, "currency": order.currency}
