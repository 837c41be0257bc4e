"""Coupon lookup, redemption counts and the guarded usage increment."""
import logging

from sqlalchemy import func, or_, update
from sqlmodel import Session, select

from app.models import Coupon, CouponRedemption
from app.services.pricing import RejectionReason, normalize_code

log = logging.getLogger("bazar.coupon")


class CouponRedemptionConflict(Exception):
    """The coupon ran out between quote and confirmation."""

    def __init__(self, code: str, reason: RejectionReason):
        self.code = code
        self.reason = reason
        super().__init__(f"Coupon {code} could not be redeemed: {reason.value}")


class DbCouponSource:
    """CouponSource over a SQLModel session."""

    def __init__(self, db: Session):
        self.db = db

    def find_by_code(self, code: str) -> Coupon | None:
        code_upper = normalize_code(code)
        if code_upper is None:
            return None
        stmt = select(Coupon).where(func.upper(Coupon.code) == code_upper)
        return self.db.exec(stmt).first()

    def global_usage(self, coupon: Coupon) -> int:
        return coupon.current_usage or 0

    def customer_usage(self, coupon: Coupon, customer_id: str) -> int:
        stmt = select(func.count(CouponRedemption.id)).where(
            CouponRedemption.coupon_id == coupon.id,
            CouponRedemption.customer_id == customer_id,
        )
        return self.db.exec(stmt).one()


def redeem_coupon(db: Session, coupon: Coupon, customer_id: str | None, order_id: int | None) -> None:
    """
    Counts one redemption inside the caller's transaction (caller commits).
    current_usage only moves through the conditional UPDATE, so two checkouts
    racing for the last use cannot both pass the cap.
    """
    if customer_id and coupon.usage_per_user is not None:
        if DbCouponSource(db).customer_usage(coupon, customer_id) >= coupon.usage_per_user:
            raise CouponRedemptionConflict(coupon.code, RejectionReason.PER_USER_USAGE_EXHAUSTED)

    stmt = (
        update(Coupon)
        .where(Coupon.id == coupon.id)
        .where(or_(Coupon.usage_limit.is_(None), Coupon.current_usage < Coupon.usage_limit))
        .values(current_usage=Coupon.current_usage + 1)
    )
    result = db.connection().execute(stmt)
    if result.rowcount != 1:
        log.warning("coupon=%s usage cap reached at confirmation", coupon.code)
        raise CouponRedemptionConflict(coupon.code, RejectionReason.GLOBAL_USAGE_EXHAUSTED)

    db.add(CouponRedemption(coupon_id=coupon.id, customer_id=customer_id, order_id=order_id))
    db.refresh(coupon)
    log.info("coupon=%s redeemed order_id=%s usage=%s", coupon.code, order_id, coupon.current_usage)


def search_coupons(db: Session, query: str | None = None) -> list[Coupon]:
    """Admin list, newest first; q matches code or description."""
    stmt = select(Coupon).order_by(Coupon.id.desc())
    q = (query or "").strip()
    if q:
        pattern = f"%{q.lower()}%"
        stmt = stmt.where(
            or_(func.lower(Coupon.code).like(pattern), func.lower(Coupon.description).like(pattern))
        )
    return list(db.exec(stmt).all())
