"""Coupon management: admin CRUD (JSON)."""
import logging

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlmodel import Session, select

from app.admin.deps import require_admin
from app.core.clock import utc_now
from app.core.database import get_db
from app.models import Coupon
from app.schemas import CouponIn, CouponResponse
from app.services.coupon import search_coupons

router = APIRouter()
log = logging.getLogger("bazar.admin")


def _code_taken(db: Session, code: str, exclude_id: int | None = None) -> bool:
    stmt = select(Coupon).where(Coupon.code == code)
    if exclude_id is not None:
        stmt = stmt.where(Coupon.id != exclude_id)
    return db.exec(stmt).first() is not None


def _apply(coupon: Coupon, body: CouponIn) -> None:
    coupon.code = body.code
    coupon.description = (body.description or "").strip() or None
    coupon.discount_type = body.discount_type
    coupon.discount_value = body.discount_value
    coupon.min_order_amount = body.min_order_amount
    coupon.max_discount_amount = body.max_discount_amount
    coupon.usage_limit = body.usage_limit
    coupon.usage_per_user = body.usage_per_user
    coupon.start_date = body.start_date
    coupon.end_date = body.end_date
    coupon.is_active = body.is_active


@router.get("", response_model=list[CouponResponse])
@router.get("/", response_model=list[CouponResponse], include_in_schema=False)
def coupons_list(
    q: str | None = None,
    _=Depends(require_admin),
    db: Session = Depends(get_db),
):
    return search_coupons(db, q)


@router.post("", response_model=CouponResponse, status_code=201)
def coupon_create(
    body: CouponIn,
    _=Depends(require_admin),
    db: Session = Depends(get_db),
):
    if _code_taken(db, body.code):
        raise HTTPException(status_code=409, detail="This coupon code already exists.")
    coupon = Coupon(
        code=body.code,
        discount_type=body.discount_type,
        discount_value=body.discount_value,
        start_date=body.start_date,
        end_date=body.end_date,
    )
    _apply(coupon, body)
    db.add(coupon)
    db.commit()
    db.refresh(coupon)
    log.info("coupon created code=%s type=%s value=%s", coupon.code, coupon.discount_type, coupon.discount_value)
    return coupon


@router.get("/{coupon_id:int}", response_model=CouponResponse)
def coupon_detail(
    coupon_id: int,
    _=Depends(require_admin),
    db: Session = Depends(get_db),
):
    coupon = db.get(Coupon, coupon_id)
    if not coupon:
        raise HTTPException(status_code=404, detail="Coupon not found.")
    return coupon


@router.put("/{coupon_id:int}", response_model=CouponResponse)
def coupon_update(
    coupon_id: int,
    body: CouponIn,
    _=Depends(require_admin),
    db: Session = Depends(get_db),
):
    coupon = db.get(Coupon, coupon_id)
    if not coupon:
        raise HTTPException(status_code=404, detail="Coupon not found.")
    if _code_taken(db, body.code, exclude_id=coupon_id):
        raise HTTPException(status_code=409, detail="This code is used by another coupon.")
    _apply(coupon, body)
    coupon.updated_at = utc_now()
    db.add(coupon)
    db.commit()
    db.refresh(coupon)
    return coupon


@router.delete("/{coupon_id:int}", status_code=204)
def coupon_delete(
    coupon_id: int,
    _=Depends(require_admin),
    db: Session = Depends(get_db),
):
    coupon = db.get(Coupon, coupon_id)
    if not coupon:
        raise HTTPException(status_code=404, detail="Coupon not found.")
    if coupon.current_usage:
        raise HTTPException(status_code=409, detail="Coupon has redemptions; deactivate it instead.")
    db.delete(coupon)
    db.commit()
    return Response(status_code=204)
