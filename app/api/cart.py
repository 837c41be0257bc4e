from fastapi import APIRouter, Depends, Request
from sqlmodel import Session

from app.core.database import get_db
from app.core.rate_limit import checkout_limit, limiter
from app.schemas import QuoteRequest, QuoteResponse, RejectionOut
from app.services.orders import quote
from app.services.pricing import PricingResult

router = APIRouter(prefix="/cart", tags=["cart"])


def rejection_out(result: PricingResult) -> RejectionOut | None:
    if result.rejection is None:
        return None
    return RejectionOut(code=result.rejection.value, message=result.rejection.message)


def quote_response(result: PricingResult) -> QuoteResponse:
    return QuoteResponse(
        subtotal=result.subtotal,
        discount_amount=result.discount_amount,
        total=result.total,
        currency=result.currency,
        applied_coupon_code=result.applied_coupon_code,
        rejection=rejection_out(result),
    )


@router.post("/quote", response_model=QuoteResponse)
@limiter.limit(checkout_limit())
def cart_quote(
    request: Request,
    body: QuoteRequest,
    db: Session = Depends(get_db),
):
    """Cart total with an optional coupon. A coupon that does not apply only sets `rejection`."""
    request.state.customer_id = body.customer_id
    result = quote(db, body.items, body.coupon_code, body.customer_id)
    return quote_response(result)
