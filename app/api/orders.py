from fastapi import APIRouter, Depends, HTTPException, Request
from sqlmodel import Session

from app.api.cart import rejection_out
from app.core.database import get_db
from app.core.rate_limit import checkout_limit, limiter
from app.models import Order
from app.schemas import OrderItemResponse, OrderResponse, PlaceOrderResponse, QuoteRequest
from app.services.orders import get_order, order_items, payment_payload, place_order

router = APIRouter(prefix="/orders", tags=["orders"])


def _order_response(db: Session, order: Order) -> OrderResponse:
    return OrderResponse(
        order_number=order.order_number,
        customer_id=order.customer_id,
        subtotal=order.subtotal,
        discount_amount=order.discount_amount,
        total=order.total,
        currency=order.currency,
        coupon_code=order.coupon_code,
        status=order.status,
        created_at=order.created_at,
        items=[OrderItemResponse.model_validate(i) for i in order_items(db, order)],
    )


@router.post("", response_model=PlaceOrderResponse, status_code=201)
@limiter.limit(checkout_limit())
def create_order(
    request: Request,
    body: QuoteRequest,
    db: Session = Depends(get_db),
):
    """Confirms the cart as an order. Coupon usage is counted here, not at quote time."""
    request.state.customer_id = body.customer_id
    if not body.items:
        raise HTTPException(status_code=400, detail="Cart is empty.")
    order, result = place_order(db, body.items, body.coupon_code, body.customer_id)
    return PlaceOrderResponse(
        order=_order_response(db, order),
        payment=payment_payload(order),
        rejection=rejection_out(result),
    )


@router.get("/{order_number}", response_model=OrderResponse)
def read_order(order_number: str, db: Session = Depends(get_db)):
    order = get_order(db, order_number)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found.")
    return _order_response(db, order)
