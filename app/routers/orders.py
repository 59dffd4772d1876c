from fastapi import APIRouter, Depends, HTTPException, Header, Request
from sqlalchemy.orm import Session
from typing import Optional
from app.config import PricingConfig, get_pricing_config
from app.database import get_db
from app.routers.admin import audit
from app.schemas.order import (
    AppliedCouponResponse, LineItemResponse, OrderCancel, OrderCreate, OrderListResponse,
    OrderResponse, OrderStatusFilter, OrderStatusUpdate, QuoteRequest, QuoteResponse,
)
from app.services.order_service import OrderService
from app.services.pricing_engine import PricingResult

router = APIRouter(prefix="/orders", tags=["orders"])


def current_user_id(x_user_id: Optional[str] = Header(default=None, alias="X-User-Id")) -> Optional[str]:
    # no header means guest checkout / admin back-office
    if x_user_id is None or not x_user_id.strip():
        return None
    return x_user_id.strip()


def _quote_response(result: PricingResult) -> QuoteResponse:
    coupon = None
    if result.applied_coupon is not None:
        coupon = AppliedCouponResponse(
            code=result.applied_coupon.code, discount=float(result.applied_coupon.discount)
        )
    return QuoteResponse(
        items=[LineItemResponse.model_validate(li) for li in result.line_items],
        items_price=float(result.items_price),
        discount_amount=float(result.discount_amount),
        shipping_price=float(result.shipping_price),
        tax_price=float(result.tax_price),
        total_amount=float(result.total_amount),
        coupon=coupon,
    )


def _load_order(db: Session, order_id: int, user_id: Optional[str]):
    order = OrderService.get_order(db, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    if user_id is not None and order.user_id != user_id:
        raise HTTPException(status_code=403, detail="Access denied")
    return order


@router.post("/quote", response_model=QuoteResponse)
def quote_order(
    body: QuoteRequest,
    user_id: Optional[str] = Depends(current_user_id),
    db: Session = Depends(get_db),
    config: PricingConfig = Depends(get_pricing_config),
):
    return _quote_response(OrderService.quote(db, body, user_id, config))


@router.post("", response_model=OrderResponse, status_code=201)
def create_order(
    body: OrderCreate,
    user_id: Optional[str] = Depends(current_user_id),
    db: Session = Depends(get_db),
    config: PricingConfig = Depends(get_pricing_config),
):
    return OrderService.place_order(db, body, user_id, config)


@router.get("", response_model=OrderListResponse)
def list_orders(
    page: int = 1,
    limit: int = 20,
    status: Optional[OrderStatusFilter] = None,
    user_id: Optional[str] = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    orders, pagination = OrderService.list_orders(db, user_id=user_id, status=status, page=page, limit=limit)
    return {"orders": orders, "pagination": pagination}


@router.get("/{order_id}", response_model=OrderResponse)
def get_order(order_id: int, user_id: Optional[str] = Depends(current_user_id), db: Session = Depends(get_db)):
    return _load_order(db, order_id, user_id)


@router.put("/{order_id}/cancel", response_model=OrderResponse)
def cancel_order(
    order_id: int,
    request: Request,
    body: Optional[OrderCancel] = None,
    user_id: Optional[str] = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    order = _load_order(db, order_id, user_id)
    reason = body.reason if body else None
    cancelled = OrderService.cancel_order(db, order, reason)
    audit(request, db, "cancel_order", f"Cancelled order {cancelled.order_number}",
          target_model="Order", target_id=order_id, details={"reason": reason})
    return cancelled


@router.put("/{order_id}/status", response_model=OrderResponse)
def update_order_status(order_id: int, body: OrderStatusUpdate, request: Request, db: Session = Depends(get_db)):
    order = _load_order(db, order_id, None)
    updated = OrderService.update_status(db, order, body.status, body.tracking_number, body.carrier)
    audit(request, db, "update_order_status", f"Order {updated.order_number} set to {body.status}",
          target_model="Order", target_id=order_id, details=body.model_dump(exclude_none=True))
    return updated


@router.put("/{order_id}/pay", response_model=OrderResponse)
def mark_order_paid(order_id: int, db: Session = Depends(get_db)):
    order = _load_order(db, order_id, None)
    return OrderService.mark_paid(db, order)
