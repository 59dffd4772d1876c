import logging
import math
import random
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy.orm import Session, selectinload

from app.config import PricingConfig
from app.models.order import Order, OrderItem
from app.schemas.order import OrderCreate, QuoteRequest
from app.services.catalog_service import CatalogService
from app.services.coupon_service import CouponService
from app.services.pricing_engine import PricingEngine, PricingResult

logger = logging.getLogger(__name__)

STATUS_TIMESTAMPS = {
    "shipped": "shipped_at",
    "delivered": "delivered_at",
    "cancelled": "cancelled_at",
}


def pagination_meta(total: int, page: int, limit: int) -> dict:
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "pages": math.ceil(total / limit),
    }


def generate_order_number(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"ORD-{now:%Y%m%d}-{random.randint(10000, 99999)}"


class OrderService:
    """Checkout flow around the pricing engine, plus order tracking"""

    @staticmethod
    def quote(
        db: Session,
        request: QuoteRequest,
        user_id: Optional[str],
        config: PricingConfig,
        now: Optional[datetime] = None,
    ) -> PricingResult:
        result, _ = OrderService._price(db, request, user_id, config, now or datetime.now(timezone.utc))
        return result

    @staticmethod
    def _price(db: Session, request: QuoteRequest, user_id, config, now):
        requested = [(it.product_id, it.quantity) for it in request.items]
        catalog = CatalogService.load_snapshots(db, (pid for pid, _ in requested))
        coupon = None
        if request.coupon_code:
            coupon = CouponService.get_coupon_by_code(db, request.coupon_code)
        result = PricingEngine.price_order(
            requested,
            catalog,
            config,
            now,
            coupon_code=request.coupon_code,
            coupon=CouponService.snapshot(coupon) if coupon else None,
            user_id=user_id,
        )
        return result, coupon

    @staticmethod
    def place_order(
        db: Session,
        request: OrderCreate,
        user_id: Optional[str],
        config: PricingConfig,
    ) -> Order:
        if user_id is None and request.customer is None:
            raise HTTPException(status_code=400, detail="Customer details are required for guest checkout")

        now = datetime.now(timezone.utc)
        result, coupon = OrderService._price(db, request, user_id, config, now)

        order = Order(
            order_number=generate_order_number(now),
            user_id=user_id,
            shipping_address=request.shipping_address.model_dump(),
            payment_method=request.payment_method,
            payment_status="pending",
            items_price=result.items_price,
            shipping_price=result.shipping_price,
            tax_price=result.tax_price,
            discount_amount=result.discount_amount,
            total_amount=result.total_amount,
            customer_notes=request.customer_notes,
            status="pending",
            items=[
                OrderItem(
                    product_id=li.product_id,
                    name=li.name,
                    unit_price=li.unit_price,
                    quantity=li.quantity,
                )
                for li in result.line_items
            ],
        )
        if request.customer is not None:
            order.guest_name = request.customer.name
            order.guest_email = str(request.customer.email)
            order.guest_phone = request.customer.phone
        if result.applied_coupon is not None:
            order.coupon_code = result.applied_coupon.code
            order.coupon_discount = result.applied_coupon.discount

        # order row, coupon redemption and stock move together or not at all
        try:
            db.add(order)
            if coupon is not None:
                CouponService.record_usage(db, coupon, user_id, now)
            for li in result.line_items:
                CatalogService.reserve_stock(db, li.product_id, li.quantity, li.name)
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(order)
        logger.info(
            "Placed order %s for %s: total %s", order.order_number, user_id or "guest", result.total_amount
        )
        return order

    @staticmethod
    def get_order(db: Session, order_id: int) -> Optional[Order]:
        return (
            db.query(Order)
            .options(selectinload(Order.items))
            .filter(Order.id == order_id)
            .first()
        )

    @staticmethod
    def list_orders(
        db: Session,
        user_id: Optional[str] = None,
        status: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[Order], dict]:
        page = max(page, 1)
        limit = min(max(limit, 1), 100)
        q = db.query(Order)
        if user_id is not None:
            q = q.filter(Order.user_id == user_id)
        if status and status != "all":
            q = q.filter(Order.status == status)
        total = q.count()
        orders = (
            q.options(selectinload(Order.items))
            .order_by(Order.created_at.desc(), Order.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return orders, pagination_meta(total, page, limit)

    @staticmethod
    def cancel_order(db: Session, order: Order, reason: Optional[str] = None) -> Order:
        if not order.can_be_cancelled():
            raise HTTPException(status_code=400, detail="Order cannot be cancelled at this stage")
        OrderService._set_status(order, "cancelled")
        order.cancellation_reason = reason
        for item in order.items:
            CatalogService.release_stock(db, item.product_id, item.quantity)
        db.commit()
        db.refresh(order)
        logger.info("Cancelled order %s", order.order_number)
        return order

    @staticmethod
    def update_status(
        db: Session,
        order: Order,
        status: str,
        tracking_number: Optional[str] = None,
        carrier: Optional[str] = None,
    ) -> Order:
        if order.status == "cancelled":
            raise HTTPException(status_code=400, detail="Cancelled orders cannot change status")
        if status == "cancelled":
            # releases stock like a shopper cancellation
            return OrderService.cancel_order(db, order)
        OrderService._set_status(order, status)
        if tracking_number:
            order.tracking_number = tracking_number
        if carrier:
            order.carrier = carrier
        db.commit()
        db.refresh(order)
        logger.info("Order %s status set to %s", order.order_number, status)
        return order

    @staticmethod
    def mark_paid(db: Session, order: Order) -> Order:
        if order.payment_status != "paid":
            order.payment_status = "paid"
            order.paid_at = datetime.now(timezone.utc)
            db.commit()
            db.refresh(order)
        return order

    @staticmethod
    def _set_status(order: Order, status: str) -> None:
        order.status = status
        stamp = STATUS_TIMESTAMPS.get(status)
        if stamp and getattr(order, stamp) is None:
            setattr(order, stamp, datetime.now(timezone.utc))
