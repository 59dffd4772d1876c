import logging
from sqlalchemy import or_
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import datetime, timezone
from fastapi import HTTPException
from app.errors import InvalidCoupon
from app.models.coupon import Coupon, CouponUsage
from app.schemas.coupon import CouponCreate, CouponUpdate
from app.services.pricing_engine import (
    CouponCheck, CouponSnapshot, CouponUse, D, PricingEngine,
)

logger = logging.getLogger(__name__)

# may be explicitly cleared on update
NULLABLE_FIELDS = ("description", "max_uses")


def normalize_code(code: str) -> str:
    return code.strip().upper()


class CouponService:
    """Service class for coupon lookup, redemption and CRUD"""

    @staticmethod
    def create_coupon(db: Session, coupon_data: CouponCreate) -> Coupon:
        if CouponService.get_coupon_by_code(db, coupon_data.code):
            raise HTTPException(status_code=409, detail="Coupon code already exists")
        db_coupon = Coupon(
            code=normalize_code(coupon_data.code),
            description=coupon_data.description,
            discount_type=coupon_data.discount_type,
            discount_value=D(coupon_data.discount_value),
            min_purchase_amount=D(coupon_data.min_purchase_amount),
            max_uses=coupon_data.max_uses,
            max_uses_per_user=coupon_data.max_uses_per_user,
            start_date=coupon_data.start_date or datetime.now(timezone.utc),
            end_date=coupon_data.end_date,
            is_active=True if coupon_data.is_active is None else coupon_data.is_active,
            used_count=0,
        )
        db.add(db_coupon)
        db.commit()
        db.refresh(db_coupon)
        logger.info("Created coupon %s", db_coupon.code)
        return db_coupon

    @staticmethod
    def get_coupon(db: Session, coupon_id: int) -> Optional[Coupon]:
        return db.query(Coupon).filter(Coupon.id == coupon_id).first()

    @staticmethod
    def get_coupon_by_code(db: Session, code: str) -> Optional[Coupon]:
        return db.query(Coupon).filter(Coupon.code == normalize_code(code)).first()

    @staticmethod
    def get_coupons(db: Session, skip: int = 0, limit: int = 100) -> List[Coupon]:
        limit = min(max(limit, 1), 500)
        return db.query(Coupon).order_by(Coupon.id.desc()).offset(skip).limit(limit).all()

    @staticmethod
    def update_coupon(db: Session, coupon_id: int, coupon_data: CouponUpdate) -> Optional[Coupon]:
        db_coupon = db.query(Coupon).filter(Coupon.id == coupon_id).first()
        if not db_coupon:
            return None

        changes = {
            field: value
            for field, value in coupon_data.model_dump(exclude_unset=True).items()
            if value is not None or field in NULLABLE_FIELDS
        }
        discount_type = changes.get("discount_type", db_coupon.discount_type)
        discount_value = changes.get("discount_value", db_coupon.discount_value)
        if discount_type == "percentage" and D(discount_value) > 100:
            raise HTTPException(status_code=400, detail="Percentage discount cannot exceed 100")
        for field in ("discount_value", "min_purchase_amount"):
            if field in changes:
                changes[field] = D(changes[field])
        for field, value in changes.items():
            setattr(db_coupon, field, value)

        db.commit()
        db.refresh(db_coupon)
        return db_coupon

    @staticmethod
    def delete_coupon(db: Session, coupon_id: int) -> bool:
        db_coupon = db.query(Coupon).filter(Coupon.id == coupon_id).first()
        if not db_coupon:
            return False
        db.delete(db_coupon)
        db.commit()
        return True

    @staticmethod
    def snapshot(coupon: Coupon) -> CouponSnapshot:
        return CouponSnapshot(
            code=coupon.code,
            discount_type=coupon.discount_type,
            discount_value=D(coupon.discount_value),
            min_purchase_amount=D(coupon.min_purchase_amount or 0),
            max_uses=coupon.max_uses,
            used_count=coupon.used_count or 0,
            max_uses_per_user=coupon.max_uses_per_user,
            start_date=coupon.start_date,
            end_date=coupon.end_date,
            is_active=coupon.is_active,
            used_by=tuple(CouponUse(user_id=u.user_id, used_at=u.used_at) for u in coupon.usages),
        )

    @staticmethod
    def validate_code(
        db: Session,
        code: str,
        user_id: Optional[str],
        items_price: float,
    ) -> CouponCheck:
        coupon = CouponService.get_coupon_by_code(db, code)
        if coupon is None:
            return CouponCheck(False, "Invalid coupon code")
        snap = CouponService.snapshot(coupon)
        return PricingEngine.validate_coupon(snap, user_id, D(items_price), datetime.now(timezone.utc))

    @staticmethod
    def record_usage(db: Session, coupon: Coupon, user_id: Optional[str], now: datetime) -> None:
        """Redeem ``coupon`` once inside the caller's transaction.

        The cap is re-checked by the UPDATE itself so that two checkouts
        racing for the last redemption cannot both succeed. Nothing is
        committed here.
        """
        updated = (
            db.query(Coupon)
            .filter(
                Coupon.id == coupon.id,
                or_(Coupon.max_uses.is_(None), Coupon.used_count < Coupon.max_uses),
            )
            .update({Coupon.used_count: Coupon.used_count + 1}, synchronize_session=False)
        )
        if updated != 1:
            logger.warning("Coupon %s hit its usage cap during checkout", coupon.code)
            raise InvalidCoupon("Coupon usage limit reached")
        db.add(CouponUsage(coupon_id=coupon.id, user_id=user_id, used_at=now))
        logger.info("Coupon %s redeemed by %s", coupon.code, user_id or "guest")
