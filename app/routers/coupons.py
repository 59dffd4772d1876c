from fastapi import APIRouter, Depends, HTTPException, Header, Request
from sqlalchemy.orm import Session
from typing import List, Optional
from app.database import get_db
from app.routers.admin import audit
from app.schemas.coupon import (
    CouponCreate, CouponUpdate, CouponResponse, CouponValidateRequest, CouponValidateResponse,
)
from app.services.coupon_service import CouponService
from app.services.pricing_engine import D, PricingEngine

router = APIRouter(prefix="/coupons", tags=["coupons"])


@router.post("", response_model=CouponResponse, status_code=201)
def create_coupon(coupon: CouponCreate, request: Request, db: Session = Depends(get_db)):
    created = CouponService.create_coupon(db, coupon)
    audit(request, db, "create_coupon", f"Created coupon: {created.code}",
          target_model="Coupon", target_id=created.id)
    return created


@router.get("", response_model=List[CouponResponse])
def list_coupons(skip: int = 0, limit: int = 100, db: Session = Depends(get_db)):
    return CouponService.get_coupons(db, skip, limit)


@router.post("/validate", response_model=CouponValidateResponse)
def validate_coupon(
    body: CouponValidateRequest,
    x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
    db: Session = Depends(get_db),
):
    check = CouponService.validate_code(db, body.code, x_user_id, body.items_price)
    if not check.valid:
        return CouponValidateResponse(valid=False, message=check.message)
    coupon = CouponService.get_coupon_by_code(db, body.code)
    discount = PricingEngine.calculate_discount(CouponService.snapshot(coupon), D(body.items_price))
    return CouponValidateResponse(
        valid=True, message=check.message, code=coupon.code, discount=float(discount)
    )


@router.get("/{coupon_id}", response_model=CouponResponse)
def get_coupon(coupon_id: int, db: Session = Depends(get_db)):
    c = CouponService.get_coupon(db, coupon_id)
    if not c:
        raise HTTPException(status_code=404, detail="Coupon not found")
    return c


@router.put("/{coupon_id}", response_model=CouponResponse)
def update_coupon(coupon_id: int, payload: CouponUpdate, request: Request, db: Session = Depends(get_db)):
    updated = CouponService.update_coupon(db, coupon_id, payload)
    if not updated:
        raise HTTPException(status_code=404, detail="Coupon not found")
    audit(request, db, "update_coupon", f"Updated coupon: {updated.code}",
          target_model="Coupon", target_id=coupon_id,
          details=payload.model_dump(mode="json", exclude_unset=True))
    return updated


@router.delete("/{coupon_id}", status_code=204)
def delete_coupon(coupon_id: int, request: Request, db: Session = Depends(get_db)):
    ok = CouponService.delete_coupon(db, coupon_id)
    if not ok:
        raise HTTPException(status_code=404, detail="Coupon not found")
    audit(request, db, "delete_coupon", f"Deleted coupon {coupon_id}",
          target_model="Coupon", target_id=coupon_id)
    return
