from sqlalchemy import (
    Column, Integer, String, Enum, Boolean, Numeric, DateTime, ForeignKey, Index,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base

DiscountTypes = ("percentage", "fixed")


class Coupon(Base):
    __tablename__ = "coupons"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(20), unique=True, nullable=False, index=True)
    description = Column(String(200), nullable=True)
    discount_type = Column(Enum(*DiscountTypes, name="discount_type"), nullable=False)
    discount_value = Column(Numeric(12, 2), nullable=False)

    # null max_uses means unlimited
    max_uses = Column(Integer, nullable=True)
    used_count = Column(Integer, default=0, nullable=False)
    max_uses_per_user = Column(Integer, default=1, nullable=False)
    min_purchase_amount = Column(Numeric(12, 2), default=0, nullable=False)

    start_date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False, index=True)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    usages = relationship(
        "CouponUsage",
        back_populates="coupon",
        cascade="all, delete-orphan",
        order_by="CouponUsage.used_at",
    )

    __table_args__ = (
        Index("ix_coupons_active_end", "is_active", "end_date"),
    )


class CouponUsage(Base):
    __tablename__ = "coupon_usages"

    id = Column(Integer, primary_key=True)
    coupon_id = Column(Integer, ForeignKey("coupons.id", ondelete="CASCADE"), nullable=False, index=True)
    # null for guest checkouts
    user_id = Column(String(64), nullable=True, index=True)
    used_at = Column(DateTime(timezone=True), nullable=False)

    coupon = relationship("Coupon", back_populates="usages")
