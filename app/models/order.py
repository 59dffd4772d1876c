from sqlalchemy import (
    Column, Integer, String, Text, Enum, Boolean, Numeric, DateTime, ForeignKey, JSON, Index,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base

OrderStatuses = ("pending", "processing", "shipped", "delivered", "cancelled")
PaymentMethods = ("stripe", "cod")
PaymentStatuses = ("pending", "paid", "failed", "refunded")


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String(32), unique=True, nullable=False, index=True)

    # user_id is null for guest orders, which carry contact details instead
    user_id = Column(String(64), nullable=True, index=True)
    guest_name = Column(String(200), nullable=True)
    guest_email = Column(String(200), nullable=True)
    guest_phone = Column(String(50), nullable=True)

    shipping_address = Column(JSON, nullable=False)

    payment_method = Column(Enum(*PaymentMethods, name="payment_method"), nullable=False)
    payment_status = Column(Enum(*PaymentStatuses, name="payment_status"), default="pending", nullable=False)
    paid_at = Column(DateTime(timezone=True), nullable=True)

    items_price = Column(Numeric(12, 2), nullable=False)
    shipping_price = Column(Numeric(12, 2), default=0, nullable=False)
    tax_price = Column(Numeric(12, 2), default=0, nullable=False)
    discount_amount = Column(Numeric(12, 2), default=0, nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False)

    coupon_code = Column(String(20), nullable=True)
    coupon_discount = Column(Numeric(12, 2), nullable=True)

    status = Column(Enum(*OrderStatuses, name="order_status"), default="pending", nullable=False)
    shipped_at = Column(DateTime(timezone=True), nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancellation_reason = Column(String(500), nullable=True)

    tracking_number = Column(String(100), nullable=True)
    carrier = Column(String(100), nullable=True)
    customer_notes = Column(Text, nullable=True)

    is_refunded = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )

    __table_args__ = (
        Index("ix_orders_status_payment", "status", "payment_status"),
    )

    def can_be_cancelled(self) -> bool:
        return self.status in ("pending", "processing")

    def can_be_refunded(self) -> bool:
        return self.payment_status == "paid" and not self.is_refunded


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    # snapshot of the catalog at purchase time
    name = Column(String(200), nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    quantity = Column(Integer, nullable=False)

    order = relationship("Order", back_populates="items")
