from sqlalchemy import Column, Integer, String, Enum, JSON, DateTime, Index
from sqlalchemy.sql import func
from app.database import Base

ActivityActions = (
    "create_product",
    "update_product",
    "delete_product",
    "create_coupon",
    "update_coupon",
    "delete_coupon",
    "update_order_status",
    "cancel_order",
    "other",
)


class ActivityLog(Base):
    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True, index=True)
    # admin performing the action; null when no X-User-Id was sent
    user_id = Column(String(64), nullable=True, index=True)
    action = Column(Enum(*ActivityActions, name="activity_action"), nullable=False, index=True)
    description = Column(String(500), nullable=False)
    target_model = Column(String(50), nullable=True)
    target_id = Column(Integer, nullable=True)
    details = Column(JSON, nullable=True)
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(300), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    __table_args__ = (
        Index("ix_activity_logs_target", "target_model", "target_id"),
    )
