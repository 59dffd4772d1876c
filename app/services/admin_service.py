import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from app.models.activity_log import ActivityLog
from app.models.order import Order
from app.models.product import Product
from app.services.order_service import pagination_meta
from app.services.pricing_engine import D, round2

logger = logging.getLogger(__name__)


class AdminService:
    """Audit trail and dashboard figures for the back office"""

    @staticmethod
    def log_activity(
        db: Session,
        action: str,
        description: str,
        user_id: Optional[str] = None,
        target_model: Optional[str] = None,
        target_id: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Optional[ActivityLog]:
        """Write one audit entry after an admin action has been committed.

        A failed write is logged and rolled back; the action it describes
        has already succeeded and stands.
        """
        entry = ActivityLog(
            user_id=user_id,
            action=action,
            description=description,
            target_model=target_model,
            target_id=target_id,
            details=details,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        try:
            db.add(entry)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to record activity %s", action)
            return None
        return entry

    @staticmethod
    def get_activity_logs(
        db: Session,
        action: Optional[str] = None,
        page: int = 1,
        limit: int = 50,
    ) -> Tuple[List[ActivityLog], dict]:
        page = max(page, 1)
        limit = min(max(limit, 1), 200)
        q = db.query(ActivityLog)
        if action:
            q = q.filter(ActivityLog.action == action)
        total = q.count()
        logs = (
            q.order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return logs, pagination_meta(total, page, limit)

    @staticmethod
    def dashboard_stats(db: Session, period_days: int = 30) -> dict:
        total_products = db.query(Product).filter(Product.is_deleted == False).count()
        total_orders = db.query(Order).count()
        revenue = (
            db.query(func.coalesce(func.sum(Order.total_amount), 0))
            .filter(Order.payment_status == "paid")
            .scalar()
        )
        recent_orders = (
            db.query(Order)
            .options(selectinload(Order.items))
            .order_by(Order.created_at.desc(), Order.id.desc())
            .limit(5)
            .all()
        )

        since = datetime.now(timezone.utc) - timedelta(days=period_days)
        paid = (
            db.query(Order.created_at, Order.total_amount)
            .filter(Order.payment_status == "paid", Order.created_at >= since)
            .order_by(Order.created_at)
            .all()
        )
        by_day: Dict[str, dict] = {}
        for created_at, total_amount in paid:
            day = created_at.strftime("%Y-%m-%d")
            bucket = by_day.setdefault(day, {"date": day, "revenue": D(0), "orders": 0})
            bucket["revenue"] += D(total_amount)
            bucket["orders"] += 1

        return {
            "stats": {
                "total_products": total_products,
                "total_orders": total_orders,
                "total_revenue": float(round2(D(revenue))),
            },
            "recent_orders": recent_orders,
            "revenue_by_period": [
                {"date": b["date"], "revenue": float(round2(b["revenue"])), "orders": b["orders"]}
                for b in by_day.values()
            ],
        }
