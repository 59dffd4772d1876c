from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session
from typing import Optional
from app.database import get_db
from app.schemas.admin import ActivityAction, ActivityLogListResponse, DashboardResponse
from app.services.admin_service import AdminService

router = APIRouter(prefix="/admin", tags=["admin"])


def audit(request: Request, db: Session, action: str, description: str, **kwargs) -> None:
    """Record an admin action with the caller's address and user agent."""
    user_id = request.headers.get("x-user-id") or None
    AdminService.log_activity(
        db,
        action,
        description,
        user_id=user_id,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
        **kwargs,
    )


@router.get("/activity-logs", response_model=ActivityLogListResponse)
def list_activity_logs(
    page: int = 1,
    limit: int = 50,
    action: Optional[ActivityAction] = None,
    db: Session = Depends(get_db),
):
    logs, pagination = AdminService.get_activity_logs(db, action=action, page=page, limit=limit)
    return {"logs": logs, "pagination": pagination}


@router.get("/stats", response_model=DashboardResponse)
def dashboard_stats(period: int = Query(default=30, ge=1, le=365), db: Session = Depends(get_db)):
    return AdminService.dashboard_stats(db, period_days=period)
