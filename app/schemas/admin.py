from pydantic import BaseModel, ConfigDict
from typing import Any, Dict, List, Literal, Optional
from datetime import datetime
from app.schemas.order import OrderResponse, Pagination


ActivityAction = Literal[
    "create_product",
    "update_product",
    "delete_product",
    "create_coupon",
    "update_coupon",
    "delete_coupon",
    "update_order_status",
    "cancel_order",
    "other",
]


class ActivityLogResponse(BaseModel):
    id: int
    user_id: Optional[str] = None
    action: str
    description: str
    target_model: Optional[str] = None
    target_id: Optional[int] = None
    details: Optional[Dict[str, Any]] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ActivityLogListResponse(BaseModel):
    logs: List[ActivityLogResponse]
    pagination: Pagination


class DashboardStats(BaseModel):
    total_products: int
    total_orders: int
    total_revenue: float


class RevenuePoint(BaseModel):
    date: str
    revenue: float
    orders: int


class DashboardResponse(BaseModel):
    stats: DashboardStats
    recent_orders: List[OrderResponse]
    revenue_by_period: List[RevenuePoint]
