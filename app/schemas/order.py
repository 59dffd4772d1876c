from pydantic import BaseModel, Field, ConfigDict, EmailStr
from typing import List, Literal, Optional
from datetime import datetime


OrderStatus = Literal["pending", "processing", "shipped", "delivered", "cancelled"]
OrderStatusFilter = Literal["all", "pending", "processing", "shipped", "delivered", "cancelled"]
PaymentMethod = Literal["stripe", "cod"]


class OrderItemRequest(BaseModel):
    product_id: int = Field(..., gt=0)
    quantity: int = Field(default=1, ge=1)


class ShippingAddress(BaseModel):
    full_name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    address_line1: str = Field(..., min_length=1)
    address_line2: Optional[str] = None
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    postal_code: str = Field(default="00000")
    country: str = Field(..., min_length=1)


class GuestCustomer(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    phone: str = Field(..., min_length=1)


class QuoteRequest(BaseModel):
    items: List[OrderItemRequest] = Field(..., min_length=1)
    coupon_code: Optional[str] = None


class OrderCreate(QuoteRequest):
    shipping_address: ShippingAddress
    payment_method: PaymentMethod = "cod"
    customer: Optional[GuestCustomer] = Field(default=None, description="Required for guest checkout")
    customer_notes: Optional[str] = Field(default=None, max_length=1000)


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    tracking_number: Optional[str] = None
    carrier: Optional[str] = None


class OrderCancel(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=500)


# Response schemas
class LineItemResponse(BaseModel):
    product_id: int
    name: str
    unit_price: float
    quantity: int

    model_config = ConfigDict(from_attributes=True)


class AppliedCouponResponse(BaseModel):
    code: str
    discount: float


class QuoteResponse(BaseModel):
    items: List[LineItemResponse]
    items_price: float
    discount_amount: float
    shipping_price: float
    tax_price: float
    total_amount: float
    coupon: Optional[AppliedCouponResponse] = None


class OrderResponse(BaseModel):
    id: int
    order_number: str
    user_id: Optional[str] = None
    guest_name: Optional[str] = None
    guest_email: Optional[str] = None
    guest_phone: Optional[str] = None
    items: List[LineItemResponse]
    shipping_address: dict
    payment_method: str
    payment_status: str
    items_price: float
    shipping_price: float
    tax_price: float
    discount_amount: float
    total_amount: float
    coupon_code: Optional[str] = None
    coupon_discount: Optional[float] = None
    status: str
    tracking_number: Optional[str] = None
    carrier: Optional[str] = None
    customer_notes: Optional[str] = None
    cancellation_reason: Optional[str] = None
    shipped_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    pages: int


class OrderListResponse(BaseModel):
    orders: List[OrderResponse]
    pagination: Pagination
