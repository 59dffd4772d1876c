from pydantic import BaseModel, Field, ConfigDict, ValidationInfo, field_validator
from typing import Literal, Optional
from datetime import datetime


DiscountType = Literal["percentage", "fixed"]


# Request schemas
class CouponCreate(BaseModel):
    code: str = Field(..., min_length=3, max_length=20, description="Letters and digits; stored upper-cased")
    description: Optional[str] = Field(default=None, max_length=200)
    discount_type: DiscountType
    discount_value: float = Field(..., ge=0, description="Percentage or fixed amount")
    min_purchase_amount: float = Field(default=0, ge=0)
    max_uses: Optional[int] = Field(default=None, ge=1, description="None means unlimited")
    max_uses_per_user: int = Field(default=1, ge=1)
    start_date: Optional[datetime] = Field(default=None, description="Defaults to now")
    end_date: datetime
    is_active: Optional[bool] = Field(default=True)

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        v = v.strip().upper()
        if not v.isalnum() or not v.isascii():
            raise ValueError("Coupon code must contain only uppercase letters and numbers")
        return v

    @field_validator("discount_value")
    @classmethod
    def cap_percentage(cls, v: float, info: ValidationInfo) -> float:
        if info.data.get("discount_type") == "percentage" and v > 100:
            raise ValueError("Percentage discount cannot exceed 100")
        return v


class CouponUpdate(BaseModel):
    description: Optional[str] = Field(None, max_length=200)
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[float] = Field(None, ge=0)
    min_purchase_amount: Optional[float] = Field(None, ge=0)
    max_uses: Optional[int] = Field(default=None, ge=1)
    max_uses_per_user: Optional[int] = Field(default=None, ge=1)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_active: Optional[bool] = Field(None, description="Whether coupon is active")


# Response schemas
class CouponResponse(BaseModel):
    id: int
    code: str
    description: Optional[str] = None
    discount_type: str
    discount_value: float
    min_purchase_amount: float
    max_uses: Optional[int] = None
    used_count: int
    max_uses_per_user: int
    start_date: datetime
    end_date: datetime
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class CouponValidateRequest(BaseModel):
    code: str = Field(..., min_length=1)
    items_price: float = Field(..., ge=0, description="Cart subtotal before discount")


class CouponValidateResponse(BaseModel):
    valid: bool
    message: str
    code: Optional[str] = None
    discount: float = 0.0
