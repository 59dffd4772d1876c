from pydantic import BaseModel, Field, ConfigDict
from typing import Literal, Optional


ProductStatus = Literal["active", "draft", "archived"]


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    sku: Optional[str] = Field(default=None, max_length=64)
    description: Optional[str] = None
    price: float = Field(..., ge=0)
    compare_at_price: Optional[float] = Field(default=None, ge=0)
    stock: int = Field(default=0, ge=0)
    status: ProductStatus = "active"


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    sku: Optional[str] = Field(None, max_length=64)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    compare_at_price: Optional[float] = Field(None, ge=0)
    stock: Optional[int] = Field(None, ge=0)
    status: Optional[ProductStatus] = None


class ProductResponse(BaseModel):
    id: int
    name: str
    sku: Optional[str] = None
    description: Optional[str] = None
    price: float
    compare_at_price: Optional[float] = None
    stock: int
    status: str

    model_config = ConfigDict(from_attributes=True)
