from sqlalchemy import Column, Integer, String, Text, Enum, Boolean, Numeric, DateTime, Index
from sqlalchemy.sql import func
from app.database import Base

ProductStatuses = ("active", "draft", "archived")


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    sku = Column(String(64), unique=True, nullable=True)
    description = Column(Text, nullable=True)
    price = Column(Numeric(12, 2), nullable=False)
    compare_at_price = Column(Numeric(12, 2), nullable=True)
    stock = Column(Integer, default=0, nullable=False)
    status = Column(Enum(*ProductStatuses, name="product_status"), default="active", nullable=False)
    # deleted rows stay referenced by order_items
    is_deleted = Column(Boolean, default=False, nullable=False, index=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("ix_products_status", "status"),
    )
