import os
from decimal import Decimal
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()


class PricingConfig(BaseModel):
    """Shipping and tax policy applied to every checkout"""

    free_shipping_threshold: Decimal = Field(default=Decimal("50"), ge=0)
    flat_shipping_fee: Decimal = Field(default=Decimal("9.99"), ge=0)
    tax_rate: Decimal = Field(default=Decimal("0.08"), ge=0)


class Settings(BaseModel):
    database_url: str
    log_level: str = "INFO"
    cors_origins: List[str] = ["*"]
    pricing: PricingConfig = PricingConfig()


def load_settings() -> Settings:
    pricing = PricingConfig(
        free_shipping_threshold=os.getenv("FREE_SHIPPING_THRESHOLD", "50"),
        flat_shipping_fee=os.getenv("FLAT_SHIPPING_FEE", "9.99"),
        tax_rate=os.getenv("TAX_RATE", "0.08"),
    )
    origins = os.getenv("CORS_ORIGINS", "*")
    return Settings(
        database_url=os.getenv("DATABASE_URL", "sqlite:///./storefront.db"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
        pricing=pricing,
    )


settings = load_settings()


def get_pricing_config() -> PricingConfig:
    return settings.pricing
