"""Order pricing and coupon rules.

Everything here is a pure function of its arguments: catalog and coupon
records arrive as snapshots, the clock arrives as ``now``, and failures are
raised as :class:`app.errors.PricingError` subclasses. Persistence and
logging belong to the callers in ``order_service`` and ``coupon_service``.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP, getcontext
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from app.config import PricingConfig
from app.errors import (
    InsufficientStock, InvalidCoupon, ProductNotFound, ProductUnavailable, unknown_coupon,
)

getcontext().prec = 28

ZERO = Decimal("0")


def D(x) -> Decimal:
    if isinstance(x, Decimal):
        return x
    return Decimal(str(x))


def round2(x: Decimal) -> Decimal:
    return x.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)


def format_amount(x) -> str:
    """50.00 -> '50', 12.50 -> '12.5'"""
    return format(D(x).normalize(), "f")


def as_utc(value: datetime) -> datetime:
    # sqlite hands back naive datetimes; they were written as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class ProductSnapshot:
    id: int
    name: str
    price: Decimal
    status: str
    stock: int


@dataclass(frozen=True)
class CouponUse:
    user_id: Optional[str]
    used_at: datetime


@dataclass(frozen=True)
class CouponSnapshot:
    code: str
    discount_type: str
    discount_value: Decimal
    end_date: datetime
    start_date: datetime
    min_purchase_amount: Decimal = ZERO
    max_uses: Optional[int] = None
    used_count: int = 0
    max_uses_per_user: int = 1
    is_active: bool = True
    used_by: Tuple[CouponUse, ...] = ()

    def uses_by(self, user_id: Optional[str]) -> int:
        if user_id is None:
            return 0
        return sum(1 for u in self.used_by if u.user_id is not None and str(u.user_id) == str(user_id))


@dataclass(frozen=True)
class LineItem:
    product_id: int
    name: str
    unit_price: Decimal
    quantity: int

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class CouponCheck:
    valid: bool
    message: str


@dataclass(frozen=True)
class AppliedCoupon:
    code: str
    discount: Decimal


@dataclass(frozen=True)
class PricingResult:
    items_price: Decimal
    discount_amount: Decimal
    shipping_price: Decimal
    tax_price: Decimal
    total_amount: Decimal
    line_items: List[LineItem] = field(default_factory=list)
    applied_coupon: Optional[AppliedCoupon] = None


class PricingEngine:
    """Turns a cart into itemised amounts and a payable total"""

    @staticmethod
    def check_availability(product_id, quantity: int, product: Optional[ProductSnapshot]) -> None:
        if product is None:
            raise ProductNotFound(product_id)
        if product.status != "active":
            raise ProductUnavailable(product_id, product.name)
        if product.stock < quantity:
            raise InsufficientStock(product_id, product.name)

    @staticmethod
    def aggregate_items(
        requested: Iterable[Tuple[int, int]],
        catalog: Dict[int, ProductSnapshot],
    ) -> Tuple[List[LineItem], Decimal]:
        line_items: List[LineItem] = []
        items_price = ZERO
        for product_id, quantity in requested:
            product = catalog.get(product_id)
            PricingEngine.check_availability(product_id, quantity, product)
            # always the catalog price, never one supplied by the client
            item = LineItem(
                product_id=product.id,
                name=product.name,
                unit_price=D(product.price),
                quantity=quantity,
            )
            line_items.append(item)
            items_price += item.subtotal
        return line_items, items_price

    @staticmethod
    def validate_coupon(
        coupon: CouponSnapshot,
        user_id: Optional[str],
        items_price: Decimal,
        now: datetime,
    ) -> CouponCheck:
        now = as_utc(now)
        if not coupon.is_active:
            return CouponCheck(False, "Coupon is not active")
        if now < as_utc(coupon.start_date):
            return CouponCheck(False, "Coupon is not yet valid")
        if now > as_utc(coupon.end_date):
            return CouponCheck(False, "Coupon has expired")
        if coupon.max_uses is not None and coupon.used_count >= coupon.max_uses:
            return CouponCheck(False, "Coupon usage limit reached")
        if coupon.uses_by(user_id) >= coupon.max_uses_per_user:
            return CouponCheck(False, "You have already used this coupon")
        if D(items_price) < D(coupon.min_purchase_amount):
            return CouponCheck(
                False, f"Minimum purchase of ${format_amount(coupon.min_purchase_amount)} required"
            )
        return CouponCheck(True, "Coupon is valid")

    @staticmethod
    def calculate_discount(coupon: CouponSnapshot, items_price: Decimal) -> Decimal:
        items_price = D(items_price)
        value = D(coupon.discount_value)
        if coupon.discount_type == "percentage":
            return round2((items_price * value) / D(100))
        return round2(min(value, items_price))

    @staticmethod
    def compose_totals(
        items_price: Decimal,
        discount_amount: Decimal,
        config: PricingConfig,
    ) -> Tuple[Decimal, Decimal, Decimal]:
        """Returns ``(shipping_price, tax_price, total_amount)``."""
        if items_price > config.free_shipping_threshold:
            shipping_price = ZERO
        else:
            shipping_price = round2(D(config.flat_shipping_fee))
        tax_price = round2((items_price - discount_amount) * D(config.tax_rate))
        total_amount = round2(items_price + shipping_price + tax_price - discount_amount)
        return shipping_price, tax_price, total_amount

    @staticmethod
    def price_order(
        requested: Sequence[Tuple[int, int]],
        catalog: Dict[int, ProductSnapshot],
        config: PricingConfig,
        now: datetime,
        coupon_code: Optional[str] = None,
        coupon: Optional[CouponSnapshot] = None,
        user_id: Optional[str] = None,
    ) -> PricingResult:
        line_items, items_price = PricingEngine.aggregate_items(requested, catalog)

        discount_amount = ZERO
        applied = None
        if coupon_code:
            if coupon is None:
                raise unknown_coupon()
            check = PricingEngine.validate_coupon(coupon, user_id, items_price, now)
            if not check.valid:
                raise InvalidCoupon(check.message)
            discount_amount = PricingEngine.calculate_discount(coupon, items_price)
            applied = AppliedCoupon(code=coupon.code, discount=discount_amount)

        shipping_price, tax_price, total_amount = PricingEngine.compose_totals(
            items_price, discount_amount, config
        )
        return PricingResult(
            items_price=round2(items_price),
            discount_amount=discount_amount,
            shipping_price=shipping_price,
            tax_price=tax_price,
            total_amount=total_amount,
            line_items=line_items,
            applied_coupon=applied,
        )
