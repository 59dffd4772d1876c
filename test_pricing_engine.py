from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from app.config import PricingConfig
from app.errors import InsufficientStock, InvalidCoupon, ProductNotFound, ProductUnavailable
from app.services.pricing_engine import (
    CouponSnapshot, CouponUse, PricingEngine, ProductSnapshot, format_amount,
)

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)
CONFIG = PricingConfig()


def product(pid=1, price="10.00", stock=10, status="active", name=None):
    return ProductSnapshot(id=pid, name=name or f"Product {pid}", price=Decimal(price), status=status, stock=stock)


def coupon(**overrides):
    data = dict(
        code="SAVE20",
        discount_type="fixed",
        discount_value=Decimal("20"),
        start_date=NOW - timedelta(days=1),
        end_date=NOW + timedelta(days=30),
    )
    data.update(overrides)
    return CouponSnapshot(**data)


def price(items_price, **kwargs):
    """Price a single-product cart worth exactly ``items_price``."""
    catalog = {1: product(price=items_price)}
    return PricingEngine.price_order([(1, 1)], catalog, CONFIG, NOW, **kwargs)


def test_free_shipping_over_threshold():
    """60 with no coupon: free shipping, 8% tax"""
    result = price("60")
    assert result.shipping_price == Decimal("0")
    assert result.tax_price == Decimal("4.80")
    assert result.total_amount == Decimal("64.80")
    assert result.applied_coupon is None


def test_flat_shipping_under_threshold():
    result = price("30")
    assert result.shipping_price == Decimal("9.99")
    assert result.tax_price == Decimal("2.40")
    assert result.total_amount == Decimal("42.39")


def test_threshold_itself_still_pays_shipping():
    result = price("50")
    assert result.shipping_price == Decimal("9.99")
    assert price("50.01").shipping_price == Decimal("0")


def test_fixed_coupon_reduces_taxable_amount():
    result = price("100", coupon_code="save20", coupon=coupon())
    assert result.discount_amount == Decimal("20")
    assert result.shipping_price == Decimal("0")
    assert result.tax_price == Decimal("6.40")
    assert result.total_amount == Decimal("86.40")
    assert result.applied_coupon.code == "SAVE20"
    assert result.applied_coupon.discount == Decimal("20")


def test_minimum_purchase_rejects_coupon():
    welcome = coupon(
        code="WELCOME10", discount_type="percentage", discount_value=Decimal("10"),
        min_purchase_amount=Decimal("50.00"),
    )
    with pytest.raises(InvalidCoupon) as exc:
        price("40", coupon_code="WELCOME10", coupon=welcome)
    assert exc.value.reason == "Minimum purchase of $50 required"


def test_unknown_coupon_code():
    with pytest.raises(InvalidCoupon) as exc:
        price("40", coupon_code="NOPE", coupon=None)
    assert exc.value.reason == "Invalid coupon code"
    assert exc.value.status_code == 404


def test_insufficient_stock():
    catalog = {1: product(stock=3, name="Mug")}
    with pytest.raises(InsufficientStock) as exc:
        PricingEngine.price_order([(1, 5)], catalog, CONFIG, NOW)
    assert exc.value.message == "Insufficient stock for: Mug"
    assert exc.value.product_id == 1


def test_missing_and_unavailable_products():
    with pytest.raises(ProductNotFound) as exc:
        PricingEngine.price_order([(7, 1)], {}, CONFIG, NOW)
    assert exc.value.message == "Product not found: 7"

    catalog = {1: product(status="draft", name="Lamp")}
    with pytest.raises(ProductUnavailable) as exc:
        PricingEngine.price_order([(1, 1)], catalog, CONFIG, NOW)
    assert exc.value.message == "Product not available: Lamp"


def test_any_failing_item_aborts_the_order():
    catalog = {1: product(pid=1), 2: product(pid=2, stock=0)}
    with pytest.raises(InsufficientStock):
        PricingEngine.price_order([(1, 1), (2, 1)], catalog, CONFIG, NOW)


def test_items_price_uses_catalog_price_and_decimal_sums():
    catalog = {1: product(pid=1, price="0.10"), 2: product(pid=2, price="0.20")}
    result = PricingEngine.price_order([(1, 3), (2, 3)], catalog, CONFIG, NOW)
    assert result.items_price == Decimal("0.90")
    assert [li.unit_price for li in result.line_items] == [Decimal("0.10"), Decimal("0.20")]


def test_validator_checks_in_order():
    cases = [
        (dict(is_active=False, end_date=NOW - timedelta(days=1)), "Coupon is not active"),
        (dict(start_date=NOW + timedelta(days=1)), "Coupon is not yet valid"),
        (dict(end_date=NOW - timedelta(seconds=1), max_uses=1, used_count=1), "Coupon has expired"),
        (dict(max_uses=3, used_count=3), "Coupon usage limit reached"),
        (dict(used_by=(CouponUse("u1", NOW),)), "You have already used this coupon"),
        (dict(min_purchase_amount=Decimal("12.50")), "Minimum purchase of $12.5 required"),
    ]
    for overrides, message in cases:
        check = PricingEngine.validate_coupon(coupon(**overrides), "u1", Decimal("10"), NOW)
        assert not check.valid
        assert check.message == message


def test_usage_cap_boundary():
    below = PricingEngine.validate_coupon(coupon(max_uses=5, used_count=4), "u1", Decimal("10"), NOW)
    at = PricingEngine.validate_coupon(coupon(max_uses=5, used_count=5), "u1", Decimal("10"), NOW)
    assert below.valid
    assert at.message == "Coupon usage limit reached"


def test_per_user_limit_only_binds_that_user():
    used = coupon(max_uses_per_user=2, used_by=(CouponUse("u1", NOW), CouponUse("u1", NOW)))
    assert not PricingEngine.validate_coupon(used, "u1", Decimal("10"), NOW).valid
    assert PricingEngine.validate_coupon(used, "u2", Decimal("10"), NOW).valid
    # guests have no usage history
    assert PricingEngine.validate_coupon(used, None, Decimal("10"), NOW).valid


def test_validator_is_repeatable():
    snap = coupon(max_uses=1, used_count=0)
    first = PricingEngine.validate_coupon(snap, "u1", Decimal("10"), NOW)
    second = PricingEngine.validate_coupon(snap, "u1", Decimal("10"), NOW)
    assert first == second


def test_naive_dates_read_as_utc():
    snap = coupon(start_date=datetime(2026, 5, 1), end_date=datetime(2026, 7, 1))
    assert PricingEngine.validate_coupon(snap, None, Decimal("10"), NOW).valid


def test_fixed_discount_capped_at_subtotal():
    big = coupon(discount_value=Decimal("500"))
    assert PricingEngine.calculate_discount(big, Decimal("42.50")) == Decimal("42.50")
    result = price("42.50", coupon_code="SAVE20", coupon=big)
    assert result.tax_price == Decimal("0.00")
    assert result.total_amount == Decimal("9.99")


def test_percentage_discount_rounds_to_cents():
    pct = coupon(discount_type="percentage", discount_value=Decimal("15"))
    assert PricingEngine.calculate_discount(pct, Decimal("33.33")) == Decimal("5.00")
    assert PricingEngine.calculate_discount(pct, Decimal("10.10")) == Decimal("1.52")


def test_custom_pricing_config():
    config = PricingConfig(free_shipping_threshold="100", flat_shipping_fee="5", tax_rate="0")
    shipping, tax, total = PricingEngine.compose_totals(Decimal("60"), Decimal("0"), config)
    assert (shipping, tax, total) == (Decimal("5.00"), Decimal("0.00"), Decimal("65.00"))


def test_format_amount():
    assert format_amount(Decimal("50.00")) == "50"
    assert format_amount(Decimal("12.50")) == "12.5"
    assert format_amount(0) == "0"
