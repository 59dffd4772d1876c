class PricingError(Exception):
    """Base for checkout failures the shopper can act on.

    Each subclass carries a ``tag`` naming the failure and the HTTP
    ``status_code`` the API answers with.
    """

    tag = "PricingError"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ProductNotFound(PricingError):
    tag = "ProductNotFound"
    status_code = 404

    def __init__(self, product_id):
        super().__init__(f"Product not found: {product_id}")
        self.product_id = product_id


class ProductUnavailable(PricingError):
    tag = "ProductUnavailable"

    def __init__(self, product_id, name: str):
        super().__init__(f"Product not available: {name}")
        self.product_id = product_id
        self.name = name


class InsufficientStock(PricingError):
    tag = "InsufficientStock"

    def __init__(self, product_id, name: str):
        super().__init__(f"Insufficient stock for: {name}")
        self.product_id = product_id
        self.name = name


class InvalidCoupon(PricingError):
    tag = "InvalidCoupon"

    def __init__(self, reason: str, status_code: int = 400):
        super().__init__(reason)
        self.reason = reason
        self.status_code = status_code


UNKNOWN_COUPON = "Invalid coupon code"


def unknown_coupon() -> InvalidCoupon:
    # an unknown code answers 404 like a missing product
    return InvalidCoupon(UNKNOWN_COUPON, status_code=404)
