"""Coupon lookup and acceptance.

This is the only place coupon codes are resolved: callers hand over the
configured coupon list and the code the customer typed.
"""

from datetime import UTC, datetime
from decimal import Decimal

from storefront.exceptions import InvalidCoupon
from storefront.pricing.models import Coupon


def find_coupon(coupons: list[Coupon], code: str) -> Coupon | None:
    wanted = code.strip().upper()
    return next((c for c in coupons if c.normalized_code == wanted), None)


def accept_coupon(coupons: list[Coupon], code: str, subtotal: Decimal, at: datetime | None = None) -> Coupon:
    """Resolve ``code`` and check it may be applied to an order of ``subtotal``.

    Raises ``InvalidCoupon`` when the code is unknown, inactive, outside its
    validity window, or the order is below the coupon's minimum amount.
    """
    at = _aware(at) if at else datetime.now(UTC)

    coupon = find_coupon(coupons, code)
    if coupon is None or not coupon.active:
        raise InvalidCoupon({"code": ["Invalid or expired coupon"]})
    if coupon.starts_at is not None and at < _aware(coupon.starts_at):
        raise InvalidCoupon({"code": ["Invalid or expired coupon"]})
    if coupon.ends_at is not None and at > _aware(coupon.ends_at):
        raise InvalidCoupon({"code": ["Invalid or expired coupon"]})
    if subtotal < coupon.min_amount:
        raise InvalidCoupon({"code": [f"Minimum order of {coupon.min_amount} required"]})

    return coupon


def _aware(moment: datetime) -> datetime:
    return moment if moment.tzinfo is not None else moment.replace(tzinfo=UTC)
